import random
from collections import Counter

import pytest

from pixel_evolution.exceptions import InvalidWeightsError
from pixel_evolution.utils import (
    weighted_choice, small_positive, random_int32, crossover_weights, perturb_weights,
)


class FixedRng:
    """Replays a fixed sequence of random() values"""

    def __init__(self, values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


@pytest.mark.parametrize("seed", range(20))
def test_single_positive_weight_always_wins(seed):
    rng = random.Random(seed)
    assert weighted_choice([1, 0, 0], rng) == 0
    assert weighted_choice([0, 1, 0], rng) == 1
    assert weighted_choice([0, 0, 3.5], rng) == 2


def test_extreme_draws_pick_first_and_last():
    assert weighted_choice([1, 1, 1], FixedRng([1e-12])) == 0
    assert weighted_choice([1, 1, 1], FixedRng([0.999999])) == 2


def test_zero_draw_is_redrawn():
    # 0.0 is outside the open interval, so the 0.9 draw is used
    assert weighted_choice([1, 1], FixedRng([0.0, 0.9])) == 1


def test_running_past_the_end_returns_last_index():
    assert weighted_choice([1, 1, 0], FixedRng([1.5])) == 2


def test_frequencies_follow_weights():
    rng = random.Random(1234)
    counts = Counter(weighted_choice([0.1, 0.7, 0.2], rng) for _ in range(20000))
    assert counts[0] / 20000 == pytest.approx(0.1, abs=0.02)
    assert counts[1] / 20000 == pytest.approx(0.7, abs=0.02)
    assert counts[2] / 20000 == pytest.approx(0.2, abs=0.02)


@pytest.mark.parametrize("weights", [[], [0, 0, 0], [-1, 2], [float('nan'), 1], [float('inf')]])
def test_invalid_weights_raise(weights):
    with pytest.raises(InvalidWeightsError):
        weighted_choice(weights)


def test_invalid_weights_error_is_a_value_error():
    with pytest.raises(ValueError):
        weighted_choice([0.0])


def test_small_positive_distribution():
    rng = random.Random(7)
    draws = [small_positive(rng) for _ in range(10000)]
    counts = Counter(draws)

    assert 0 not in counts
    assert min(draws) >= 1
    assert max(draws) <= 45
    assert counts.most_common(1)[0][0] == 1
    assert counts[1] > counts[5] > counts[10] > counts[15]


def test_random_int32_covers_signed_range():
    rng = random.Random(3)
    values = [random_int32(rng) for _ in range(2000)]
    assert all(-(1 << 31) <= v < (1 << 31) for v in values)
    assert any(v < 0 for v in values)
    assert any(v > 0 for v in values)


def test_crossover_of_identical_vectors_is_identity():
    weights = [0.5, 1.0, 2.5, 0.0]
    assert crossover_weights(weights, list(weights), random.Random(0)) == weights


def test_crossover_takes_each_weight_from_a_parent():
    rng = random.Random(11)
    child = crossover_weights([1.0] * 200, [2.0] * 200, rng)
    assert set(child) == {1.0, 2.0}
    assert 60 < child.count(1.0) < 140


def test_crossover_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        crossover_weights([1.0, 1.0], [1.0])


def test_perturb_stays_within_jitter_bounds():
    rng = random.Random(5)
    weights = [1.0] * 1000
    jittered = perturb_weights(weights, rng)
    changed = [w for w in jittered if w != 1.0]

    assert all(1 / 1.3 <= w <= 1.3 for w in jittered)
    # roughly one weight in four is touched
    assert 150 < len(changed) < 350
    assert any(w > 1.0 for w in changed)
    assert any(w < 1.0 for w in changed)


def test_perturb_keeps_zero_weights_at_zero():
    rng = random.Random(9)
    assert perturb_weights([0.0] * 50, rng) == [0.0] * 50


def test_perturb_is_noop_when_no_weight_is_selected():
    assert perturb_weights([1.0, 2.0, 3.0], FixedRng([0.9, 0.9, 0.9])) == [1.0, 2.0, 3.0]
