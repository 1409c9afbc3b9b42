"""
pixel_evolution/utils.py - Sampling helpers shared by the generator and the pool
"""
import math
import random
from typing import List, Sequence

from .exceptions import InvalidWeightsError

PERTURB_CHANCE = 0.25
JITTER_SCALE = 0.3


def validate_weights(weights: Sequence[float]) -> None:
    """Raise InvalidWeightsError unless weights can drive weighted_choice"""
    if len(weights) == 0:
        raise InvalidWeightsError("weight vector is empty")
    for w in weights:
        if not math.isfinite(w) or w < 0:
            raise InvalidWeightsError(f"weights must be finite and non-negative, got {w!r}")
    if sum(weights) <= 0:
        raise InvalidWeightsError("weights must have a positive sum")


def _open_unit(rng) -> float:
    # random() is in [0, 1); zero is redrawn to make the interval open
    u = rng.random()
    while u == 0.0:
        u = rng.random()
    return u


def weighted_choice(weights: Sequence[float], rng=None) -> int:
    """Pick an index with probability proportional to its weight.

    Draws a value strictly inside (0, total) and returns the first index
    whose running sum reaches it. Rounding can leave the running sum just
    below the draw at the end of the list, in which case the last index is
    returned.
    """
    rng = rng or random
    validate_weights(weights)

    total = sum(weights)
    pick = total * _open_unit(rng)
    current = 0.0

    for i, weight in enumerate(weights):
        current += weight
        if current >= pick:
            return i

    return len(weights) - 1  # Fallback


def small_positive(rng=None) -> int:
    """Small non-zero magnitude, mostly 1-10, never above 30.

    Absolute value of the sum of 15 draws from {-2, -1, 0, 1, 2}; a zero sum
    becomes 1.
    """
    rng = rng or random
    total = abs(sum(rng.randint(-2, 2) for _ in range(15)))
    return total if total != 0 else 1


def random_int32(rng=None) -> int:
    """Uniform signed 32-bit integer"""
    rng = rng or random
    n = rng.getrandbits(32)
    return n - (1 << 32) if n >= (1 << 31) else n


def crossover_weights(first: Sequence[float], second: Sequence[float], rng=None) -> List[float]:
    """Uniform crossover: each weight comes from either parent, 50/50"""
    rng = rng or random
    if len(first) != len(second):
        raise ValueError(f"cannot cross vectors of length {len(first)} and {len(second)}")
    return [a if rng.random() < 0.5 else b for a, b in zip(first, second)]


def perturb_weights(weights: Sequence[float], rng=None) -> List[float]:
    """Jitter some weights by a factor of at most 1.3.

    Each weight is touched with probability PERTURB_CHANCE and then
    multiplied or divided by 1 + JITTER_SCALE * u1 * u2. The product of two
    uniforms keeps most factors close to 1.
    """
    rng = rng or random
    result = []
    for weight in weights:
        if rng.random() < PERTURB_CHANCE:
            factor = 1.0 + JITTER_SCALE * _open_unit(rng) * _open_unit(rng)
            weight = weight * factor if rng.random() < 0.5 else weight / factor
        result.append(weight)
    return result
