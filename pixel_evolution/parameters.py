"""
pixel_evolution/parameters.py - Weight vectors that steer random tree generation
"""
import json
import random
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Tuple

from .exceptions import InvalidWeightsError
from .generator import ExpressionGenerator, DEFAULT_MAX_DEPTH
from .operators import BINARY_OPS, BITWISE_OPS
from .utils import validate_weights, crossover_weights, perturb_weights

# Required length of every weight vector
WEIGHT_LENGTHS = {
    'root_weights': 3,
    'leaf_weights': 3,
    'min_depth_iexpr_weights': 6,
    'iexpr_weights': 9,
    'min_depth_vexpr_weights': 6,
    'vexpr_weights': 7,
    'unary_weights': 8,
    'binary_weights': 6,
}


@dataclass(frozen=True)
class Parameters:
    """Production and operator weights for the expression generator.

    Instances are immutable: breeding returns a new bundle.
    """
    root_weights: Tuple[float, ...] = (1.0,) * 3
    leaf_weights: Tuple[float, ...] = (1.0,) * 3
    min_depth_iexpr_weights: Tuple[float, ...] = (1.0,) * 6
    iexpr_weights: Tuple[float, ...] = (1.0,) * 9
    min_depth_vexpr_weights: Tuple[float, ...] = (1.0,) * 6
    vexpr_weights: Tuple[float, ...] = (1.0,) * 7
    unary_weights: Tuple[float, ...] = (1.0,) * 8
    binary_weights: Tuple[float, ...] = (1.0,) * 6

    def __post_init__(self):
        for name, length in WEIGHT_LENGTHS.items():
            weights = tuple(float(w) for w in getattr(self, name))
            if len(weights) != length:
                raise InvalidWeightsError(f"{name} needs {length} weights, got {len(weights)}")
            try:
                validate_weights(weights)
            except InvalidWeightsError as e:
                raise InvalidWeightsError(f"{name}: {e}") from e
            object.__setattr__(self, name, weights)

    @classmethod
    def default(cls, include_bitwise: bool = True) -> 'Parameters':
        """Uniform weights; without bitwise operators if include_bitwise is False"""
        params = cls()
        if not include_bitwise:
            binary = tuple(0.0 if op in BITWISE_OPS else 1.0 for op in BINARY_OPS)
            params = replace(params, binary_weights=binary)
        return params

    def weight_vectors(self) -> Dict[str, Tuple[float, ...]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def crossover(self, other: 'Parameters', rng=None) -> 'Parameters':
        """Child taking every single weight from self or other, 50/50"""
        return Parameters(**{
            name: crossover_weights(weights, getattr(other, name), rng)
            for name, weights in self.weight_vectors().items()
        })

    def perturb(self, rng=None) -> 'Parameters':
        return Parameters(**{
            name: perturb_weights(weights, rng)
            for name, weights in self.weight_vectors().items()
        })

    def breed(self, other: 'Parameters', rng=None) -> 'Parameters':
        """Crossover followed by perturbation"""
        rng = rng or random
        return self.crossover(other, rng).perturb(rng)

    def generate_expression(self, max_depth: int = DEFAULT_MAX_DEPTH, min_depth: int = 0, rng=None):
        return ExpressionGenerator(self, rng).generate(max_depth, min_depth)

    def to_dict(self) -> Dict[str, Any]:
        return {name: list(weights) for name, weights in self.weight_vectors().items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Parameters':
        return cls(**{name: tuple(data[name]) for name in WEIGHT_LENGTHS if name in data})

    def to_json(self, filename: str = None) -> str:
        """Serialize to JSON string or file"""
        json_str = json.dumps(self.to_dict(), indent=2)
        if filename:
            with open(filename, 'w') as f:
                f.write(json_str)
        return json_str

    @classmethod
    def from_json(cls, json_data: str = None, filename: str = None) -> 'Parameters':
        """Deserialize from JSON string or file"""
        if filename:
            with open(filename, 'r') as f:
                json_data = f.read()
        return cls.from_dict(json.loads(json_data))
