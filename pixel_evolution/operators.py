"""
pixel_evolution/operators.py - Operator vocabulary with wrapping int32 semantics
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

# Order matters: Parameters.unary_weights and binary_weights index these lists
UNARY_OPS = ['square', 'cube', 'abs', 'neg', 'div', 'mod', 'mod256', 'clamp256']
BINARY_OPS = ['add', 'sub', 'mul', 'and', 'or', 'xor']
BITWISE_OPS = ['and', 'or', 'xor']

# Unary operators that carry a constant operand
PARAMETRIC_UNARY_OPS = ('div', 'mod')

BINARY_SYMBOLS = {'add': '+', 'sub': '-', 'mul': '*', 'and': '&', 'or': '|', 'xor': '^'}


@dataclass(frozen=True)
class Unary:
    """A unary operator, with its divisor for 'div' and 'mod'"""
    name: str
    operand: Optional[int] = None

    def __post_init__(self):
        if self.name not in UNARY_OPS:
            raise ValueError(f"Unknown unary operator: {self.name}")
        if self.name in PARAMETRIC_UNARY_OPS:
            if not isinstance(self.operand, int) or not 1 <= self.operand <= 255:
                raise ValueError(f"'{self.name}' needs an operand in [1, 255], got {self.operand!r}")
        elif self.operand is not None:
            raise ValueError(f"'{self.name}' takes no operand")

    def to_dict(self) -> Dict[str, Any]:
        data = {'name': self.name}
        if self.operand is not None:
            data['operand'] = self.operand
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Unary':
        return cls(data['name'], data.get('operand'))

    def __str__(self):
        if self.name == 'div':
            return f"/{self.operand}"
        elif self.name == 'mod':
            return f"%{self.operand}"
        elif self.name == 'mod256':
            return 'mod-256'
        elif self.name == 'clamp256':
            return 'clamp'
        return self.name


def check_binary(name: str) -> str:
    if name not in BINARY_OPS:
        raise ValueError(f"Unknown binary operator: {name}")
    return name


def apply_unary(op: Unary, values: np.ndarray) -> np.ndarray:
    """Apply op element-wise to an int32 array, wrapping on overflow.

    Division and remainder are Euclidean. Every divisor is positive, so
    this coincides with numpy's floor semantics.
    """
    if op.name == 'square':
        return values * values
    elif op.name == 'cube':
        return values * values * values
    elif op.name == 'abs':
        # abs(INT32_MIN) wraps back to INT32_MIN
        return np.abs(values)
    elif op.name == 'neg':
        return np.negative(values)
    elif op.name == 'div':
        return np.floor_divide(values, np.int32(op.operand))
    elif op.name == 'mod':
        return np.remainder(values, np.int32(op.operand))
    elif op.name == 'mod256':
        return np.remainder(values, np.int32(256))
    elif op.name == 'clamp256':
        return np.clip(values, 0, 255).astype(np.int32)
    raise ValueError(f"Unknown unary operator: {op.name}")


def apply_binary(name: str, left: np.ndarray, right: np.ndarray) -> np.ndarray:
    """Apply a binary operator to two broadcast-compatible int32 arrays"""
    if name == 'add':
        return np.add(left, right)
    elif name == 'sub':
        return np.subtract(left, right)
    elif name == 'mul':
        return np.multiply(left, right)
    elif name == 'and':
        return np.bitwise_and(left, right)
    elif name == 'or':
        return np.bitwise_or(left, right)
    elif name == 'xor':
        return np.bitwise_xor(left, right)
    raise ValueError(f"Unknown binary operator: {name}")
