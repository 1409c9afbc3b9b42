"""
pixel_evolution/ast_nodes.py - Expression tree nodes

Two mutually recursive node families:

    IExpr   produces one value (a scalar or a channel triple) per pixel
    VExpr   produces a pair of such values per pixel

Nodes are frozen dataclasses. A tree is never modified after construction;
breeding works on Parameters, not on trees.

Each node knows how to run itself on a Batch (see evaluator.py): evaluate
the children in order, then pop their results off the stack and push the
node's own result, for every position at once.
"""
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Any, Dict, List

from .operators import Unary, BINARY_SYMBOLS, check_binary

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1


class ASTNode(ABC):
    """Base class for all expression nodes"""

    @abstractmethod
    def eval_on_batch(self, batch) -> None:
        """Push this node's result for every position onto the batch stack"""

    @property
    def children(self) -> List['ASTNode']:
        return [getattr(self, f.name) for f in fields(self)
                if isinstance(getattr(self, f.name), ASTNode)]

    def get_all_nodes(self) -> List['ASTNode']:
        """Get all nodes in this subtree"""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.get_all_nodes())
        return nodes

    def get_depth(self) -> int:
        """Get maximum depth of this subtree"""
        if not self.children:
            return 1
        return 1 + max(child.get_depth() for child in self.children)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary"""
        data = {'type': type(self).__name__}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (ASTNode, Unary)):
                value = value.to_dict()
            data[f.name] = value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ASTNode':
        """Deserialize from dictionary"""
        kwargs = {}
        for f in fields(cls):
            value = data[f.name]
            if f.type is Unary:
                value = Unary.from_dict(value)
            elif f.type in (IExpr, VExpr):
                value = node_from_dict(value)
            kwargs[f.name] = value
        return cls(**kwargs)

    def _check_kinds(self, **expected):
        for name, kind in expected.items():
            if not isinstance(getattr(self, name), kind):
                raise TypeError(f"{type(self).__name__}.{name} must be an {kind.__name__}, "
                                f"got {type(getattr(self, name)).__name__}")


class IExpr(ASTNode):
    """Expression yielding one value per pixel"""


class VExpr(ASTNode):
    """Expression yielding a pair of values per pixel"""


# --- Scalar expressions ---

@dataclass(frozen=True)
class Lit(IExpr):
    """32-bit constant, the same on every channel"""
    value: int

    def __post_init__(self):
        if not isinstance(self.value, int) or not INT32_MIN <= self.value <= INT32_MAX:
            raise ValueError(f"Literal out of int32 range: {self.value!r}")

    def eval_on_batch(self, batch) -> None:
        batch.push(batch.constant(self.value))

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class Rgb(IExpr):
    """Per-channel constant"""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for channel in (self.r, self.g, self.b):
            if not isinstance(channel, int) or not 0 <= channel <= 255:
                raise ValueError(f"Rgb channel out of range: {channel!r}")

    def eval_on_batch(self, batch) -> None:
        batch.push(batch.triple(self.r, self.g, self.b))

    def __str__(self):
        return f"{self.r}/{self.g}/{self.b}"


@dataclass(frozen=True)
class PixelX(IExpr):

    def eval_on_batch(self, batch) -> None:
        batch.push(batch.x)

    def __str__(self):
        return 'x'


@dataclass(frozen=True)
class PixelY(IExpr):

    def eval_on_batch(self, batch) -> None:
        batch.push(batch.y)

    def __str__(self):
        return 'y'


@dataclass(frozen=True)
class Channel(IExpr):
    """Yields (-1, 0, 1), letting formulas differ between channels"""

    def eval_on_batch(self, batch) -> None:
        batch.push(batch.triple(-1, 0, 1))

    def __str__(self):
        return 'c'


@dataclass(frozen=True)
class Scale256(IExpr):
    """Stretch the child's batch-wide range onto [0, 255], per channel"""
    child: IExpr

    def __post_init__(self):
        self._check_kinds(child=IExpr)

    def eval_on_batch(self, batch) -> None:
        self.child.eval_on_batch(batch)
        batch.scale_256()

    def __str__(self):
        return f"(scale-256 {self.child})"


@dataclass(frozen=True)
class UnaryI(IExpr):
    op: Unary
    child: IExpr

    def __post_init__(self):
        self._check_kinds(op=Unary, child=IExpr)

    def eval_on_batch(self, batch) -> None:
        self.child.eval_on_batch(batch)
        batch.push(batch.unary(self.op, batch.pop()))

    def __str__(self):
        return f"({self.op} {self.child})"


@dataclass(frozen=True)
class BinaryI(IExpr):
    op: str
    left: IExpr
    right: IExpr

    def __post_init__(self):
        check_binary(self.op)
        self._check_kinds(left=IExpr, right=IExpr)

    def eval_on_batch(self, batch) -> None:
        self.left.eval_on_batch(batch)
        self.right.eval_on_batch(batch)
        a, b = batch.pop_2()
        batch.push(batch.binary(self.op, a, b))

    def __str__(self):
        return f"({BINARY_SYMBOLS[self.op]} {self.left} {self.right})"


@dataclass(frozen=True)
class BinaryV(IExpr):
    """Binary operator applied to the two halves of a pair"""
    op: str
    child: VExpr

    def __post_init__(self):
        check_binary(self.op)
        self._check_kinds(child=VExpr)

    def eval_on_batch(self, batch) -> None:
        self.child.eval_on_batch(batch)
        a, b = batch.pop_2()
        batch.push(batch.binary(self.op, a, b))

    def __str__(self):
        return f"({BINARY_SYMBOLS[self.op]} {self.child})"


@dataclass(frozen=True)
class IfThenElseI(IExpr):
    cond: IExpr
    then: IExpr
    otherwise: IExpr

    def __post_init__(self):
        self._check_kinds(cond=IExpr, then=IExpr, otherwise=IExpr)

    def eval_on_batch(self, batch) -> None:
        self.cond.eval_on_batch(batch)
        self.then.eval_on_batch(batch)
        self.otherwise.eval_on_batch(batch)
        val_then, val_else = batch.pop_2()
        val_cond = batch.pop()
        batch.push(batch.select(val_cond, val_then, val_else))

    def __str__(self):
        return f"(if {self.cond} {self.then} {self.otherwise})"


@dataclass(frozen=True)
class IfThenElseV(IExpr):
    """Pick the first half of the pair where cond > 0, else the second"""
    cond: IExpr
    cases: VExpr

    def __post_init__(self):
        self._check_kinds(cond=IExpr, cases=VExpr)

    def eval_on_batch(self, batch) -> None:
        self.cond.eval_on_batch(batch)
        self.cases.eval_on_batch(batch)
        val_then, val_else = batch.pop_2()
        val_cond = batch.pop()
        batch.push(batch.select(val_cond, val_then, val_else))

    def __str__(self):
        return f"(if {self.cond} {self.cases})"


# --- Pair expressions ---

@dataclass(frozen=True)
class Pixel(VExpr):

    def eval_on_batch(self, batch) -> None:
        batch.push(batch.x)
        batch.push(batch.y)

    def __str__(self):
        return 'xy'


@dataclass(frozen=True)
class Swap(VExpr):
    child: VExpr

    def __post_init__(self):
        self._check_kinds(child=VExpr)

    def eval_on_batch(self, batch) -> None:
        self.child.eval_on_batch(batch)
        a, b = batch.pop_2()
        batch.push(b)
        batch.push(a)

    def __str__(self):
        return f"[swap {self.child}]"


@dataclass(frozen=True)
class PairBinaryI(VExpr):
    """Two operators over the same two scalars: (op_1(a, b), op_2(a, b))"""
    op_1: str
    op_2: str
    left: IExpr
    right: IExpr

    def __post_init__(self):
        check_binary(self.op_1)
        check_binary(self.op_2)
        self._check_kinds(left=IExpr, right=IExpr)

    def eval_on_batch(self, batch) -> None:
        self.left.eval_on_batch(batch)
        self.right.eval_on_batch(batch)
        a, b = batch.pop_2()
        batch.push(batch.binary(self.op_1, a, b))
        batch.push(batch.binary(self.op_2, a, b))

    def __str__(self):
        return f"[[{BINARY_SYMBOLS[self.op_1]} {BINARY_SYMBOLS[self.op_2]}] {self.left} {self.right}]"


@dataclass(frozen=True)
class PairUnaryV(VExpr):
    op: Unary
    child: VExpr

    def __post_init__(self):
        self._check_kinds(op=Unary, child=VExpr)

    def eval_on_batch(self, batch) -> None:
        self.child.eval_on_batch(batch)
        n_1, n_2 = batch.pop_2()
        batch.push(batch.unary(self.op, n_1))
        batch.push(batch.unary(self.op, n_2))

    def __str__(self):
        return f"[{self.op} {self.child}]"


@dataclass(frozen=True)
class PairBinaryV(VExpr):
    op: str
    left: VExpr
    right: VExpr

    def __post_init__(self):
        check_binary(self.op)
        self._check_kinds(left=VExpr, right=VExpr)

    def eval_on_batch(self, batch) -> None:
        self.left.eval_on_batch(batch)
        self.right.eval_on_batch(batch)
        b_1, b_2 = batch.pop_2()
        a_1, a_2 = batch.pop_2()
        batch.push(batch.binary(self.op, a_1, b_1))
        batch.push(batch.binary(self.op, a_2, b_2))

    def __str__(self):
        return f"[{BINARY_SYMBOLS[self.op]} {self.left} {self.right}]"


@dataclass(frozen=True)
class PairIfThenElseI(VExpr):
    """One scalar condition shared by both halves"""
    cond: IExpr
    then: VExpr
    otherwise: VExpr

    def __post_init__(self):
        self._check_kinds(cond=IExpr, then=VExpr, otherwise=VExpr)

    def eval_on_batch(self, batch) -> None:
        self.cond.eval_on_batch(batch)
        self.then.eval_on_batch(batch)
        self.otherwise.eval_on_batch(batch)
        else_1, else_2 = batch.pop_2()
        then_1, then_2 = batch.pop_2()
        cond = batch.pop()
        batch.push(batch.select(cond, then_1, else_1))
        batch.push(batch.select(cond, then_2, else_2))

    def __str__(self):
        return f"[if {self.cond} {self.then} {self.otherwise}]"


@dataclass(frozen=True)
class PairIfThenElseV(VExpr):
    """A condition pair: each half of the result has its own condition"""
    cond: VExpr
    then: VExpr
    otherwise: VExpr

    def __post_init__(self):
        self._check_kinds(cond=VExpr, then=VExpr, otherwise=VExpr)

    def eval_on_batch(self, batch) -> None:
        self.cond.eval_on_batch(batch)
        self.then.eval_on_batch(batch)
        self.otherwise.eval_on_batch(batch)
        else_1, else_2 = batch.pop_2()
        then_1, then_2 = batch.pop_2()
        cond_1, cond_2 = batch.pop_2()
        batch.push(batch.select(cond_1, then_1, else_1))
        batch.push(batch.select(cond_2, then_2, else_2))

    def __str__(self):
        return f"[if {self.cond} {self.then} {self.otherwise}]"


NODE_TYPES = {cls.__name__: cls for cls in (
    Lit, Rgb, PixelX, PixelY, Channel, Scale256, UnaryI, BinaryI, BinaryV,
    IfThenElseI, IfThenElseV,
    Pixel, Swap, PairBinaryI, PairUnaryV, PairBinaryV, PairIfThenElseI, PairIfThenElseV,
)}


def node_from_dict(data: Dict[str, Any]) -> ASTNode:
    """Create node from dictionary representation"""
    node_type = data['type']
    if node_type not in NODE_TYPES:
        raise ValueError(f"Unknown node type: {node_type}")
    return NODE_TYPES[node_type].from_dict(data)


def node_from_json(json_data: str) -> ASTNode:
    return node_from_dict(json.loads(json_data))
