"""
pixel_evolution/generator.py - Random expression trees driven by Parameters

Every node picks its production from one of three weight vectors depending
on how much depth is left:

    max_depth == 0   leaves only
    min_depth > 0    growth only (no leaves), so trees reach min_depth
    otherwise        everything, leaves included
"""
import logging
import random

from .ast_nodes import (
    IExpr, VExpr, Lit, Rgb, PixelX, PixelY, Channel, Scale256, UnaryI, BinaryI,
    BinaryV, IfThenElseI, IfThenElseV, Pixel, Swap, PairBinaryI, PairUnaryV,
    PairBinaryV, PairIfThenElseI, PairIfThenElseV,
)
from .operators import Unary, UNARY_OPS, BINARY_OPS, PARAMETRIC_UNARY_OPS
from .utils import weighted_choice, small_positive, random_int32

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 6
DEFAULT_MIN_DEPTH = 2

# Wrappers that keep every generated image inside [0, 255]
ROOT_WRAPPERS = ['scale256', 'mod256', 'clamp256']


class ExpressionGenerator:
    """Builds random trees from one Parameters bundle"""

    def __init__(self, parameters, rng=None):
        self.parameters = parameters
        self.rng = rng or random

    def _coin(self) -> bool:
        return self.rng.random() < 0.5

    def gen_literal(self) -> IExpr:
        if self._coin():
            return Rgb(small_positive(self.rng), small_positive(self.rng), small_positive(self.rng))
        return Lit(random_int32(self.rng))

    def gen_pixel_component(self) -> IExpr:
        return PixelX() if self._coin() else PixelY()

    def gen_unary(self) -> Unary:
        name = UNARY_OPS[weighted_choice(self.parameters.unary_weights, self.rng)]
        if name in PARAMETRIC_UNARY_OPS:
            return Unary(name, small_positive(self.rng))
        return Unary(name)

    def gen_binary(self) -> str:
        return BINARY_OPS[weighted_choice(self.parameters.binary_weights, self.rng)]

    def gen_vexpr(self, max_depth: int, min_depth: int) -> VExpr:
        if max_depth == 0:
            return Pixel()

        if min_depth > 0:
            # growth productions only; shift past the Pixel leaf
            choice = 1 + weighted_choice(self.parameters.min_depth_vexpr_weights, self.rng)
        else:
            choice = weighted_choice(self.parameters.vexpr_weights, self.rng)

        def sub_i():
            return self.gen_iexpr(max_depth - 1, max(min_depth - 1, 0))

        def sub_v():
            return self.gen_vexpr(max_depth - 1, max(min_depth - 1, 0))

        if choice == 0:
            return Pixel()
        elif choice == 1:
            return Swap(sub_v())
        elif choice == 2:
            op_1, op_2 = self.gen_binary(), self.gen_binary()
            return PairBinaryI(op_1, op_2, sub_i(), sub_i())
        elif choice == 3:
            return PairUnaryV(self.gen_unary(), sub_v())
        elif choice == 4:
            return PairBinaryV(self.gen_binary(), sub_v(), sub_v())
        elif choice == 5:
            return PairIfThenElseI(sub_i(), sub_v(), sub_v())
        return PairIfThenElseV(sub_v(), sub_v(), sub_v())

    def gen_iexpr(self, max_depth: int, min_depth: int) -> IExpr:
        if max_depth == 0:
            choice = weighted_choice(self.parameters.leaf_weights, self.rng)
        elif min_depth > 0:
            # growth productions only; shift past the three leaves
            choice = 3 + weighted_choice(self.parameters.min_depth_iexpr_weights, self.rng)
        else:
            choice = weighted_choice(self.parameters.iexpr_weights, self.rng)

        def sub_i():
            return self.gen_iexpr(max_depth - 1, max(min_depth - 1, 0))

        def sub_v():
            return self.gen_vexpr(max_depth - 1, max(min_depth - 1, 0))

        if choice == 0:
            return self.gen_literal()
        elif choice == 1:
            return self.gen_pixel_component()
        elif choice == 2:
            return Channel()
        elif choice == 3:
            return Scale256(sub_i())
        elif choice == 4:
            return UnaryI(self.gen_unary(), sub_i())
        elif choice == 5:
            return BinaryI(self.gen_binary(), sub_i(), sub_i())
        elif choice == 6:
            return BinaryV(self.gen_binary(), sub_v())
        elif choice == 7:
            return IfThenElseI(sub_i(), sub_i(), sub_i())
        return IfThenElseV(sub_i(), sub_v())

    def generate(self, max_depth: int = DEFAULT_MAX_DEPTH, min_depth: int = 0) -> IExpr:
        """Random tree wrapped in a root operator that maps it onto [0, 255]"""
        if max_depth < 0 or min_depth < 0:
            raise ValueError("Depths must be non-negative")
        if min_depth > max_depth:
            raise ValueError(f"min_depth ({min_depth}) exceeds max_depth ({max_depth})")

        interior = self.gen_iexpr(max_depth, min_depth)
        wrapper = ROOT_WRAPPERS[weighted_choice(self.parameters.root_weights, self.rng)]
        if wrapper == 'scale256':
            expr = Scale256(interior)
        else:
            expr = UnaryI(Unary(wrapper), interior)

        logger.debug("Generated tree: depth %d, %d nodes", expr.get_depth(), len(expr.get_all_nodes()))
        return expr


def generate(parameters, max_depth: int = DEFAULT_MAX_DEPTH, min_depth: int = 0, rng=None) -> IExpr:
    """Generate a random expression tree from a Parameters bundle"""
    return ExpressionGenerator(parameters, rng).generate(max_depth, min_depth)
