"""
pixel_evolution - Vote-driven evolution of random expression images

Images are integer expressions over pixel coordinates and the color channel.
Random trees are drawn from weighted grammars (Parameters), and a pool of
Parameters evolves according to user up/down votes.
"""

__version__ = "0.1.0"
__author__ = "Pixel Evolution Project"

from .ast_nodes import (
    ASTNode, IExpr, VExpr,
    Lit, Rgb, PixelX, PixelY, Channel, Scale256, UnaryI, BinaryI, BinaryV,
    IfThenElseI, IfThenElseV,
    Pixel, Swap, PairBinaryI, PairUnaryV, PairBinaryV, PairIfThenElseI, PairIfThenElseV,
    node_from_dict, node_from_json,
)
from .operators import Unary, UNARY_OPS, BINARY_OPS, apply_unary, apply_binary
from .evaluator import Evaluator
from .generator import ExpressionGenerator, generate
from .parameters import Parameters
from .population import ParameterPool, PoolEntry
from .utils import weighted_choice, small_positive
from .exceptions import (
    PixelEvolutionError, MalformedExpressionError, InvalidWeightsError, PoolUnderflowError,
)

__all__ = [
    'ASTNode', 'IExpr', 'VExpr',
    'Lit', 'Rgb', 'PixelX', 'PixelY', 'Channel', 'Scale256', 'UnaryI', 'BinaryI', 'BinaryV',
    'IfThenElseI', 'IfThenElseV',
    'Pixel', 'Swap', 'PairBinaryI', 'PairUnaryV', 'PairBinaryV', 'PairIfThenElseI', 'PairIfThenElseV',
    'node_from_dict', 'node_from_json',
    'Unary', 'UNARY_OPS', 'BINARY_OPS', 'apply_unary', 'apply_binary',
    'Evaluator',
    'ExpressionGenerator', 'generate',
    'Parameters',
    'ParameterPool', 'PoolEntry',
    'weighted_choice', 'small_positive',
    'PixelEvolutionError', 'MalformedExpressionError', 'InvalidWeightsError', 'PoolUnderflowError',
]
