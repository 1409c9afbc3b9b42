"""
pixel_evolution/exceptions.py - Error taxonomy
"""


class PixelEvolutionError(Exception):
    """Base class for errors raised by pixel_evolution"""


class MalformedExpressionError(PixelEvolutionError, RuntimeError):
    """Evaluating a tree left the stack in an impossible state.

    Generated trees never trigger this; it points at a bug in the grammar
    or in the evaluator rather than at bad runtime input.
    """


class InvalidWeightsError(PixelEvolutionError, ValueError):
    """A weight vector is empty, negative, non-finite or sums to zero"""


class PoolUnderflowError(PixelEvolutionError, RuntimeError):
    """Attempt to remove the last entry of a parameter pool"""
