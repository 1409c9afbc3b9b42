"""
pixel_evolution/evaluator.py - Vectorized stack machine for expression trees

The whole batch of pixel positions is evaluated together: the tree is walked
once, depth first, and every stack operation is applied to all positions at
the same time. Each stack item is a numpy array covering the batch, either

    shape (N,)     one value shared by all three channels, or
    shape (N, 3)   a genuine per-channel triple.

Scale256 needs the min and max of its child over the entire batch, which is
why positions cannot be evaluated one at a time.
"""
import logging
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np
from PIL import Image

from .ast_nodes import IExpr
from .exceptions import MalformedExpressionError
from .operators import Unary, apply_binary, apply_unary

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

# Output of Scale256 for a channel that is constant over the batch
DEGENERATE_MIDPOINT = 127


def _as_triple(values: np.ndarray) -> np.ndarray:
    if values.ndim == 1:
        return np.repeat(values[:, np.newaxis], 3, axis=1)
    return values


def _broadcastable(values: np.ndarray, other: np.ndarray) -> np.ndarray:
    # A shared value next to a triple gets a channel axis of length 1
    if values.ndim == 1 and other.ndim == 2:
        return values[:, np.newaxis]
    return values


class Batch:
    """Lockstep value stacks for a set of pixel positions"""

    def __init__(self, x: np.ndarray, y: np.ndarray):
        self.x = x
        self.y = y
        self.size = len(x)
        self.stack: List[np.ndarray] = []

    def push(self, values: np.ndarray) -> None:
        self.stack.append(values)

    def pop(self) -> np.ndarray:
        if not self.stack:
            raise MalformedExpressionError("Pop from an empty evaluation stack")
        return self.stack.pop()

    def pop_2(self) -> Tuple[np.ndarray, np.ndarray]:
        """Pop two items, returned in push order"""
        b = self.pop()
        a = self.pop()
        return a, b

    def constant(self, value: int) -> np.ndarray:
        return np.full(self.size, value, dtype=np.int32)

    def triple(self, r: int, g: int, b: int) -> np.ndarray:
        return np.tile(np.array([r, g, b], dtype=np.int32), (self.size, 1))

    def unary(self, op: Unary, values: np.ndarray) -> np.ndarray:
        return apply_unary(op, values)

    def binary(self, name: str, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return apply_binary(name, _broadcastable(a, b), _broadcastable(b, a))

    def select(self, cond: np.ndarray, then: np.ndarray, otherwise: np.ndarray) -> np.ndarray:
        """Per channel: then where cond > 0, otherwise elsewhere"""
        if cond.ndim == then.ndim == otherwise.ndim == 1:
            return np.where(cond > 0, then, otherwise)
        return np.where(_as_triple(cond) > 0, _as_triple(then), _as_triple(otherwise))

    def scale_256(self) -> None:
        """Rescale the top of the stack onto [0, 255] using batch-wide extremes.

        Reduction happens in float64 so max - min cannot overflow.
        """
        values = self.pop()
        if self.size == 0:
            self.push(values)
            return

        data = values.astype(np.float64)
        minimums = data.min(axis=0)
        maximums = data.max(axis=0)
        ranges = maximums - minimums
        degenerate = ranges == 0

        safe_ranges = np.where(degenerate, 1.0, ranges)
        scaled = np.rint(255.0 * (data - minimums) / safe_ranges)
        scaled = np.where(degenerate, DEGENERATE_MIDPOINT, scaled)
        self.push(scaled.astype(np.int32))


class Evaluator:
    """Evaluates expression trees over batches of pixel positions"""

    def create_coordinate_grid(self, width: int, height: int) -> np.ndarray:
        """Raster scan of a width x height image: row by row, x fastest"""
        ys, xs = np.mgrid[0:height, 0:width]
        return np.stack([xs.ravel(), ys.ravel()], axis=1).astype(np.int32)

    def evaluate_array(self, expression: IExpr, positions: Iterable[Tuple[int, int]]) -> np.ndarray:
        """Evaluate expression at every position; returns an (N, 3) int32 array"""
        if isinstance(positions, np.ndarray):
            coords = positions
        else:
            coords = np.array(list(positions), dtype=np.int64)
        # wrap like any other 32-bit value
        coords = coords.reshape(-1, 2).astype(np.int32)

        batch = Batch(coords[:, 0], coords[:, 1])
        logger.debug("Evaluating %d-node tree over %d positions",
                     len(expression.get_all_nodes()), batch.size)
        expression.eval_on_batch(batch)

        if len(batch.stack) != 1:
            raise MalformedExpressionError(
                f"Evaluation left {len(batch.stack)} values on the stack, expected 1")
        return _as_triple(batch.stack[0]).astype(np.int32)

    def evaluate(self, expression: IExpr, positions: Iterable[Tuple[int, int]]) -> Iterator[Color]:
        """Evaluate expression at every position, yielding one (r, g, b) each.

        The whole batch is computed up front; the iterator only hands out
        the results. Call again to restart.
        """
        colors = self.evaluate_array(expression, positions)
        return (tuple(int(c) for c in row) for row in colors)

    def render_image(self, expression: IExpr, width: int = 256, height: int = 256,
                     scale: int = 1, filename: Optional[str] = None) -> Image.Image:
        """Render expression as an RGB image, each pixel drawn as a scale x scale block"""
        colors = self.evaluate_array(expression, self.create_coordinate_grid(width, height))
        # only wrapped roots guarantee the byte range
        rgb_array = np.clip(colors, 0, 255).astype(np.uint8).reshape(height, width, 3)
        if scale > 1:
            rgb_array = np.repeat(np.repeat(rgb_array, scale, axis=0), scale, axis=1)
        img = Image.fromarray(rgb_array, 'RGB')
        if filename:
            img.save(filename)
        return img
