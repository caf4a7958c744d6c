import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Span:
    """
    Overlap of a real interval [lo, hi) with the unit pixel grid.

    weights[i] is the length of the overlap between the interval and the
    cell [start + i, start + i + 1). Every weight lies in (0, 1].
    """
    start: int
    weights: np.ndarray

    @property
    def stop(self):
        return self.start + len(self.weights)

    def as_slice(self):
        return slice(self.start, self.stop)

    def __iter__(self):
        for offset, weight in enumerate(self.weights):
            yield self.start + offset, float(weight)


def axis_span(lo, hi):
    """
    Compute the Span of cells touched by [lo, hi) with non-zero overlap.

    Args:
        lo: Interval start in source pixel coordinates
        hi: Interval end, hi > lo

    Returns:
        Span starting at floor(lo)
    """
    start = math.floor(lo)
    stop = math.ceil(hi)
    cells = np.arange(start, stop, dtype=np.float64)
    weights = np.minimum(cells + 1.0, hi) - np.maximum(cells, lo)

    # Drop a zero-length cell at either end (hi landing exactly on a boundary)
    keep = weights > 0
    first = int(np.argmax(keep))
    last = len(keep) - int(np.argmax(keep[::-1]))
    return Span(start=start + first, weights=weights[first:last])


def patch_bounds(index, in_size, out_size):
    """
    Return the [lo, hi) source interval covered by output index `index`.

    Bounds are computed as index * in_size / out_size so that neighbouring
    patches share a bit-identical edge and the last one ends at in_size.
    """
    lo = index * in_size / out_size
    hi = min((index + 1) * in_size / out_size, float(in_size))
    return lo, hi


@dataclass(frozen=True)
class Patch:
    """Real-valued source rectangle [x0, x1) x [y0, y1) of one output pixel."""
    x0: float
    x1: float
    y0: float
    y1: float

    @property
    def area(self):
        return (self.x1 - self.x0) * (self.y1 - self.y0)

    def columns(self):
        return axis_span(self.x0, self.x1)

    def rows(self):
        return axis_span(self.y0, self.y1)

    def weights(self):
        """2-D overlap weights, shape (rows, columns)."""
        return np.outer(self.rows().weights, self.columns().weights)

    def block(self, image):
        """View of the source pixels touched by this patch."""
        return image[self.rows().as_slice(), self.columns().as_slice()]

    def __iter__(self):
        # Fresh generator per iteration; nothing is materialised up front
        columns = self.columns()
        for sy, row_weight in self.rows():
            for sx, column_weight in columns:
                yield (sx, sy), row_weight * column_weight


def patch_at(params, ox, oy):
    """
    Get the source Patch mapped to output pixel (ox, oy).

    Args:
        params: Resolved geometry.Params
        ox: Output column, 0 <= ox < params.out_width
        oy: Output row, 0 <= oy < params.out_height

    Returns:
        Patch clamped to the source extent
    """
    if not (0 <= ox < params.out_width and 0 <= oy < params.out_height):
        raise IndexError(f"output pixel ({ox}, {oy}) outside {params.out_width}x{params.out_height}")

    x0, x1 = patch_bounds(ox, params.in_width, params.out_width)
    y0, y1 = patch_bounds(oy, params.in_height, params.out_height)
    return Patch(x0=x0, x1=x1, y0=y0, y1=y1)
