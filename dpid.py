"""
Detail-preserving image downscaling (DPID).

Every output pixel is a weighted average of the source pixels its patch
covers. Weights are the pixel's area overlap with the patch times its color
distance from the patch mean raised to `lam`:

    lam = 0    plain area (box filter) average
    lam > 0    pixels that stand out from their neighbourhood dominate

Output pixels are independent of each other, so rows are computed as pure
tasks and can be spread over a thread pool.
"""
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from errors import InvalidRequest
from geometry import resolve_params
from patches import axis_span, patch_bounds

log = logging.getLogger("dpid")

# Deviations below this are rounding noise of the mean, not image content
DEVIATION_EPSILON = 1e-9
# Importance sums at or below this fraction of the patch area count as zero
REDUCER_EPSILON = 1e-12


def guide_mean(colors, weights):
    """
    Area-weighted mean color of a patch (the box filter result).

    Args:
        colors: Array of shape (..., C)
        weights: Overlap weights, shape colors.shape[:-1]

    Returns:
        float64 array of shape (C,)
    """
    weights = np.asarray(weights, dtype=np.float64)
    total = weights.sum()
    if not total > 0:
        raise RuntimeError(f"patch has non-positive total weight {total}; patch sampling is broken")

    colors = np.asarray(colors, dtype=np.float64)
    weighted = (colors * weights[..., None]).reshape(-1, colors.shape[-1]).sum(axis=0)
    return weighted / total


def importance_weights(colors, weights, mean, lam):
    """
    Per-pixel importance: weight * ||color - mean|| ** lam.

    The power is evaluated relative to the largest deviation in the patch,
    weight * exp(lam * log(deviation / peak)), so every importance is scaled
    by the same factor peak ** -lam. That factor cancels in the final ratio,
    the results stay within [0, weight] and nothing overflows for large lam.

    Special cases:
        lam == 0: 0 ** 0 is taken as 1, importance equals weight
        uniform patch, lam > 0: all importances are 0

    Args:
        colors: Array of shape (..., C)
        weights: Overlap weights, shape colors.shape[:-1]
        mean: Guide mean, shape (C,)
        lam: Exponent, >= 0

    Returns:
        float64 array with the shape of weights
    """
    weights = np.asarray(weights, dtype=np.float64)
    if lam == 0:
        return weights.copy()

    diff = np.asarray(colors, dtype=np.float64) - mean
    deviation = np.sqrt(np.sum(diff * diff, axis=-1))
    deviation[deviation < DEVIATION_EPSILON] = 0.0

    peak = deviation.max()
    if peak == 0:
        return np.zeros_like(weights)

    with np.errstate(divide="ignore"):
        relative = np.exp(lam * np.log(deviation / peak))
    return weights * relative


def reduce_patch(colors, weights, lam):
    """
    Reduce one patch to a single (unrounded) color.

    Falls back to the guide mean when the importances sum to zero, which
    happens for uniform patches with lam > 0.
    """
    mean = guide_mean(colors, weights)
    importance = importance_weights(colors, weights, mean, lam)

    total = importance.sum()
    if total <= REDUCER_EPSILON * np.sum(weights):
        return mean

    colors = np.asarray(colors, dtype=np.float64)
    weighted = (colors * importance[..., None]).reshape(-1, colors.shape[-1]).sum(axis=0)
    return weighted / total


def finalize_color(value, dtype):
    """Round and clamp a float color to the value range of `dtype`."""
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.clip(np.rint(value), info.min, info.max).astype(dtype)
    return np.clip(value, 0.0, 1.0).astype(dtype)


def _check_source(source):
    if not isinstance(source, np.ndarray):
        raise InvalidRequest(f"source must be a numpy array, got {type(source).__name__}")
    if source.ndim != 3 or source.shape[2] != 3:
        raise InvalidRequest(f"source must have shape (height, width, 3), got {source.shape}")
    if not (np.issubdtype(source.dtype, np.integer) or np.issubdtype(source.dtype, np.floating)):
        raise InvalidRequest(f"unsupported pixel type {source.dtype}")


def reduce_image(source, params, workers=None):
    """
    Run the reduction described by `params` over the whole output grid.

    Args:
        source: Image of shape (params.in_height, params.in_width, 3), read only
        params: Resolved geometry.Params
        workers: Number of threads, None for os.cpu_count(), 1 to stay serial

    Returns:
        New image of shape (params.out_height, params.out_width, 3), same dtype
    """
    _check_source(source)
    height, width = source.shape[:2]
    if (width, height) != (params.in_width, params.in_height):
        raise InvalidRequest(
            f"params were resolved for {params.in_width}x{params.in_height}, "
            f"source is {width}x{height}"
        )

    if workers is not None and workers < 0:
        raise InvalidRequest(f"worker count must not be negative, got {workers}")
    workers = workers or os.cpu_count() or 1
    workers = max(1, min(int(workers), params.out_height))

    # Column spans are shared by every row
    columns = [
        axis_span(*patch_bounds(ox, params.in_width, params.out_width))
        for ox in range(params.out_width)
    ]

    def reduce_row(oy):
        rows = axis_span(*patch_bounds(oy, params.in_height, params.out_height))
        band = source[rows.as_slice()]
        row = np.empty((params.out_width, 3), dtype=source.dtype)
        for ox, cols in enumerate(columns):
            colors = band[:, cols.as_slice()]
            weights = np.outer(rows.weights, cols.weights)
            row[ox] = finalize_color(reduce_patch(colors, weights, params.lam), source.dtype)
        return row

    log.debug(
        "Reducing %dx%d -> %dx%d (patch %.3fx%.3f, lambda=%g) on %d worker(s)",
        params.in_width, params.in_height, params.out_width, params.out_height,
        *params.scale, params.lam, workers,
    )
    started = time.perf_counter()

    output = np.empty((params.out_height, params.out_width, 3), dtype=source.dtype)
    if workers == 1:
        for oy, row in enumerate(map(reduce_row, range(params.out_height))):
            output[oy] = row
    else:
        # pool.map yields in submission order; draining it is the barrier
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for oy, row in enumerate(pool.map(reduce_row, range(params.out_height))):
                output[oy] = row

    log.info("Reduced to %dx%d in %.3fs", params.out_width, params.out_height, time.perf_counter() - started)
    return output


def reduce(source, requested_width=None, requested_height=None, lam=1.0, workers=None):
    """
    Downscale `source` with DPID.

    One of requested_width / requested_height may be 0 or None, in which
    case it is derived from the source aspect ratio.

    Raises:
        InvalidRequest: Bad sizes, lambda, or source array
        UnsupportedScale: The requested output is larger than the source
    """
    _check_source(source)
    height, width = source.shape[:2]
    params = resolve_params(requested_width, requested_height, width, height, lam)
    return reduce_image(source, params, workers=workers)
