import cv2
import numpy as np

import dpid
from patches import patch_at


def dpid_policy(native_image, params, workers=None):
    """
    Policy: Detail-Preserving Downscale
    Weighted patch average biased toward pixels that deviate from the patch mean.

    Args:
        native_image: Input image in BGR format
        params: Resolved geometry.Params
        workers: Thread count for the dispatcher (None = all cores)

    Returns:
        Reduced image, params.out_height x params.out_width
    """
    return dpid.reduce_image(native_image, params, workers=workers)


def box_policy(native_image, params, workers=None):
    """
    Policy: Box Filter
    Area-weighted mean of every patch, i.e. DPID's guide image on its own.
    Walks each patch pixel by pixel, so it also serves as an independent
    reference for the vectorised dispatcher at lambda = 0.

    Args:
        native_image: Input image in BGR format
        params: Resolved geometry.Params
        workers: Ignored, the box filter always runs serially

    Returns:
        Reduced image, params.out_height x params.out_width
    """
    out_image = np.empty((params.out_height, params.out_width, 3), dtype=native_image.dtype)

    for oy in range(params.out_height):
        for ox in range(params.out_width):
            pairs = list(patch_at(params, ox, oy))
            colors = np.array([native_image[sy, sx] for (sx, sy), _ in pairs], dtype=np.float64)
            weights = np.array([weight for _, weight in pairs])
            out_image[oy, ox] = dpid.finalize_color(dpid.guide_mean(colors, weights), native_image.dtype)

    return out_image


def cubic_policy(native_image, params, workers=None):
    """
    Policy: Bicubic
    Standard cubic interpolation via OpenCV. Not part of DPID; kept as the
    visual comparison baseline.
    """
    return cv2.resize(native_image, (params.out_width, params.out_height), interpolation=cv2.INTER_CUBIC)


def nearest_policy(native_image, params, workers=None):
    """
    Policy: Nearest Neighbor
    Point sampling via OpenCV, the worst case for aliasing.
    """
    return cv2.resize(native_image, (params.out_width, params.out_height), interpolation=cv2.INTER_NEAREST)


POLICIES = {
    "dpid": dpid_policy,
    "box": box_policy,
    "bicubic": cubic_policy,
    "nearest": nearest_policy,
}


def apply_policy(name, native_image, params, workers=None):
    """
    Run the policy registered under `name`.

    Raises:
        KeyError: Unknown policy name
    """
    try:
        policy = POLICIES[name]
    except KeyError:
        raise KeyError(f"Unknown policy '{name}'. Available: {', '.join(sorted(POLICIES))}") from None
    return policy(native_image, params, workers=workers)
