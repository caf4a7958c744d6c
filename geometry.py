import math
from dataclasses import dataclass

from errors import InvalidRequest, UnsupportedScale


@dataclass(frozen=True)
class Params:
    """
    Immutable description of one reduction.

    Patch sizes are the real-valued number of source pixels covered by one
    output pixel along each axis. `lam` is the detail-preservation exponent.
    """
    out_width: int
    out_height: int
    in_width: int
    in_height: int
    patch_width: float
    patch_height: float
    lam: float

    @property
    def scale(self):
        return self.patch_width, self.patch_height


def resolve_output_size(requested_width, requested_height, in_width, in_height):
    """
    Fill in a missing output dimension from the source aspect ratio.

    Args:
        requested_width: Output width in pixels, 0 or None to derive it
        requested_height: Output height in pixels, 0 or None to derive it
        in_width: Source width in pixels
        in_height: Source height in pixels

    Returns:
        Tuple of (out_width, out_height)
    """
    width = int(requested_width or 0)
    height = int(requested_height or 0)

    if width < 0 or height < 0:
        raise InvalidRequest(f"output size must not be negative, got {width}x{height}")
    if width == 0 and height == 0:
        raise InvalidRequest("either width or height has to be non-zero")
    if in_width <= 0 or in_height <= 0:
        raise InvalidRequest(f"source image is empty ({in_width}x{in_height})")

    # Keep aspect ratio for the unspecified side, halves round up
    if width == 0:
        width = max(1, math.floor(height / in_height * in_width + 0.5))
    if height == 0:
        height = max(1, math.floor(width / in_width * in_height + 0.5))

    return width, height


def resolve_params(requested_width, requested_height, in_width, in_height, lam):
    """
    Build validated Params for reducing an in_width x in_height source.

    Raises:
        InvalidRequest: Both sizes missing, negative sizes, or a bad lambda
        UnsupportedScale: The resolved output is larger than the source
    """
    lam = float(lam)
    if not math.isfinite(lam) or lam < 0:
        raise InvalidRequest(f"lambda must be a finite value >= 0, got {lam}")

    out_width, out_height = resolve_output_size(requested_width, requested_height, in_width, in_height)

    patch_width = in_width / out_width
    patch_height = in_height / out_height
    if patch_width < 1 or patch_height < 1:
        raise UnsupportedScale(
            f"cannot enlarge {in_width}x{in_height} to {out_width}x{out_height}; "
            f"only reduction is supported"
        )

    return Params(
        out_width=out_width,
        out_height=out_height,
        in_width=in_width,
        in_height=in_height,
        patch_width=patch_width,
        patch_height=patch_height,
        lam=lam,
    )
