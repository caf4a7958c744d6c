import argparse
import logging
import sys

import cv2

from compare_images import compare_to_source, print_metrics
from errors import DownscaleError, InvalidRequest, UnreadableSource
from geometry import resolve_params
from policies import POLICIES, apply_policy

DEFAULT_WIDTH = 128
DEFAULT_HEIGHT = 0
DEFAULT_LAMBDA = 1.0

EPILOG = """examples:
  dpid myImage.jpg              downscales using default values
  dpid myImage.jpg 256          downscales to 256px width, keeping aspect ratio
  dpid myImage.jpg 0 256        downscales to 256px height, keeping aspect ratio
  dpid myImage.jpg 128 0 0.5    downscales to 128px width, keeping aspect ratio, using lambda=0.5
  dpid myImage.jpg 128 128      downscales to 128x128px, ignoring aspect ratio
  dpid myImage.jpg 128 -p dpid bicubic --metrics
                                also writes the bicubic reference and prints quality metrics
"""

log = logging.getLogger("dpid")


def setup_logging(verbosity=0):
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(verbosity, 2)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )


def output_name(input_path, params, policy="dpid"):
    """
    Name the result after its input, size and method.

    DPID results carry lambda with six decimals, e.g. photo.jpg_128x96_1.000000.png;
    reference policies carry the policy name, e.g. photo.jpg_128x96_bicubic.png.
    """
    suffix = f"{params.lam:f}" if policy == "dpid" else policy
    return f"{input_path}_{params.out_width}x{params.out_height}_{suffix}.png"


def load_image(path):
    """
    Read an image from disk as 8-bit BGR.

    Raises:
        UnreadableSource: The file is missing or cannot be decoded
    """
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise UnreadableSource(f"unable to read image {path}")
    return image


def build_parser():
    parser = argparse.ArgumentParser(
        prog="dpid",
        description="Detail-preserving image downscaling",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", type=str,
                        help="Path to the source image")
    parser.add_argument("width", type=int, nargs="?", default=DEFAULT_WIDTH,
                        help="Output width in pixels, 0 to derive it from the height (default: %(default)s)")
    parser.add_argument("height", type=int, nargs="?", default=DEFAULT_HEIGHT,
                        help="Output height in pixels, 0 to derive it from the width (default: %(default)s)")
    parser.add_argument("lam", metavar="lambda", type=float, nargs="?", default=DEFAULT_LAMBDA,
                        help="Detail preservation, 0 = box filter (default: %(default)s)")
    parser.add_argument("-p", "--policy", nargs="+", default=["dpid"], choices=sorted(POLICIES),
                        help="Reduction method(s) to run; one output file each (default: dpid)")
    parser.add_argument("-o", "--output", type=str, default=None,
                        help="Output path (only with a single policy)")
    parser.add_argument("-j", "--workers", type=int, default=None,
                        help="Worker threads for dpid (default: all cores)")
    parser.add_argument("--metrics", action="store_true",
                        help="Print MSE/PSNR/SSIM of each result against the source")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity (-v, -vv)")
    return parser


def run(args):
    if not args.width and not args.height:
        raise InvalidRequest("either width or height has to be non-zero")
    # Same policy twice would write the same file twice
    selected = list(dict.fromkeys(args.policy))
    if args.output and len(selected) > 1:
        raise InvalidRequest("--output can only be used with a single policy")

    native_image = load_image(args.input)
    height, width = native_image.shape[:2]
    log.info("Loaded %s (%dx%d)", args.input, width, height)

    params = resolve_params(args.width, args.height, width, height, args.lam)

    for policy in selected:
        print(f"Running policy: {policy}...")
        reduced_image = apply_policy(policy, native_image, params, workers=args.workers)

        out_path = args.output or output_name(args.input, params, policy)
        try:
            success = cv2.imwrite(out_path, reduced_image)
        except cv2.error as e:
            log.debug("imwrite failed: %s", e)
            success = False
        if not success:
            print(f"Error: Could not save image to {out_path}", file=sys.stderr)
            return 1
        print(f"Output filename: {out_path}")

        if args.metrics:
            print_metrics(f"{policy} vs source", compare_to_source(native_image, reduced_image))

    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        return run(args)
    except DownscaleError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
