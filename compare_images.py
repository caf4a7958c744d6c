import argparse

import cv2
import numpy as np
from skimage.metrics import mean_squared_error, peak_signal_noise_ratio, structural_similarity


def _data_range(image):
    if np.issubdtype(image.dtype, np.integer):
        return float(np.iinfo(image.dtype).max)
    return 1.0


def calculate_metrics(image1, image2):
    """Calculate image quality metrics between two images of the same size."""
    img1_float = image1.astype(np.float64)
    img2_float = image2.astype(np.float64)
    data_range = _data_range(image1)

    mse = mean_squared_error(img1_float, img2_float)

    if mse == 0:
        psnr = float('inf')
    else:
        psnr = peak_signal_noise_ratio(image1, image2, data_range=data_range)

    # SSIM window must fit inside the image and be odd
    win_size = min(7, *image1.shape[:2])
    if win_size % 2 == 0:
        win_size -= 1
    if win_size < 3:
        ssim = float('nan')
    else:
        img1_rgb = cv2.cvtColor(image1, cv2.COLOR_BGR2RGB)
        img2_rgb = cv2.cvtColor(image2, cv2.COLOR_BGR2RGB)
        ssim = structural_similarity(img1_rgb, img2_rgb, channel_axis=-1, data_range=data_range, win_size=win_size)

    return {"MSE": mse, "PSNR": psnr, "SSIM": ssim}


def upscale_nearest(reduced_image, source_shape):
    """Blow a reduced image back up to the source size, one block per output pixel."""
    height, width = source_shape[:2]
    return cv2.resize(reduced_image, (width, height), interpolation=cv2.INTER_NEAREST)


def compare_to_source(source_image, reduced_image):
    """Metrics of a reduced image against its source, compared at source size."""
    return calculate_metrics(source_image, upscale_nearest(reduced_image, source_image.shape))


def print_metrics(label, metrics):
    print(f"\n{label}:")
    print("-" * 60)
    print(f"  MSE:  {metrics['MSE']:8.2f}  (Lower is better)")
    if metrics['PSNR'] == float('inf'):
        print(f"  PSNR:      ∞ dB  (Perfect match)")
    else:
        print(f"  PSNR: {metrics['PSNR']:8.2f} dB  (Higher is better)")
    print(f"  SSIM: {metrics['SSIM']:8.4f}  (Higher is better, 1.0 is perfect)")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compare downscaled images against their source")
    parser.add_argument("-s", "--source", required=True, type=str,
                        help="Path to the full resolution source image")
    parser.add_argument("-r", "--reduced", required=True, nargs="+", type=str,
                        help="Paths to one or more downscaled versions of the source")

    args = parser.parse_args(argv)

    source_image = cv2.imread(args.source)
    if source_image is None:
        print(f"Error: Could not load image from {args.source}")
        return 1

    print("\n" + "="*60)
    print("DOWNSCALE QUALITY METRICS")
    print("="*60)
    print(f"\nSource: {args.source}")
    print(f"Resolution: {source_image.shape[1]}x{source_image.shape[0]}")

    for path in args.reduced:
        reduced_image = cv2.imread(path)
        if reduced_image is None:
            print(f"Error: Could not load image from {path}")
            return 1
        if reduced_image.shape[0] > source_image.shape[0] or reduced_image.shape[1] > source_image.shape[1]:
            print(f"Error: {path} ({reduced_image.shape[1]}x{reduced_image.shape[0]}) is larger than the source")
            return 1

        label = f"{path} ({reduced_image.shape[1]}x{reduced_image.shape[0]})"
        print_metrics(label, compare_to_source(source_image, reduced_image))

    print("\n" + "="*60 + "\n")

    return 0


if __name__ == "__main__":
    exit(main())
