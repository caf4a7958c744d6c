import cv2
import numpy as np


def uniform(width, height, color):
    """Single-color image."""
    image = np.empty((height, width, 3), dtype=np.uint8)
    image[:] = color
    return image


def quadrants(width, height, color_a, color_b):
    """Four flat quadrants, color_a top-left and bottom-right, color_b elsewhere."""
    image = uniform(width, height, color_a)
    half_w, half_h = width // 2, height // 2
    image[:half_h, half_w:] = color_b
    image[half_h:, :half_w] = color_b
    return image


def stripes(width, height, period=2, color_a=(0, 0, 0), color_b=(255, 255, 255)):
    """Vertical one-pixel-wide detail: color_b every `period` columns on a color_a field."""
    image = uniform(width, height, color_a)
    image[:, period - 1::period] = color_b
    return image


def checkerboard(width, height, color_a=(0, 0, 0), color_b=(255, 255, 255)):
    """Alternating single pixels, the highest frequency an image can hold."""
    image = uniform(width, height, color_a)
    ys, xs = np.indices((height, width))
    image[(xs + ys) % 2 == 1] = color_b
    return image


def create_test_image(width=512, height=512):
    """Create a test image with gradients, flat shapes and fine detail for downscaling."""
    image = np.zeros((height, width, 3), dtype=np.uint8)

    # Smooth gradient background
    xs = np.linspace(0, 255, width, dtype=np.float64)
    ys = np.linspace(0, 255, height, dtype=np.float64)
    image[..., 0] = xs[None, :].astype(np.uint8)
    image[..., 1] = ys[:, None].astype(np.uint8)
    image[..., 2] = 128

    # Flat regions (should survive any reduction)
    cv2.circle(image, (100, 100), 20, (255, 255, 255), -1)
    cv2.circle(image, (400, 100), 15, (255, 255, 0), -1)
    cv2.circle(image, (250, 250), 30, (0, 255, 255), -1)
    cv2.rectangle(image, (50, 200), (150, 300), (255, 128, 0), -1)
    cv2.rectangle(image, (350, 200), (450, 300), (0, 128, 255), -1)

    # Thin lines that a box filter washes out
    for i in range(0, width, 10):
        cv2.line(image, (i, 350), (i, 380), (255, 255, 255), 1)

    for i in range(0, height, 10):
        cv2.line(image, (150, i), (180, i), (0, 0, 0), 1)

    # 1px checkerboard, flattens to gray under a box reduction
    region = image[420:484, 40:136]
    region[:] = checkerboard(96, 64)[:region.shape[0], :region.shape[1]]

    # Diagonal hairline, sub-pixel wide after any reduction
    cv2.line(image, (0, height - 1), (width - 1, 0), (0, 0, 255), 1)

    font = cv2.FONT_HERSHEY_SIMPLEX
    cv2.putText(image, "DPID TEST", (180, 50), font, 1, (255, 255, 255), 2)

    return image


if __name__ == "__main__":
    test_image = create_test_image()

    cv2.imwrite("test_input.png", test_image)
    print("Test image saved as test_input.png")
