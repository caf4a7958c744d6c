import cv2
import numpy as np
import pytest

import sample_images


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def noise_image(rng):
    """17x11 random BGR image, awkward sizes for fractional patches."""
    return rng.integers(0, 256, size=(11, 17, 3), dtype=np.uint8)


@pytest.fixture
def chart_path(tmp_path):
    """Composite test chart written to disk as 128x96 PNG."""
    image = cv2.resize(sample_images.create_test_image(), (128, 96), interpolation=cv2.INTER_AREA)
    path = tmp_path / "chart.png"
    cv2.imwrite(str(path), image)
    return path
