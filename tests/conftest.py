import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from reference_pattern import generate_reference_pattern, save_reference_pattern
from row_pool import RowPool


@pytest.fixture
def textured_image():
    """Smooth gradients plus mild noise, 48x40."""
    rng = np.random.default_rng(7)
    rows, cols = 48, 40
    y, x = np.mgrid[0:rows, 0:cols]
    base = 128.0 + 40.0 * np.sin(x / 5.0) + 30.0 * np.cos(y / 7.0)
    return (base + rng.normal(0.0, 6.0, (rows, cols))).astype(np.float32)


@pytest.fixture
def w_pattern(textured_image):
    return generate_reference_pattern(*textured_image.shape, key=2025)


@pytest.fixture
def w_file(tmp_path, w_pattern):
    path = tmp_path / "w.txt"
    save_reference_pattern(str(path), w_pattern)
    return str(path)


@pytest.fixture
def pool():
    with RowPool(3) as pool:
        yield pool
