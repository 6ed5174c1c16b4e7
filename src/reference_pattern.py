import os

import numpy as np
from numpy.typing import NDArray


def generate_reference_pattern(rows: int, cols: int, key: int) -> NDArray[np.float32]:
    """Generate a standard normal reference pattern.

    The same key always produces the same pattern, so it can be regenerated
    instead of being stored.
    """
    rng = np.random.default_rng(key)
    return rng.standard_normal((rows, cols)).astype(np.float32)


def save_reference_pattern(path: str, w: NDArray) -> None:
    """Write ``w`` as raw little-endian float32 values in row-major order."""
    np.ascontiguousarray(w, dtype="<f4").tofile(path)


def load_reference_pattern(path: str, rows: int, cols: int) -> NDArray[np.float32]:
    """Load a raw float32 reference pattern for a ``rows x cols`` image.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file does not hold exactly ``rows * cols`` values.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Error opening '{path}' file for Random noise W array")
    total_bytes = os.path.getsize(path)
    itemsize = np.dtype("<f4").itemsize
    if total_bytes != rows * cols * itemsize:
        raise ValueError(
            f"W file total elements != image dimensions! W file total elements: "
            f"{total_bytes // itemsize}, Image width: {cols}, Image height: {rows}"
        )
    w = np.fromfile(path, dtype="<f4").reshape(rows, cols)
    return w.astype(np.float32)
