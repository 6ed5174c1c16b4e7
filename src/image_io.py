import os
from typing import Tuple

import cv2
import numpy as np
from numpy.typing import NDArray

from constraints import B_WEIGHT, G_WEIGHT, R_WEIGHT


def load_rgb_image(image_path: str) -> NDArray[np.float32]:
    """Read an image from disk as a float32 ``(rows, cols, 3)`` RGB array."""
    img = cv2.imread(image_path, cv2.IMREAD_COLOR)
    if img is None:
        raise FileNotFoundError(f"Could not read input image: {image_path}")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB).astype(np.float32)


def rgb_to_grayscale(
    rgb: NDArray, weights: Tuple[float, float, float] = (R_WEIGHT, G_WEIGHT, B_WEIGHT)
) -> NDArray[np.float32]:
    r_weight, g_weight, b_weight = weights
    rgb = rgb.astype(np.float32)
    gray = r_weight * rgb[:, :, 0] + g_weight * rgb[:, :, 1] + b_weight * rgb[:, :, 2]
    return gray.astype(np.float32)


def add_suffix_before_extension(path: str, suffix: str) -> str:
    root, ext = os.path.splitext(path)
    return f"{root}{suffix}{ext}"


def save_watermarked_image(image_path: str, suffix: str, image: NDArray) -> str:
    """Save a watermarked array next to ``image_path`` as ``<name><suffix>.png``.

    Values are clipped to [0, 255] and rounded. RGB arrays are written as color
    images, 2-D arrays as grayscale. Returns the written path.
    """
    root = os.path.splitext(add_suffix_before_extension(image_path, suffix))[0]
    out_path = root + ".png"
    out = np.clip(np.rint(image), 0, 255).astype(np.uint8)
    if out.ndim == 3:
        out = cv2.cvtColor(out, cv2.COLOR_RGB2BGR)
    if not cv2.imwrite(out_path, out):
        raise OSError(f"Could not write watermarked image: {out_path}")
    return out_path
