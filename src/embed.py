import logging
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from constraints import PIXEL_MAX
from masks import compute_nvf_mask
from neighbors import pad_image
from predictor import compute_prediction_error_mask
from row_pool import RowPool

logger = logging.getLogger(__name__)


class MaskType(Enum):
    NVF = "nvf"
    ME = "me"


def psnr(orig: NDArray, proc: NDArray) -> float:
    mse = np.mean((orig.astype(np.float64) - proc.astype(np.float64)) ** 2)
    if mse == 0:
        return float("inf")
    return float(10 * np.log10(PIXEL_MAX**2 / mse))


def compute_mask(
    image: NDArray[np.float32],
    padded: NDArray[np.float32],
    p: int,
    pool: RowPool,
    mask_type: MaskType,
) -> NDArray[np.float32]:
    if mask_type == MaskType.NVF:
        return compute_nvf_mask(padded, image.shape, p, pool)
    return compute_prediction_error_mask(image, padded, p, pool, mask_needed=True).mask


def scale_factor(u: NDArray[np.float32], target_psnr: float) -> float:
    """Amplitude that gives ``a * u`` the energy of the ``target_psnr`` noise level.

    Returns 0 when ``u`` carries no energy at all.
    """
    divisor = np.sqrt(np.mean(np.square(u.astype(np.float64))))
    if divisor == 0:
        return 0.0
    return float((PIXEL_MAX / np.sqrt(10.0 ** (target_psnr / 10.0))) / divisor)


def add_watermark(
    image: NDArray[np.float32],
    mask: NDArray[np.float32],
    w: NDArray[np.float32],
    target_psnr: float,
) -> NDArray[np.float32]:
    u = mask * w
    a = scale_factor(u, target_psnr)
    logger.debug("Watermark scale factor: %f", a)
    return (image + a * u).astype(np.float32)


def embed_watermark(
    image: NDArray[np.float32],
    w: NDArray[np.float32],
    p: int,
    target_psnr: float,
    pool: RowPool,
    mask_type: MaskType,
) -> NDArray[np.float32]:
    padded = pad_image(image, (p - 1) // 2)
    m = compute_mask(image, padded, p, pool, mask_type)
    return add_watermark(image, m, w, target_psnr)
