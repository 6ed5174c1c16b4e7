from typing import Optional

import numpy as np
from numpy.typing import NDArray

from embed import MaskType
from masks import compute_nvf_mask
from neighbors import pad_image
from predictor import compute_error_sequence, compute_prediction_error_mask
from row_pool import RowPool


def _dot(a: NDArray, b: NDArray) -> float:
    return float(np.sum(a.astype(np.float64) * b.astype(np.float64)))


def correlation(e_z: NDArray, e_u: NDArray, pool: Optional[RowPool] = None) -> float:
    """Cosine similarity of two residual fields, 0 when either one is all zeros."""
    if pool is None:
        dot_ez_eu, d_ez, d_eu = _dot(e_z, e_u), _dot(e_z, e_z), _dot(e_u, e_u)
    else:
        futures = [
            pool.submit(_dot, e_z, e_u),
            pool.submit(_dot, e_z, e_z),
            pool.submit(_dot, e_u, e_u),
        ]
        dot_ez_eu, d_ez, d_eu = (f.result() for f in futures)

    norm = np.sqrt(d_ez) * np.sqrt(d_eu)
    if norm == 0:
        return 0.0
    return float(dot_ez_eu / norm)


def detect_watermark(
    image: NDArray[np.float32],
    w: NDArray[np.float32],
    p: int,
    pool: RowPool,
    mask_type: MaskType,
) -> float:
    pad = (p - 1) // 2
    padded = pad_image(image, pad)

    if mask_type == MaskType.NVF:
        fit = compute_prediction_error_mask(image, padded, p, pool, mask_needed=False)
        m = compute_nvf_mask(padded, image.shape, p, pool)
    else:
        fit = compute_prediction_error_mask(image, padded, p, pool, mask_needed=True)
        m = fit.mask

    # residual the expected watermark leaves under the predictor of the received image
    u = (m * w).astype(np.float32)
    e_u = compute_error_sequence(u, pad_image(u, pad), fit.coefficients, p, pool)
    return correlation(fit.error_sequence, e_u, pool)
