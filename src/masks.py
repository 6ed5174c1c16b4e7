from typing import Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from numpy.typing import NDArray

from row_pool import RowPool


def compute_nvf_mask(
    padded: NDArray[np.float32], shape: Tuple[int, int], p: int, pool: RowPool
) -> NDArray[np.float32]:
    """Noise visibility function mask of the image held inside ``padded``.

    Each pixel gets ``1 - 1 / (1 + var)`` where ``var`` is the variance of its
    full ``p x p`` window divided by ``p * p - 1``. Flat regions go to 0,
    textured regions towards 1.
    """
    rows, cols = shape
    pad = (p - 1) // 2
    m_nvf = np.zeros((rows, cols), dtype=np.float32)

    def sweep(row_range: range) -> None:
        for i in row_range:
            # window band of image row i, one (p, p) window per column
            band = padded[i : i + 2 * pad + 1]
            neighb = sliding_window_view(band, (p, p))[0].astype(np.float64)
            mean = neighb.mean(axis=(1, 2), keepdims=True)
            variance = np.square(neighb - mean).sum(axis=(1, 2)) / (p * p - 1)
            m_nvf[i] = 1.0 - 1.0 / (1.0 + variance)

    pool.map_rows(sweep, rows)
    return m_nvf
