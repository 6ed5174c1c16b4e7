import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from numpy.typing import NDArray


def pad_image(image: NDArray[np.float32], pad: int) -> NDArray[np.float32]:
    """Return a copy of ``image`` surrounded by a zero border ``pad`` wide."""
    return np.pad(image.astype(np.float32), pad, mode="constant", constant_values=0.0)


def create_neighbors(
    padded: NDArray[np.float32], i: int, j: int, p: int
) -> NDArray[np.float32]:
    """Neighbors of padded pixel ``(i, j)`` in row-major window order, center removed.

    ``(i, j)`` must be at least ``(p - 1) // 2`` away from every border of
    ``padded``.
    """
    pad = (p - 1) // 2
    window = padded[i - pad : i + pad + 1, j - pad : j + pad + 1].ravel()
    center = (p * p) // 2
    return np.concatenate((window[:center], window[center + 1 :]))


def create_row_neighbors(
    padded: NDArray[np.float32], i: int, p: int
) -> NDArray[np.float32]:
    """Neighbors of every pixel of padded row ``i``.

    Returns a ``(cols, p * p - 1)`` array. Row ``k`` holds the same values,
    in the same order, as ``create_neighbors(padded, i, pad + k, p)``.
    """
    pad = (p - 1) // 2
    band = padded[i - pad : i + pad + 1]
    windows = sliding_window_view(band, (p, p))[0].reshape(-1, p * p)
    center = (p * p) // 2
    return np.concatenate((windows[:, :center], windows[:, center + 1 :]), axis=1)
