"""
Global linear predictor of a pixel from its neighborhood.

A single set of ``p * p - 1`` coefficients is fit over the whole image by
least squares (the normal equations ``Rx c = rx``). The fit is used to

* compute the prediction error (residual) of every pixel, and
* optionally turn the residual energy into an embedding mask,
  ``|error| / max |error|``.

The accumulation of ``Rx`` and ``rx`` is a two phase computation: every
worker sums the outer products of its own row range into private float64
buffers, then the partial sums are added together once all workers are done.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import scipy.linalg
from numpy.typing import NDArray

from neighbors import create_row_neighbors
from row_pool import RowPool

logger = logging.getLogger(__name__)


@dataclass
class PredictorFit:
    coefficients: NDArray[np.float64]
    error_sequence: NDArray[np.float32]
    mask: Optional[NDArray[np.float32]] = None


def solve_normal_equations(
    Rx: NDArray[np.float64], rx: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Minimum-norm least squares solution of ``Rx c = rx``.

    A singular ``Rx`` (e.g. a constant image) still gives a usable answer.
    Raises ``ValueError`` if the solution is not finite.
    """
    coefficients, _, rank, _ = scipy.linalg.lstsq(Rx, rx, lapack_driver="gelsd")
    if rank < Rx.shape[0]:
        logger.debug(
            "Normal equations are rank deficient (rank %d of %d)", rank, Rx.shape[0]
        )
    if not np.all(np.isfinite(coefficients)):
        raise ValueError("Predictor coefficients are not finite, check the input image")
    return coefficients


def fit_coefficients(
    image: NDArray[np.float32], padded: NDArray[np.float32], p: int, pool: RowPool
) -> NDArray[np.float64]:
    rows = image.shape[0]
    pad = (p - 1) // 2
    n = p * p - 1

    def accumulate(row_range: range) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        Rx = np.zeros((n, n), dtype=np.float64)
        rx = np.zeros(n, dtype=np.float64)
        for i in row_range:
            x_ = create_row_neighbors(padded, i + pad, p).astype(np.float64)
            Rx += x_.T @ x_
            rx += x_.T @ image[i].astype(np.float64)
        return Rx, rx

    partials: List[Tuple[NDArray[np.float64], NDArray[np.float64]]] = pool.map_rows(
        accumulate, rows
    )

    # reduction of the per-worker accumulators
    Rx = np.zeros((n, n), dtype=np.float64)
    rx = np.zeros(n, dtype=np.float64)
    for Rx_part, rx_part in partials:
        Rx += Rx_part
        rx += rx_part

    return solve_normal_equations(Rx, rx)


def compute_error_sequence(
    image: NDArray[np.float32],
    padded: NDArray[np.float32],
    coefficients: NDArray[np.float64],
    p: int,
    pool: RowPool,
) -> NDArray[np.float32]:
    """Residual ``image - prediction`` for the given, possibly foreign, coefficients."""
    rows, cols = image.shape
    pad = (p - 1) // 2
    error_sequence = np.zeros((rows, cols), dtype=np.float32)

    def evaluate(row_range: range) -> None:
        for i in row_range:
            x_ = create_row_neighbors(padded, i + pad, p).astype(np.float64)
            error_sequence[i] = image[i] - x_ @ coefficients

    pool.map_rows(evaluate, rows)
    return error_sequence


def compute_prediction_error_mask(
    image: NDArray[np.float32],
    padded: NDArray[np.float32],
    p: int,
    pool: RowPool,
    mask_needed: bool = True,
) -> PredictorFit:
    coefficients = fit_coefficients(image, padded, p, pool)
    error_sequence = compute_error_sequence(image, padded, coefficients, p, pool)
    if not mask_needed:
        return PredictorFit(coefficients, error_sequence)

    error_sequence_abs = np.abs(error_sequence)
    max_error = float(error_sequence_abs.max())
    if max_error == 0.0:
        # perfectly predicted image, nothing to hide the watermark in
        m_e = np.zeros_like(error_sequence_abs)
    else:
        m_e = error_sequence_abs / max_error
    return PredictorFit(coefficients, error_sequence, m_e.astype(np.float32))
