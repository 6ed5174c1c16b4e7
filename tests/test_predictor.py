import numpy as np
import pytest

from neighbors import create_neighbors, pad_image
from predictor import (
    compute_error_sequence,
    compute_prediction_error_mask,
    fit_coefficients,
    solve_normal_equations,
)
from row_pool import RowPool


def _normal_equations(image, p):
    pad = (p - 1) // 2
    padded = pad_image(image, pad)
    n = p * p - 1
    Rx = np.zeros((n, n))
    rx = np.zeros(n)
    for i in range(image.shape[0]):
        for j in range(image.shape[1]):
            x_ = create_neighbors(padded, i + pad, j + pad, p).astype(np.float64)
            Rx += np.outer(x_, x_)
            rx += x_ * image[i, j]
    return Rx, rx


def test_fit_solves_normal_equations(textured_image, pool):
    p = 3
    padded = pad_image(textured_image, 1)
    coefficients = fit_coefficients(textured_image, padded, p, pool)
    Rx, rx = _normal_equations(textured_image, p)
    assert coefficients.shape == (8,)
    np.testing.assert_allclose(coefficients, np.linalg.solve(Rx, rx), rtol=1e-6, atol=1e-9)


def test_fit_independent_of_thread_count(textured_image):
    padded = pad_image(textured_image, 2)
    with RowPool(1) as single, RowPool(5) as many:
        c1 = fit_coefficients(textured_image, padded, 5, single)
        c5 = fit_coefficients(textured_image, padded, 5, many)
    np.testing.assert_allclose(c1, c5, rtol=1e-7, atol=1e-10)


def test_error_sequence_matches_per_pixel_prediction(textured_image, pool):
    p = 3
    padded = pad_image(textured_image, 1)
    coefficients = fit_coefficients(textured_image, padded, p, pool)
    error_sequence = compute_error_sequence(textured_image, padded, coefficients, p, pool)
    for i, j in [(0, 0), (5, 7), (47, 39), (20, 3)]:
        x_ = create_neighbors(padded, i + 1, j + 1, p)
        expected = textured_image[i, j] - coefficients @ x_
        assert error_sequence[i, j] == pytest.approx(expected, abs=1e-3)


def test_error_sequence_with_foreign_coefficients(textured_image, pool):
    padded = pad_image(textured_image, 1)
    error_sequence = compute_error_sequence(textured_image, padded, np.zeros(8), 3, pool)
    np.testing.assert_array_equal(error_sequence, textured_image)


def test_prediction_error_mask(textured_image, pool):
    padded = pad_image(textured_image, 1)
    fit = compute_prediction_error_mask(textured_image, padded, 3, pool)
    assert fit.mask.shape == textured_image.shape
    assert fit.mask.min() >= 0.0
    assert fit.mask.max() == pytest.approx(1.0)
    np.testing.assert_allclose(
        fit.mask, np.abs(fit.error_sequence) / np.abs(fit.error_sequence).max(), rtol=1e-6
    )


def test_prediction_error_mask_not_needed(textured_image, pool):
    padded = pad_image(textured_image, 1)
    fit = compute_prediction_error_mask(textured_image, padded, 3, pool, mask_needed=False)
    assert fit.mask is None
    assert fit.error_sequence.shape == textured_image.shape


def test_perfectly_predicted_image_gives_zero_mask(pool):
    image = np.zeros((18, 18), dtype=np.float32)
    fit = compute_prediction_error_mask(image, pad_image(image, 1), 3, pool)
    assert np.all(np.isfinite(fit.coefficients))
    np.testing.assert_array_equal(fit.mask, 0.0)


def test_singular_normal_equations_give_minimum_norm_solution():
    Rx = np.ones((2, 2))
    rx = np.array([2.0, 2.0])
    np.testing.assert_allclose(solve_normal_equations(Rx, rx), [1.0, 1.0])


def test_flat_image_fit_is_finite(pool):
    image = np.full((20, 20), 50.0, dtype=np.float32)
    coefficients = fit_coefficients(image, pad_image(image, 1), 3, pool)
    assert np.all(np.isfinite(coefficients))


def test_non_finite_normal_equations_raise():
    Rx = np.eye(2)
    Rx[0, 0] = np.nan
    with pytest.raises(ValueError):
        solve_normal_equations(Rx, np.ones(2))
