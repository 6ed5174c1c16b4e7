import numpy as np

from neighbors import create_neighbors, create_row_neighbors, pad_image


def test_pad_image_adds_zero_border():
    image = np.ones((4, 6), dtype=np.float32)
    padded = pad_image(image, 2)
    assert padded.shape == (8, 10)
    assert padded.dtype == np.float32
    assert padded[:2].sum() == 0 and padded[:, -2:].sum() == 0
    np.testing.assert_array_equal(padded[2:-2, 2:-2], image)


def test_create_neighbors_row_major_without_center():
    image = np.arange(25, dtype=np.float32).reshape(5, 5)
    padded = pad_image(image, 1)
    # image pixel (2, 2) holds 12
    neighbors = create_neighbors(padded, 3, 3, 3)
    np.testing.assert_array_equal(neighbors, [6, 7, 8, 11, 13, 16, 17, 18])


def test_create_neighbors_at_corner_uses_zero_padding():
    image = np.arange(1, 26, dtype=np.float32).reshape(5, 5)
    padded = pad_image(image, 1)
    neighbors = create_neighbors(padded, 1, 1, 3)
    np.testing.assert_array_equal(neighbors, [0, 0, 0, 0, 2, 0, 6, 7])


def test_create_neighbors_length_for_p5():
    image = np.arange(81, dtype=np.float32).reshape(9, 9)
    padded = pad_image(image, 2)
    neighbors = create_neighbors(padded, 6, 6, 5)
    assert neighbors.shape == (24,)
    assert image[4, 4] not in neighbors


def test_row_neighbors_match_single_pixel_extraction():
    rng = np.random.default_rng(0)
    image = rng.uniform(0, 255, (7, 9)).astype(np.float32)
    for p in (3, 5):
        pad = (p - 1) // 2
        padded = pad_image(image, pad)
        for i in range(image.shape[0]):
            row = create_row_neighbors(padded, i + pad, p)
            assert row.shape == (image.shape[1], p * p - 1)
            for j in range(image.shape[1]):
                np.testing.assert_array_equal(row[j], create_neighbors(padded, i + pad, j + pad, p))
