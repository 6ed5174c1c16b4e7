import numpy as np
import pytest

from reference_pattern import (
    generate_reference_pattern,
    load_reference_pattern,
    save_reference_pattern,
)


def test_generate_is_reproducible():
    a = generate_reference_pattern(8, 6, key=11)
    assert a.shape == (8, 6)
    assert a.dtype == np.float32
    np.testing.assert_array_equal(a, generate_reference_pattern(8, 6, key=11))
    assert not np.array_equal(a, generate_reference_pattern(8, 6, key=12))


def test_saved_file_is_raw_row_major_float32(tmp_path):
    w = np.arange(12, dtype=np.float32).reshape(3, 4)
    path = tmp_path / "w.bin"
    save_reference_pattern(str(path), w)
    assert path.stat().st_size == 12 * 4
    raw = np.frombuffer(path.read_bytes(), dtype="<f4")
    np.testing.assert_array_equal(raw, np.arange(12))
    np.testing.assert_array_equal(load_reference_pattern(str(path), 3, 4), w)


def test_load_rejects_wrong_element_count(tmp_path):
    path = tmp_path / "w.bin"
    save_reference_pattern(str(path), np.zeros(11, dtype=np.float32))
    with pytest.raises(ValueError):
        load_reference_pattern(str(path), 3, 4)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_reference_pattern(str(tmp_path / "nope"), 3, 4)
