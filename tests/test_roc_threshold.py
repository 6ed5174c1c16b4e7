import numpy as np
import pytest

from embed import MaskType
from roc_threshold import collect_scores, compute_threshold, plot_roc_curve
from watermark import Watermark


def test_threshold_separates_perfect_scores():
    labels = [1, 1, 1, 0, 0, 0]
    scores = [0.9, 0.8, 0.7, 0.1, 0.2, 0.05]
    assert compute_threshold(labels, scores, fpr_limit=0.0) == pytest.approx(0.7)


def test_threshold_respects_fpr_limit():
    labels = [1, 1, 1, 1, 0, 0, 0, 0]
    scores = [0.9, 0.6, 0.5, 0.3, 0.55, 0.2, 0.1, 0.0]
    tau = compute_threshold(labels, scores, fpr_limit=0.25)
    negatives = np.array(scores)[np.array(labels) == 0]
    assert np.mean(negatives >= tau) <= 0.25
    assert tau == pytest.approx(0.3)


@pytest.mark.parametrize("limit", [-0.1, 1.5, float("nan")])
def test_threshold_rejects_invalid_fpr_limit(limit):
    with pytest.raises(ValueError):
        compute_threshold([1, 0, 1, 0], [0.9, 0.1, 0.7, 0.3], fpr_limit=limit)


def test_collect_scores(textured_image, w_file):
    with Watermark(textured_image, w_file, 3, 30.0, 2) as wm:
        marked = wm.make_and_add_watermark(MaskType.NVF)
        labels, scores = collect_scores(wm, marked, MaskType.NVF, n_samples=3, rng=np.random.default_rng(0))
    assert labels == [1, 0, 1, 0, 1, 0]
    assert all(-1.0 <= s <= 1.0 for s in scores)


def test_plot_roc_curve_to_file(tmp_path):
    out = tmp_path / "roc.png"
    plot_roc_curve([1, 0, 1, 0], [0.9, 0.1, 0.7, 0.3], str(out))
    assert out.exists()
