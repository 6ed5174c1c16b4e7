"""
Threshold estimation using ROC curves for the correlation detector.

The detector only returns a correlation score; deciding whether the
watermark is present needs a threshold τ.  This module estimates one
empirically: the watermarked image and the original image are attacked
many times with random processing operations (see :mod:`attacks`) and the
correlation of every attacked copy is computed.  Scores of attacked
watermarked copies are positives (H1), scores of attacked originals are
negatives (H0).  A Receiver Operating Characteristic (ROC) curve is
computed over both sets and τ is chosen as the largest threshold whose
false positive rate does not exceed the requested limit.

Example:

.. code-block:: python

   with Watermark(gray, 'w.txt', p=5, psnr=30.0, num_threads=4) as wm:
       marked = wm.make_and_add_watermark(MaskType.ME)
       labels, scores = collect_scores(wm, marked, MaskType.ME, n_samples=100)
   tau = compute_threshold(labels, scores, fpr_limit=0.05)

This code uses scikit‑learn's :func:`roc_curve` to compute ROC
characteristics and matplotlib to draw them.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Tuple
import logging
import numpy as np
from sklearn.metrics import roc_curve
import matplotlib.pyplot as plt

from attacks import randomized_attack
from embed import MaskType
from watermark import Watermark

logger = logging.getLogger(__name__)


def collect_scores(
    watermark: Watermark,
    watermarked: np.ndarray,
    mask_type: MaskType,
    n_samples: int = 100,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[List[int], List[float]]:
    """Correlation scores of randomly attacked watermarked and original images.

    Args:
        watermark: Watermark object built on the original image.
        watermarked: Output of ``watermark.make_and_add_watermark(mask_type)``.
        mask_type: Mask model used for embedding and detection.
        n_samples: Number of random attacks per hypothesis.
        rng: Random generator driving the attacks.

    Returns:
        ``(labels, scores)`` with label 1 for attacked watermarked images
        and 0 for attacked originals.
    """
    rng = rng or np.random.default_rng()
    scores: List[float] = []
    labels: List[int] = []

    for _ in range(int(n_samples)):
        attacked, description = randomized_attack(watermarked, rng)
        sim_tp = watermark.mask_detector(attacked, mask_type)
        scores.append(sim_tp)
        labels.append(1)

        attacked_original, _ = randomized_attack(watermark.image, rng)
        sim_fp = watermark.mask_detector(attacked_original, mask_type)
        scores.append(sim_fp)
        labels.append(0)
        logger.debug("%s: H1 score %.4f, H0 score %.4f", description, sim_tp, sim_fp)

    return labels, scores


def compute_threshold(
    labels: Sequence[int], scores: Sequence[float], fpr_limit: float = 0.1
) -> float:
    """Threshold with the best true positive rate within ``fpr_limit`` false positives.

    Scores greater than or equal to the returned value count as detections.
    """
    if not 0.0 <= fpr_limit <= 1.0:
        raise ValueError(
            f"False positive rate limit must be in [0, 1], got {fpr_limit}"
        )
    fpr, tpr, thresholds = roc_curve(labels, scores)
    # fpr grows as the threshold drops, the last valid entry has the highest tpr
    valid = np.flatnonzero(fpr <= fpr_limit)
    tau = float(thresholds[valid[-1]])
    # roc_curve prepends an infinite threshold that no score reaches
    if not np.isfinite(tau):
        tau = float(np.nextafter(np.max(scores), np.inf))
    # Correlation scores lie in [-1, 1]
    return max(-1.0, min(1.0, tau))


def plot_roc_curve(
    labels: Sequence[int], scores: Sequence[float], plot_file: str | None = None
) -> None:
    """Plot the ROC curve, to ``plot_file`` when given, on screen otherwise."""
    fpr, tpr, _ = roc_curve(labels, scores)
    plt.figure()
    plt.plot(fpr, tpr, marker='.')
    plt.xlabel('False Positive Rate')
    plt.ylabel('True Positive Rate')
    plt.title('ROC Curve')
    plt.grid(True)
    if plot_file:
        plt.savefig(plot_file)
        plt.close()
    else:
        plt.show()
