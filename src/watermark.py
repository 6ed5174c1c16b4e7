"""
watermark.py
============

Entry point of the watermarking core.  A :class:`Watermark` is built once
for a grayscale image and a reference pattern ``W`` and can then

* embed a watermark masked by either the noise visibility function (NVF)
  or the prediction error (ME) of the image, scaled so that the added
  signal reaches the requested PSNR, and
* compute the correlation score of any image of the same size against the
  expected watermark.

The score is not thresholded here.  Values close to zero mean the watermark
is absent; watermarked images score noticeably higher.

Example::

    with Watermark(gray, "w.txt", p=5, psnr=30.0, num_threads=4) as wm:
        marked = wm.make_and_add_watermark(MaskType.NVF)
        score = wm.mask_detector(marked, MaskType.NVF)
"""

import logging
from typing import Union

import numpy as np
from numpy.typing import NDArray

from constraints import MAX_P
from detect import detect_watermark
from embed import MaskType, embed_watermark
from reference_pattern import load_reference_pattern
from row_pool import RowPool

logger = logging.getLogger(__name__)


class Watermark:
    def __init__(
        self,
        image: NDArray,
        w_file_path: str,
        p: int,
        psnr: float,
        num_threads: int = 1,
    ):
        if image.ndim != 2:
            raise ValueError("Image must be a two-dimensional luminance array")
        if p <= 1 or p % 2 != 1 or p > MAX_P:
            raise ValueError(f"p parameter must be an odd number between 3 and {MAX_P}")
        if not np.isfinite(psnr) or psnr <= 0:
            raise ValueError("PSNR must be a positive number")
        if num_threads < 1:
            raise ValueError("Thread count must be a positive integer")

        self.image = np.array(image, dtype=np.float32)
        self.image.setflags(write=False)
        self.rows, self.cols = self.image.shape
        self.p = p
        self.pad = (p - 1) // 2
        self.psnr = psnr
        self.num_threads = num_threads
        self.w = load_reference_pattern(w_file_path, self.rows, self.cols)
        self.w.setflags(write=False)
        self._pool = RowPool(num_threads)
        logger.debug(
            "Watermark ready: %dx%d image, p=%d, psnr=%.2f dB",
            self.rows,
            self.cols,
            p,
            psnr,
        )

    def make_and_add_watermark(
        self, mask_type: Union[MaskType, str]
    ) -> NDArray[np.float32]:
        """Return a new watermarked copy of the grayscale image."""
        return embed_watermark(
            self.image, self.w, self.p, self.psnr, self._pool, MaskType(mask_type)
        )

    def make_and_add_watermark_rgb(
        self, rgb_image: NDArray, mask_type: Union[MaskType, str]
    ) -> NDArray[np.float32]:
        """Add the grayscale watermark signal to every channel of ``rgb_image``.

        ``rgb_image`` must be the color image the grayscale image was derived
        from, shaped ``(rows, cols, 3)``.
        """
        if rgb_image.ndim != 3 or rgb_image.shape != (self.rows, self.cols, 3):
            raise ValueError(
                f"RGB image is {rgb_image.shape}, expected {(self.rows, self.cols, 3)}"
            )
        watermark_signal = self.make_and_add_watermark(mask_type) - self.image
        marked = rgb_image.astype(np.float32) + watermark_signal[:, :, np.newaxis]
        return marked.astype(np.float32)

    def mask_detector(
        self, watermarked_image: NDArray, mask_type: Union[MaskType, str]
    ) -> float:
        """Correlation score of ``watermarked_image`` against the expected watermark."""
        if watermarked_image.shape != (self.rows, self.cols):
            raise ValueError(
                f"Image to test is {watermarked_image.shape}, "
                f"expected {(self.rows, self.cols)}"
            )
        image = np.asarray(watermarked_image, dtype=np.float32)
        return detect_watermark(image, self.w, self.p, self._pool, MaskType(mask_type))

    def embed(self, mask_type: Union[MaskType, str]) -> NDArray[np.float32]:
        return self.make_and_add_watermark(mask_type)

    def detect(self, image: NDArray, mask_type: Union[MaskType, str]) -> float:
        return self.mask_detector(image, mask_type)

    def close(self) -> None:
        self._pool.shutdown()

    def __enter__(self) -> "Watermark":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
