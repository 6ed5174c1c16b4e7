"""Image processing attacks used to evaluate the detector.

The functions take a luminance array (any real dtype), quantise it to
8 bits as a saved image would be, process it, and return a float32 array
of the same shape.  The main entry point is :func:`attacks` which applies
one or more attacks in sequence; :func:`randomized_attack` picks a single
attack with random parameters.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Tuple, Union
import numpy as np
import cv2


def _to_uint8(img: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(img), 0, 255).astype(np.uint8)


def _awgn(
    img: np.ndarray, std: float, rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """Additive white Gaussian noise with given standard deviation."""
    rng = rng or np.random.default_rng()
    noise = rng.normal(0.0, std, img.shape)
    attacked = _to_uint8(img).astype(np.float64) + noise
    return np.clip(attacked, 0, 255).astype(np.float32)


def _blur(img: np.ndarray, ksize: int) -> np.ndarray:
    """Gaussian blur with a square kernel of size ``ksize``.  ``ksize`` must
    be an odd positive integer."""
    if ksize <= 0 or ksize % 2 == 0:
        raise ValueError("Blur kernel size must be a positive odd integer")
    return cv2.GaussianBlur(_to_uint8(img), (ksize, ksize), 0).astype(np.float32)


def _sharpen(img: np.ndarray) -> np.ndarray:
    """Sharpen the image with a 3×3 sharpening kernel."""
    kernel = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float64)
    sharpened = cv2.filter2D(_to_uint8(img).astype(np.float64), -1, kernel)
    return np.clip(sharpened, 0, 255).astype(np.float32)


def _jpeg(img: np.ndarray, quality: int) -> np.ndarray:
    """Compress and decompress the image in memory using JPEG with the given quality."""
    quality = int(max(1, min(quality, 100)))
    encode_param = [int(cv2.IMWRITE_JPEG_QUALITY), quality]
    success, buffer = cv2.imencode('.jpg', _to_uint8(img), encode_param)
    if not success:
        raise RuntimeError("JPEG encoding failed")
    return cv2.imdecode(buffer, cv2.IMREAD_GRAYSCALE).astype(np.float32)


def _resize(img: np.ndarray, scale: float) -> np.ndarray:
    """Resize the image by the given scaling factor and then restore
    it back to the original size."""
    if scale <= 0:
        raise ValueError("Scale must be positive")
    h, w = img.shape[:2]
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    resized = cv2.resize(_to_uint8(img), (new_w, new_h), interpolation=cv2.INTER_LINEAR)
    restored = cv2.resize(resized, (w, h), interpolation=cv2.INTER_LINEAR)
    return restored.astype(np.float32)


def _median(img: np.ndarray, ksize: int) -> np.ndarray:
    """Apply a median filter with the given kernel size.  ``ksize`` must
    be a positive odd integer."""
    if ksize <= 0 or ksize % 2 == 0:
        raise ValueError("Median kernel size must be a positive odd integer")
    return cv2.medianBlur(_to_uint8(img), ksize).astype(np.float32)


ATTACK_NAMES = ("awgn", "blur", "sharpen", "jpeg", "resize", "median")


def attacks(image: np.ndarray,
            attack_name: Union[str, Sequence[str]],
            param_array: Sequence[Union[float, int, None]]) -> np.ndarray:
    """Apply one or more attacks in order.

    Args:
        image: Luminance array to attack.  It is not modified.
        attack_name: A single attack name or a sequence of names, taken from
            ``ATTACK_NAMES`` (``'sharp'`` is accepted for ``'sharpen'``).
        param_array: One parameter per attack.  ``sharpen`` ignores its
            parameter.

    Returns:
        The attacked image as a float32 array.
    """
    if isinstance(attack_name, str):
        attacks_list: List[str] = [attack_name.lower()]
    else:
        attacks_list = [str(a).lower() for a in attack_name]
    if len(param_array) != len(attacks_list):
        raise ValueError("Length of param_array must match number of attacks")

    output = image.astype(np.float32)
    for name, param in zip(attacks_list, param_array):
        if name == 'awgn':
            output = _awgn(output, float(param))
        elif name == 'blur':
            output = _blur(output, int(param))
        elif name in ('sharp', 'sharpen'):
            output = _sharpen(output)
        elif name == 'jpeg':
            output = _jpeg(output, int(param))
        elif name == 'resize':
            output = _resize(output, float(param))
        elif name == 'median':
            output = _median(output, int(param))
        else:
            raise ValueError(f"Unknown attack name: {name}")
    return output


def randomized_attack(
    image: np.ndarray, rng: Optional[np.random.Generator] = None
) -> Tuple[np.ndarray, str]:
    """Apply one randomly chosen attack with random parameters.

    Returns the attacked image and a short description of the attack.
    """
    rng = rng or np.random.default_rng()
    attack = str(rng.choice(ATTACK_NAMES))

    if attack == "awgn":
        param = float(rng.uniform(2.0, 10.0))
        return _awgn(image, param, rng), f"AWGN (std={param:.2f})"
    if attack == "blur":
        param = int(rng.choice([3, 5]))
        return _blur(image, param), f"BLUR (ksize={param})"
    if attack == "sharpen":
        return _sharpen(image), "SHARP"
    if attack == "jpeg":
        param = int(rng.integers(50, 96))
        return _jpeg(image, param), f"JPEG (quality={param})"
    if attack == "resize":
        param = float(rng.uniform(0.7, 1.3))
        return _resize(image, param), f"RESIZE (scale={param:.2f})"
    param = int(rng.choice([3, 5]))
    return _median(image, param), f"MEDIAN (ksize={param})"
