"""
main.py
=======

Command line benchmark of the watermarking core.  It reads its parameters
from ``settings.ini`` (command line options take precedence), embeds a
watermark with both masks, detects it again, and prints the average time
of each step together with the two correlation scores.

Usage example:

    python main.py --image lena.png --w-path w.txt --p 5 --psnr 30 --threads 4

A reference pattern matching the image size can be generated with:

    python main.py --image lena.png --w-path w.txt --generate-w 2025

Parameters
----------
image : str
    Color or grayscale image understood by OpenCV.
w_path : str
    Raw float32 reference pattern with exactly rows * cols values.
p : int
    Odd neighborhood size, at most 9.
psnr : float
    Target PSNR of the embedded watermark in dB.
threads : int
    Worker threads; 0 or out of range means one per cpu.
loops : int
    Repetitions of every timed step.
"""

import argparse
import logging
import math
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple, TypeVar

from constraints import MAX_DIM, MAX_P, MIN_DIM, SETTINGS_FILE, THRESH
from embed import MaskType, psnr
from image_io import load_rgb_image, rgb_to_grayscale, save_watermarked_image
from reference_pattern import generate_reference_pattern, save_reference_pattern
from roc_threshold import collect_scores, compute_threshold, plot_roc_curve
from settings import Settings, load_settings
from watermark import Watermark

logger = logging.getLogger(__name__)

T = TypeVar("T")


def execution_time(show_fps: bool, seconds: float) -> str:
    """Format an execution time in seconds, or as frames per second."""
    if show_fps:
        return f"FPS: {1.0 / seconds:.2f} FPS"
    return f"{seconds:.6f} seconds"


def timed(func: Callable[[], T], loops: int) -> Tuple[T, float]:
    """Run ``func`` ``loops`` times and return its last result and the average time."""
    secs = 0.0
    result = None
    for _ in range(loops):
        start = time.perf_counter()
        result = func()
        secs += time.perf_counter() - start
    return result, secs / loops


def validate_parameters(rows: int, cols: int, p: int, target_psnr: float) -> None:
    if cols <= MIN_DIM or rows <= MIN_DIM or rows >= MAX_DIM or cols >= MAX_DIM:
        raise ValueError("Image dimensions too low or too high")
    if p <= 1 or p % 2 != 1 or p > MAX_P:
        raise ValueError(
            f"p parameter must be a positive odd number less than or equal to {MAX_P}"
        )
    if not math.isfinite(target_psnr) or target_psnr <= 0:
        raise ValueError("PSNR must be a positive number")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Embed and detect a perceptually masked watermark (NVF or ME mask)."
    )
    parser.add_argument(
        "--settings", default=SETTINGS_FILE, help="INI file with default parameters."
    )
    parser.add_argument("--image", help="Path to the image to watermark.")
    parser.add_argument(
        "--w-path", dest="w_path", help="Path to the raw float32 reference pattern."
    )
    parser.add_argument("--p", type=int, help="Neighborhood size (odd, at most 9).")
    parser.add_argument("--psnr", type=float, help="Target PSNR in dB.")
    parser.add_argument(
        "--threads", type=int, help="Worker threads, 0 for one per cpu."
    )
    parser.add_argument("--loops", type=int, help="Repetitions of every timed step.")
    parser.add_argument(
        "--fps",
        action="store_true",
        default=None,
        help="Show times as frames per second.",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        default=None,
        help="Save the watermarked images.",
    )
    parser.add_argument(
        "--generate-w",
        dest="generate_w",
        type=int,
        metavar="KEY",
        help="Write a new reference pattern for the image to --w-path and exit.",
    )
    parser.add_argument(
        "--roc",
        type=int,
        default=0,
        metavar="N",
        help="Estimate a detection threshold from N random attacks per mask.",
    )
    parser.add_argument(
        "--roc-plot", dest="roc_plot", help="Save the ROC curves to this file prefix."
    )
    parser.add_argument(
        "--fpr",
        type=float,
        default=0.05,
        help="False positive rate limit for --roc.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Settings from the INI file (when present) overridden by command line options."""
    try:
        settings = load_settings(args.settings)
    except FileNotFoundError:
        if args.image is None:
            raise
        logger.debug("No settings file at %s, using defaults", args.settings)
        settings = Settings()

    overrides = {
        "image": args.image,
        "w_path": args.w_path,
        "p": args.p,
        "psnr": args.psnr,
        "threads": args.threads,
        "loops_for_test": args.loops,
        "execution_time_in_fps": args.fps,
        "save_watermarked_files_to_disk": args.save,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)
    return settings


def run(
    settings: Settings,
    roc_samples: int = 0,
    roc_plot: Optional[str] = None,
    fpr_limit: float = 0.05,
) -> None:
    p, target_psnr = settings.p, settings.psnr
    show_fps = settings.execution_time_in_fps
    num_threads = settings.resolved_threads()
    loops = settings.resolved_loops()

    start = time.perf_counter()
    array_rgb = load_rgb_image(settings.image)
    array_grayscale = rgb_to_grayscale(array_rgb)
    rows, cols = array_grayscale.shape
    validate_parameters(rows, cols, p, target_psnr)
    print(f"Time to load image from disk: {time.perf_counter() - start:.6f} seconds\n")

    print(f"Using {num_threads} parallel threads.")
    print(f"Each test will be executed {loops} times. Average time will be shown below")
    print(f"Image size is: {rows} rows and {cols} columns\n")

    with Watermark(
        array_grayscale, settings.w_path, p, target_psnr, num_threads
    ) as watermark_obj:
        size = f"{rows} rows and {cols} columns"
        params = f"p = {p}  PSNR(dB) = {target_psnr}"

        watermark_nvf, secs = timed(
            lambda: watermark_obj.make_and_add_watermark_rgb(array_rgb, MaskType.NVF),
            loops,
        )
        print(
            f"Calculation of NVF mask with {size} and parameters:\n"
            f"{params}\n{execution_time(show_fps, secs)}\n"
        )

        watermark_me, secs = timed(
            lambda: watermark_obj.make_and_add_watermark_rgb(array_rgb, MaskType.ME),
            loops,
        )
        print(
            f"Calculation of ME mask with {size} and parameters:\n"
            f"{params}\n{execution_time(show_fps, secs)}\n"
        )

        watermarked_nvf_gray = rgb_to_grayscale(watermark_nvf)
        watermarked_me_gray = rgb_to_grayscale(watermark_me)

        correlation_nvf, secs = timed(
            lambda: watermark_obj.mask_detector(watermarked_nvf_gray, MaskType.NVF),
            loops,
        )
        print(
            f"Calculation of the watermark correlation (NVF) of an image with {size}"
            f" and parameters:\n{params}\n{execution_time(show_fps, secs)}\n"
        )

        correlation_me, secs = timed(
            lambda: watermark_obj.mask_detector(watermarked_me_gray, MaskType.ME),
            loops,
        )
        print(
            f"Calculation of the watermark correlation (ME) of an image with {size}"
            f" and parameters:\n{params}\n{execution_time(show_fps, secs)}\n"
        )

        print(f"PSNR [NVF]: {psnr(array_grayscale, watermarked_nvf_gray):.2f} dB")
        print(f"PSNR [ME]: {psnr(array_grayscale, watermarked_me_gray):.2f} dB")
        for name, correlation in (("NVF", correlation_nvf), ("ME", correlation_me)):
            decision = "detected" if correlation >= THRESH else "not detected"
            print(f"Correlation [{name}]: {correlation:.16f} ({decision})")

        if roc_samples > 0:
            marked_images = (
                (MaskType.NVF, watermarked_nvf_gray),
                (MaskType.ME, watermarked_me_gray),
            )
            for mask_type, marked in marked_images:
                labels, scores = collect_scores(
                    watermark_obj, marked, mask_type, roc_samples
                )
                tau = compute_threshold(labels, scores, fpr_limit)
                print(
                    f"Estimated threshold [{mask_type.name}] "
                    f"(FPR <= {fpr_limit}): {tau:.4f}"
                )
                if roc_plot:
                    plot_roc_curve(labels, scores, f"{roc_plot}_{mask_type.name}.png")

    if settings.save_watermarked_files_to_disk:
        print("\nSaving watermarked files to disk...")
        with ThreadPoolExecutor(max_workers=2) as executor:
            futures = [
                executor.submit(
                    save_watermarked_image, settings.image, "_W_NVF", watermark_nvf
                ),
                executor.submit(
                    save_watermarked_image, settings.image, "_W_ME", watermark_me
                ),
            ]
            for future in futures:
                print(f"Saved {future.result()}")
        print("Successfully saved to disk")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=(
            "[%(asctime)s] %(levelname).1s %(threadName)s"
            " - %(name)s:%(lineno)d - %(message)s"
        ),
    )
    try:
        settings = build_settings(args)
        if args.generate_w is not None:
            rows, cols = rgb_to_grayscale(load_rgb_image(settings.image)).shape
            w = generate_reference_pattern(rows, cols, args.generate_w)
            save_reference_pattern(settings.w_path, w)
            print(
                f"Reference pattern for {rows}x{cols} images"
                f" written to {settings.w_path}"
            )
            return 0
        run(settings, args.roc, args.roc_plot, args.fpr)
    except (OSError, ValueError) as e:
        print(e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
