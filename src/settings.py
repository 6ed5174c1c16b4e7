import configparser
import os
from dataclasses import dataclass

from constraints import LOOPS, MAX_LOOPS, MAX_THREADS, P, PSNR, W_PATH


@dataclass
class Settings:
    image: str = "NO_IMAGE"
    w_path: str = W_PATH
    execution_time_in_fps: bool = False
    save_watermarked_files_to_disk: bool = False
    p: int = P
    psnr: float = PSNR
    threads: int = 0
    loops_for_test: int = LOOPS

    def resolved_threads(self) -> int:
        """Configured thread count, or the cpu count when unset or out of range."""
        if self.threads <= 0 or self.threads > MAX_THREADS:
            return os.cpu_count() or 2
        return self.threads

    def resolved_loops(self) -> int:
        if self.loops_for_test <= 0 or self.loops_for_test > MAX_LOOPS:
            return LOOPS
        return self.loops_for_test


def load_settings(path: str) -> Settings:
    """Read the ``[paths]``, ``[options]`` and ``[parameters]`` sections of an INI file.

    Missing keys keep their defaults.
    """
    parser = configparser.ConfigParser()
    if not parser.read(path):
        raise FileNotFoundError(f"Could not load configuration file: {path}")

    defaults = Settings()
    return Settings(
        image=parser.get("paths", "image", fallback=defaults.image),
        w_path=parser.get("paths", "w_path", fallback=defaults.w_path),
        execution_time_in_fps=parser.getboolean(
            "options", "execution_time_in_fps", fallback=defaults.execution_time_in_fps
        ),
        save_watermarked_files_to_disk=parser.getboolean(
            "options",
            "save_watermarked_files_to_disk",
            fallback=defaults.save_watermarked_files_to_disk,
        ),
        p=parser.getint("parameters", "p", fallback=defaults.p),
        psnr=parser.getfloat("parameters", "psnr", fallback=defaults.psnr),
        threads=parser.getint("parameters", "threads", fallback=defaults.threads),
        loops_for_test=parser.getint(
            "parameters", "loops_for_test", fallback=defaults.loops_for_test
        ),
    )
