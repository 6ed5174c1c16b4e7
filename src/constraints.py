P = 5
"""Default side of the square neighborhood window. Must be odd"""

MAX_P = 9
"""Largest neighborhood window accepted"""

PSNR = 30.0
"""Default target PSNR (dB) of the embedded watermark"""

PIXEL_MAX = 255.0
"""Nominal dynamic range of an 8-bit luminance sample"""

W_PATH = "w.txt"
"""Default path of the raw float32 reference pattern"""

SETTINGS_FILE = "settings.ini"
"""Configuration file read by the command line tool"""

LOOPS = 5
"""How many times each timed operation is repeated by the command line tool"""

MAX_LOOPS = 64
"""Upper bound for the number of timed repetitions"""

MAX_THREADS = 256
"""Thread counts above this fall back to the number of available cpus"""

MIN_DIM = 16
"""Images must have strictly more rows and columns than this"""

MAX_DIM = 16384
"""Images must have strictly fewer rows and columns than this"""

R_WEIGHT = 0.299
"""Red weight of the luminance conversion"""

G_WEIGHT = 0.587
"""Green weight of the luminance conversion"""

B_WEIGHT = 0.114
"""Blue weight of the luminance conversion"""

THRESH = 0.1
"""Correlation above which the command line tool reports the watermark as present"""
