"""
Parsers for camera, photometric response and vignette files.

Camera file layout (one item per line):

    [Pinhole|RadTan] fx fy cx cy [0 | k1 k2 p1 p2]
    width height
    none | crop | full | fx fy cx cy 0
    out_width out_height

Intrinsics with cx < 1 and cy < 1 are relative to the image size and are
converted to pixels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .base import CalibrationError

logger = logging.getLogger(__name__)


OUTPUT_MODES = ("none", "crop", "full")
GAMMA_ENTRIES = 256


@dataclass
class CameraFile:
    """
    Parsed camera calibration file.

    Attributes:
        model: "pinhole" or "radtan".
        intrinsics: (fx, fy, cx, cy) in pixels.
        distortion: (k1, k2, p1, p2); zeros for pinhole.
        original_size: (width, height) of input rasters.
        output_mode: "none", "crop", "full" or "explicit".
        output_intrinsics: (fx, fy, cx, cy) in pixels when output_mode is "explicit".
        output_size: (width, height) of corrected frames.
    """
    model: str
    intrinsics: Tuple[float, float, float, float]
    original_size: Tuple[int, int]
    output_size: Tuple[int, int]
    output_mode: str = "none"
    distortion: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    output_intrinsics: Optional[Tuple[float, float, float, float]] = None

    @property
    def has_distortion(self) -> bool:
        return any(d != 0 for d in self.distortion)

    @property
    def parameters(self) -> np.ndarray:
        """Original model parameters as a flat vector."""
        values = list(self.intrinsics)
        if self.model == "radtan":
            values += list(self.distortion)
        return np.array(values, dtype=np.float64)


def _to_pixels(values: List[float], size: Tuple[int, int]) -> Tuple[float, float, float, float]:
    fx, fy, cx, cy = values[:4]
    if cx < 1 and cy < 1:
        w, h = size
        fx, fy = fx * w, fy * h
        cx, cy = cx * w - 0.5, cy * h - 0.5
    return (fx, fy, cx, cy)


def _parse_numbers(tokens: List[str], path: str, line_no: int) -> List[float]:
    try:
        return [float(t) for t in tokens]
    except ValueError as e:
        raise CalibrationError(f"{path}:{line_no}: expected numbers, got {' '.join(tokens)!r}") from e


def _parse_size(line: str, path: str, line_no: int) -> Tuple[int, int]:
    values = _parse_numbers(line.split(), path, line_no)
    if len(values) != 2 or values[0] <= 0 or values[1] <= 0:
        raise CalibrationError(f"{path}:{line_no}: expected 'width height', got {line.strip()!r}")
    return (int(values[0]), int(values[1]))


def parse_camera_file(path: str) -> CameraFile:
    """Parse a camera calibration file."""
    try:
        with open(path, "r") as f:
            lines = [line for line in f.read().splitlines() if line.strip()]
    except OSError as e:
        raise CalibrationError(f"Cannot read calibration file {path}: {e}") from e

    if len(lines) < 4:
        raise CalibrationError(f"{path}: expected 4 lines, got {len(lines)}")

    tokens = lines[0].split()
    model_name = None
    if tokens and tokens[0].isalpha():
        model_name = tokens.pop(0).lower()
    values = _parse_numbers(tokens, path, 1)

    distortion = (0.0, 0.0, 0.0, 0.0)
    if len(values) == 8 and model_name in (None, "radtan"):
        model = "radtan"
        distortion = tuple(values[4:8])
    elif len(values) in (4, 5) and model_name in (None, "pinhole"):
        model = "pinhole"
        if len(values) == 5 and values[4] != 0:
            raise CalibrationError(f"{path}: FOV distortion (omega={values[4]}) is not supported")
    else:
        raise CalibrationError(f"{path}: unsupported camera model line {lines[0].strip()!r}")

    original_size = _parse_size(lines[1], path, 2)
    output_size = _parse_size(lines[3], path, 4)

    mode_line = lines[2].strip()
    output_intrinsics = None
    if mode_line.lower() in OUTPUT_MODES:
        output_mode = mode_line.lower()
    else:
        out_values = _parse_numbers(mode_line.split(), path, 3)
        if len(out_values) not in (4, 5):
            raise CalibrationError(f"{path}:3: expected output mode or 'fx fy cx cy 0'")
        output_mode = "explicit"
        output_intrinsics = _to_pixels(out_values, output_size)

    return CameraFile(
        model=model,
        intrinsics=_to_pixels(values, original_size),
        distortion=distortion,
        original_size=original_size,
        output_mode=output_mode,
        output_intrinsics=output_intrinsics,
        output_size=output_size,
    )


def load_gamma(path: str) -> np.ndarray:
    """
    Load an inverse response function of 256 values.

    The curve is rescaled to [0, 255] and must be strictly increasing.
    """
    try:
        with open(path, "r") as f:
            values = np.array(f.read().split(), dtype=np.float64)
    except (OSError, ValueError) as e:
        raise CalibrationError(f"Cannot read gamma file {path}: {e}") from e

    if values.size != GAMMA_ENTRIES:
        raise CalibrationError(f"{path}: expected {GAMMA_ENTRIES} gamma values, got {values.size}")
    if np.any(np.diff(values) <= 0):
        raise CalibrationError(f"{path}: response function must be strictly increasing")

    g_min, g_max = values[0], values[-1]
    return ((values - g_min) * (255.0 / (g_max - g_min))).astype(np.float32)


def load_vignette(path: str, size: Tuple[int, int]) -> np.ndarray:
    """Load a vignette image normalised to a maximum of 1."""
    image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise CalibrationError(f"Cannot read vignette image {path}")
    if image.ndim == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

    h, w = image.shape[:2]
    if (w, h) != tuple(size):
        raise CalibrationError(f"{path}: vignette is {w}x{h}, expected {size[0]}x{size[1]}")

    vignette = image.astype(np.float32)
    if vignette.min() <= 0:
        raise CalibrationError(f"{path}: vignette must be positive everywhere")
    vignette /= vignette.max()
    logger.info(f"Loaded vignette {path} ({w}x{h}, min {vignette.min():.3f})")
    return vignette
