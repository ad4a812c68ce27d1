"""
Geometric and photometric correction collaborators.

The ingestion layer talks to a GeometricCorrector only; PinholeCorrector is
the default implementation built from calibration files.
"""

from .base import CalibrationError, GeometricCorrector
from .files import CameraFile, parse_camera_file, load_gamma, load_vignette
from .pinhole import PinholeCorrector, load_corrector

__all__ = [
    "CalibrationError",
    "GeometricCorrector",
    "CameraFile",
    "parse_camera_file",
    "load_gamma",
    "load_vignette",
    "PinholeCorrector",
    "load_corrector",
]
