"""
GeometricCorrector interface.

A corrector turns a raw 8-bit raster plus its exposure and timestamp into a
corrected float frame of fixed output size. The ingestion layer only calls
through this interface and never interprets calibration contents itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from models.frame import AssembledFrame, RawRaster


class CalibrationError(ValueError):
    """A calibration, gamma or vignette file could not be used."""


class GeometricCorrector(ABC):
    """
    Abstract base class for lens / photometric correction.

    Implementations expose the input ("original") raster size they expect,
    the output size they produce, the original camera parameters and the
    output camera matrix K.
    """

    @property
    @abstractmethod
    def original_size(self) -> Tuple[int, int]:
        """(width, height) of raw input rasters."""
        pass

    @property
    @abstractmethod
    def size(self) -> Tuple[int, int]:
        """(width, height) of corrected frames."""
        pass

    @property
    @abstractmethod
    def original_parameters(self) -> np.ndarray:
        """Camera parameters of the original (distorted) model."""
        pass

    @property
    @abstractmethod
    def K(self) -> np.ndarray:
        """3x3 camera matrix of the corrected output."""
        pass

    @property
    def photometric_gamma(self) -> Optional[np.ndarray]:
        """256-entry inverse response, or None without photometric calibration."""
        return None

    @abstractmethod
    def undistort(self, raster: RawRaster, exposure: float, timestamp: float) -> AssembledFrame:
        """Correct `raster` and return a frame with an empty depth slot."""
        pass
