"""
Raw raster decoding helpers.

Thin wrappers around OpenCV that always produce 8-bit grayscale rasters.
"""

from __future__ import annotations

import cv2
import numpy as np

from models.frame import RawRaster
from .errors import DecodeError, DecodeErrorKind


def read_raster_file(path: str) -> RawRaster:
    """Read an image file from disk as an 8-bit grayscale raster."""
    pixels = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
    if pixels is None:
        raise DecodeError(DecodeErrorKind.DECODE_FAILED, path, "cv2.imread returned no image")
    return RawRaster.from_numpy(pixels, name=path)


def decode_raster_bytes(data: bytes, name: str) -> RawRaster:
    """Decode an in-memory encoded image as an 8-bit grayscale raster."""
    if not data:
        raise DecodeError(DecodeErrorKind.DECODE_FAILED, name, "entry is empty")
    pixels = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_GRAYSCALE)
    if pixels is None:
        raise DecodeError(DecodeErrorKind.DECODE_FAILED, name, "cv2.imdecode returned no image")
    return RawRaster.from_numpy(pixels, name=name)
