"""
Raster and frame models for ingested image sequences.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class RawRaster:
    """
    An 8-bit grayscale raster as decoded from a file or archive entry.

    Attributes:
        pixels: Pixel grid as a (height, width) uint8 numpy array.
        width: Raster width in pixels.
        height: Raster height in pixels.
        name: Entry identifier the raster was read from.
    """
    pixels: np.ndarray
    width: int
    height: int
    name: Optional[str] = None

    @classmethod
    def from_numpy(cls, pixels: np.ndarray, name: Optional[str] = None) -> "RawRaster":
        """Create RawRaster from a 2-D numpy array."""
        h, w = pixels.shape[:2]
        return cls(pixels=pixels, width=w, height=h, name=name)

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)


@dataclass
class AssembledFrame:
    """
    A corrected frame with its photometric and timing metadata.

    Attributes:
        image: Corrected intensities as a (height, width) float32 array.
        width: Frame width in pixels.
        height: Frame height in pixels.
        exposure: Exposure used for this frame (1.0 when unknown).
        timestamp: Capture timestamp in seconds (0.0 when unknown).
        depth: Corrected depth channel, same shape as image, or None.
        has_depth: Whether the depth channel was filled.
        frame_index: Index of the frame in the sequence.
        source: Identifier of the entry the frame was read from.
    """
    image: np.ndarray
    width: int
    height: int
    exposure: float = 1.0
    timestamp: float = 0.0
    depth: Optional[np.ndarray] = None
    has_depth: bool = False
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        image: np.ndarray,
        exposure: float = 1.0,
        timestamp: float = 0.0,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "AssembledFrame":
        """Create AssembledFrame from a numpy array."""
        h, w = image.shape[:2]
        return cls(
            image=image,
            width=w,
            height=h,
            exposure=exposure,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
        )

    def attach_depth(self, depth: np.ndarray) -> None:
        """Copy a corrected depth raster into this frame's depth slot."""
        if depth.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"Depth shape {depth.shape[:2]} does not match frame shape "
                f"{(self.height, self.width)}"
            )
        self.depth = np.array(depth, dtype=np.float32, copy=True)
        self.has_depth = True

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
