"""
Frame assembly: raw main raster (+ optional depth raster) -> corrected frame.
"""

from __future__ import annotations

from typing import Optional

from calibration.base import GeometricCorrector
from models.frame import AssembledFrame, RawRaster
from models.metadata import FrameMetadata
from .base import FrameSource
from .errors import DecodeError, DecodeErrorKind


class FrameAssembler:
    """
    Reads, corrects and merges the rasters of one frame.

    The depth raster, when a depth source is configured, is corrected with
    the same exposure and timestamp as the main raster and copied into the
    main frame's depth slot.
    """

    def __init__(
        self,
        main: FrameSource,
        corrector: GeometricCorrector,
        metadata: FrameMetadata,
        depth: Optional[FrameSource] = None,
    ):
        self._main = main
        self._depth = depth
        self._corrector = corrector
        self._metadata = metadata

    @property
    def has_depth(self) -> bool:
        return self._depth is not None

    def raw(self, frame_id: int) -> RawRaster:
        """Raw main raster of frame `frame_id`."""
        return self._main.read_raw(frame_id)

    def assemble(self, frame_id: int) -> AssembledFrame:
        """Corrected frame `frame_id`, with depth when configured."""
        exposure = self._metadata.exposure_or_default(frame_id)
        timestamp = self._metadata.timestamp_or_default(frame_id)

        raster = self._main.read_raw(frame_id)
        frame = self._corrector.undistort(raster, exposure, timestamp)
        del raster
        frame.frame_index = frame_id

        if self._depth is not None:
            depth_raster = self._depth.read_raw(frame_id)
            depth_frame = self._corrector.undistort(depth_raster, exposure, timestamp)
            del depth_raster
            if depth_frame.size != frame.size:
                raise DecodeError(
                    DecodeErrorKind.DEPTH_MISMATCH,
                    self._depth.entry(frame_id),
                    f"depth is {depth_frame.width}x{depth_frame.height}, "
                    f"frame is {frame.width}x{frame.height}",
                )
            frame.attach_depth(depth_frame.image)

        return frame
