"""
Typed models for the frame ingestion layer.

Rasters and frames are produced per retrieval call; metadata and config are
built once per reader.
"""

from .frame import RawRaster, AssembledFrame
from .metadata import FrameMetadata, MetadataStatus, SYNTHETIC_FRAME_INTERVAL
from .config import Config, ReaderConfig

__all__ = [
    # Frames
    "RawRaster",
    "AssembledFrame",
    # Metadata
    "FrameMetadata",
    "MetadataStatus",
    "SYNTHETIC_FRAME_INTERVAL",
    # Config
    "Config",
    "ReaderConfig",
]
