"""
Ingestion layer for image sequences stored as folders or zip archives.

Sources enumerate and read raw rasters, the metadata loader recovers
timestamps and exposures, and FolderReader ties them to a geometric
corrector behind one random-access interface.
"""

from .errors import (
    IngestionError,
    SourceError,
    SourceErrorKind,
    DecodeError,
    DecodeErrorKind,
)
from .base import FrameSource, open_source, is_archive_path
from .directory_source import DirectorySource
from .archive_source import ArchiveSource, ArchiveDecodeBuffer
from .metadata import load_metadata, times_path_for
from .assembler import FrameAssembler
from .reader import FolderReader

__all__ = [
    "IngestionError",
    "SourceError",
    "SourceErrorKind",
    "DecodeError",
    "DecodeErrorKind",
    "FrameSource",
    "open_source",
    "is_archive_path",
    "DirectorySource",
    "ArchiveSource",
    "ArchiveDecodeBuffer",
    "load_metadata",
    "times_path_for",
    "FrameAssembler",
    "FolderReader",
]
