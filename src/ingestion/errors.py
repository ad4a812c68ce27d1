"""
Error types raised by the ingestion layer.

Source errors are raised while a reader is being constructed and mean the
sequence cannot be read at all. Decode errors are raised per frame; the
reader stays usable and the caller can skip the frame.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class SourceErrorKind(str, Enum):
    OPEN_FAILED = "open_failed"
    EMPTY_DIRECTORY = "empty_directory"
    COUNT_MISMATCH = "count_mismatch"


class DecodeErrorKind(str, Enum):
    BUFFER_EXHAUSTED = "buffer_exhausted"
    DECODE_FAILED = "decode_failed"
    DEPTH_MISMATCH = "depth_mismatch"


class IngestionError(RuntimeError):
    """Base class for ingestion failures."""


class SourceError(IngestionError):
    """
    A main or depth source could not be enumerated.

    Attributes:
        kind: What went wrong.
        role: "main" or "depth".
        path: Path of the offending source.
    """

    def __init__(self, kind: SourceErrorKind, role: str, path: str, detail: Optional[str] = None):
        self.kind = kind
        self.role = role
        self.path = path
        self.detail = detail
        message = f"{role} source {kind.value}: {path}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class DecodeError(IngestionError):
    """
    A single frame could not be read or decoded.

    Attributes:
        kind: What went wrong.
        name: Entry identifier of the frame.
    """

    def __init__(self, kind: DecodeErrorKind, name: str, detail: Optional[str] = None):
        self.kind = kind
        self.name = name
        self.detail = detail
        message = f"{kind.value} for {name}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
