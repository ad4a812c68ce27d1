"""
Zip-archive-backed frame source.

Every non-directory member of the archive is one frame; members are ordered
by name. Compressed members are staged in a reusable decode buffer before
OpenCV decodes them.
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from typing import List, Optional, Tuple

from models.frame import RawRaster
from .base import FrameSource
from .decode import decode_raster_bytes
from .errors import DecodeError, DecodeErrorKind, SourceError, SourceErrorKind

logger = logging.getLogger(__name__)


# Initial capacity is width * height * INITIAL_BYTES_PER_PIXEL + INITIAL_SLACK_BYTES.
INITIAL_BYTES_PER_PIXEL = 6
INITIAL_SLACK_BYTES = 10000
# Capacity after the single allowed growth step.
ESCALATED_BYTES_PER_PIXEL = 30


class ArchiveDecodeBuffer:
    """
    Growable byte buffer staging archive members before decoding.

    The buffer starts at `width * height * 6 + 10000` bytes and can grow
    once, to `width * height * 30` bytes, when a member does not fit. A
    member that still does not fit raises DecodeError(BUFFER_EXHAUSTED).

    One buffer belongs to exactly one archive handle and is reused across
    reads. It is not reentrant: two concurrent reads through the same
    buffer corrupt each other.
    """

    def __init__(self, archive: zipfile.ZipFile, width: int, height: int):
        self._archive = archive
        self._initial_capacity = width * height * INITIAL_BYTES_PER_PIXEL + INITIAL_SLACK_BYTES
        self._escalated_capacity = max(
            width * height * ESCALATED_BYTES_PER_PIXEL, self._initial_capacity
        )
        self._buffer: Optional[bytearray] = None
        self._escalated = False

    @property
    def capacity(self) -> int:
        """Current capacity in bytes (allocated lazily on first read)."""
        if self._buffer is None:
            return self._initial_capacity
        return len(self._buffer)

    @property
    def initial_capacity(self) -> int:
        return self._initial_capacity

    @property
    def escalated_capacity(self) -> int:
        return self._escalated_capacity

    @property
    def escalated(self) -> bool:
        """Whether the single growth step has been used."""
        return self._escalated

    def read_entry(self, name: str) -> bytes:
        """
        Read archive member `name` through the buffer.

        Returns:
            The member's bytes.

        Raises:
            DecodeError: BUFFER_EXHAUSTED if the member does not fit even
                after growth, DECODE_FAILED if it cannot be read at all.
        """
        if self._buffer is None:
            self._buffer = bytearray(self._initial_capacity)

        read_bytes = self._read_into_buffer(name)
        if read_bytes is None:
            if self._escalated:
                raise DecodeError(
                    DecodeErrorKind.BUFFER_EXHAUSTED,
                    name,
                    f"member exceeds escalated capacity of {len(self._buffer)} bytes",
                )

            logger.warning(
                f"read more than {len(self._buffer)} bytes for {name}, "
                f"increasing decode buffer to {self._escalated_capacity} bytes"
            )
            self._buffer = bytearray(self._escalated_capacity)
            self._escalated = True

            read_bytes = self._read_into_buffer(name)
            if read_bytes is None:
                logger.error(
                    f"decode buffer still too small for {name} "
                    f"({self._escalated_capacity} bytes)"
                )
                raise DecodeError(
                    DecodeErrorKind.BUFFER_EXHAUSTED,
                    name,
                    f"member exceeds escalated capacity of {self._escalated_capacity} bytes",
                )

        return bytes(memoryview(self._buffer)[:read_bytes])

    def _read_into_buffer(self, name: str) -> Optional[int]:
        """Stream member `name` into the buffer. None means it overflowed."""
        view = memoryview(self._buffer)
        try:
            with self._archive.open(name) as member:
                capacity = len(view)
                total = 0
                while total < capacity:
                    n = member.readinto(view[total:])
                    if not n:
                        break
                    total += n
                if total == capacity and member.read(1):
                    return None
                return total
        except KeyError as e:
            raise DecodeError(DecodeErrorKind.DECODE_FAILED, name, "no such archive member") from e
        except (zipfile.BadZipFile, zlib.error, OSError) as e:
            raise DecodeError(DecodeErrorKind.DECODE_FAILED, name, str(e)) from e


class ArchiveSource(FrameSource):
    """
    Frame source reading image members from a zip archive.

    Owns the open archive handle and its decode buffer. The buffer is sized
    from the original (uncorrected) raster size, which must be bound with
    bind_raster_size() before the first read.

    Example:
        source = ArchiveSource("sequence_01/images.zip")
        source.open()
        source.bind_raster_size(1280, 1024)
        raster = source.read_raw(0)
        source.close()
    """

    def __init__(self, path: str, role: str = "main", raster_size: Optional[Tuple[int, int]] = None):
        super().__init__(path, role)
        self._archive: Optional[zipfile.ZipFile] = None
        self._buffer: Optional[ArchiveDecodeBuffer] = None
        self._raster_size = raster_size

    @property
    def decode_buffer(self) -> Optional[ArchiveDecodeBuffer]:
        return self._buffer

    def _enumerate(self) -> List[str]:
        try:
            self._archive = zipfile.ZipFile(self._path, "r")
        except (OSError, zipfile.BadZipFile) as e:
            logger.error(f"Failed reading archive {self._path}: {e}")
            raise SourceError(SourceErrorKind.OPEN_FAILED, self._role, self._path, str(e)) from e

        names = self._archive.namelist()
        files = [n for n in names if n not in (".", "..") and not n.endswith("/")]
        logger.info(
            f"ArchiveSource: got {len(names)} entries and {len(files)} files "
            f"in {self._path} ({self._role})"
        )

        if self._raster_size is not None:
            self.bind_raster_size(*self._raster_size)
        return files

    def bind_raster_size(self, width: int, height: int) -> None:
        """Size the decode buffer for rasters of `width` x `height` pixels."""
        if self._archive is None:
            raise RuntimeError("Archive must be open before binding a raster size")
        self._raster_size = (width, height)
        self._buffer = ArchiveDecodeBuffer(self._archive, width, height)

    def read_raw(self, index: int) -> RawRaster:
        """Read member `index` through the decode buffer."""
        name = self.entry(index)
        if self._buffer is None:
            raise RuntimeError(f"Raster size not bound for archive {self._path}")
        return decode_raster_bytes(self._buffer.read_entry(name), name)

    def close(self) -> None:
        """Close the archive handle and drop the decode buffer."""
        if self._archive is not None:
            self._archive.close()
            self._archive = None
        self._buffer = None
        super().close()
