"""
FrameSource interface for addressable image sequences.

A frame source turns a location on disk into a sorted, immutable list of
entries and reads any entry as an 8-bit raster:
- Directories of image files
- Zip archives of image files

The variant is selected at run time from the path (see open_source).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Tuple

from models.frame import RawRaster


ARCHIVE_SUFFIX = ".zip"


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with a path and a role ("main" or "depth")
        2. Call open() to enumerate entries
        3. Call read_raw() for any index in [0, len(source))
        4. Call close() to release resources

    Can also be used as a context manager:
        with DirectorySource("seq/images") as source:
            for raster in source:
                process(raster)

    Sources are not thread-safe. Reads against one source must be
    serialized by the caller.
    """

    def __init__(self, path: str, role: str = "main"):
        self._path = path
        self._role = role
        self._entries: Tuple[str, ...] = ()
        self._is_open = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def role(self) -> str:
        return self._role

    @property
    def is_open(self) -> bool:
        """Whether the source has been enumerated and can be read."""
        return self._is_open

    @property
    def entries(self) -> Tuple[str, ...]:
        """Lexicographically sorted entry identifiers."""
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def open(self) -> None:
        """
        Enumerate the source.

        Raises:
            SourceError: If the source cannot be opened or listed.
        """
        if self._is_open:
            return
        self._entries = tuple(sorted(self._enumerate()))
        self._is_open = True

    @abstractmethod
    def _enumerate(self) -> List[str]:
        """Return the (unsorted) entry identifiers of this source."""
        pass

    @abstractmethod
    def read_raw(self, index: int) -> RawRaster:
        """
        Read entry `index` as an 8-bit grayscale raster.

        Raises:
            IndexError: If index is outside [0, len(source)).
            DecodeError: If the entry cannot be read or decoded.
        """
        pass

    def close(self) -> None:
        """
        Release any resources held by the source.

        Safe to call multiple times.
        """
        self._is_open = False

    def entry(self, index: int) -> str:
        """Identifier of entry `index`."""
        if index < 0 or index >= len(self._entries):
            raise IndexError(
                f"Frame index {index} out of range for {self._role} source "
                f"with {len(self._entries)} entries"
            )
        return self._entries[index]

    def __enter__(self) -> "FrameSource":
        """Context manager entry - opens the source."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes the source."""
        self.close()

    def __iter__(self) -> Iterator[RawRaster]:
        """
        Iterate over raw rasters in entry order.

        The source must be open before iterating.
        """
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        for index in range(len(self._entries)):
            yield self.read_raw(index)


def is_archive_path(path: Optional[str]) -> bool:
    """Whether `path` names a zip archive rather than a directory."""
    return bool(path) and len(path) > len(ARCHIVE_SUFFIX) and path.endswith(ARCHIVE_SUFFIX)


def open_source(path: str, role: str = "main") -> FrameSource:
    """
    Create and open the frame source variant matching `path`.

    Paths ending in ".zip" are read as archives, anything else as a
    directory.

    Raises:
        SourceError: If the source cannot be opened or listed.
    """
    # Imported here to keep the variants importable on their own.
    from .archive_source import ArchiveSource
    from .directory_source import DirectorySource

    if is_archive_path(path):
        source: FrameSource = ArchiveSource(path, role=role)
    else:
        source = DirectorySource(path, role=role)
    source.open()
    return source
