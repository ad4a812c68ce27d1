"""
Directory-backed frame source.

Every regular file in the directory is one frame; files are ordered by name.
Images are decoded with OpenCV as 8-bit grayscale.
"""

from __future__ import annotations

import logging
import os
from typing import List

from models.frame import RawRaster
from .base import FrameSource
from .decode import read_raster_file
from .errors import SourceError, SourceErrorKind

logger = logging.getLogger(__name__)


class DirectorySource(FrameSource):
    """
    Frame source reading image files from a directory.

    Entry identifiers are full file paths (directory joined with file name),
    so they sort the same way as the bare file names.

    Example:
        with DirectorySource("sequence_01/images") as source:
            raster = source.read_raw(0)
    """

    def _enumerate(self) -> List[str]:
        try:
            names = os.listdir(self._path)
        except OSError as e:
            raise SourceError(
                SourceErrorKind.EMPTY_DIRECTORY, self._role, self._path, str(e)
            ) from e

        files = []
        skipped = 0
        for name in names:
            if name in (".", ".."):
                continue
            full_path = os.path.join(self._path, name)
            if os.path.isdir(full_path):
                skipped += 1
                continue
            files.append(full_path)

        logger.info(
            f"DirectorySource: got {len(names)} entries and {len(files)} files "
            f"in {self._path} ({self._role})"
        )
        if skipped:
            logger.debug(f"DirectorySource: skipped {skipped} sub-directories in {self._path}")
        return files

    def read_raw(self, index: int) -> RawRaster:
        """Read file `index` from disk."""
        return read_raster_file(self.entry(index))
