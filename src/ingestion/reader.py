"""
FolderReader: random access to an image sequence with optional depth maps.

Wraps a main source, an optional depth source, a geometric corrector and the
timestamp/exposure sidecar behind one interface. Construction either yields a
fully usable reader or raises; per-frame reads raise per call and leave the
reader usable.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, Optional, Tuple, Union

import numpy as np

from calibration.base import GeometricCorrector
from calibration.pinhole import load_corrector
from models.config import Config, ReaderConfig
from models.frame import AssembledFrame, RawRaster
from models.metadata import FrameMetadata
from ops.logging import setup_logging
from .archive_source import ArchiveSource
from .assembler import FrameAssembler
from .base import FrameSource, is_archive_path, open_source
from .errors import SourceError, SourceErrorKind
from .metadata import load_metadata, times_path_for

logger = logging.getLogger(__name__)


CorrectorFactory = Callable[[str, str, str], GeometricCorrector]


class FolderReader:
    """
    Indexable reader over a directory or zip archive of frames.

    Not thread-safe: archive sources reuse one decode buffer per handle, so
    calls against one reader must be serialized by the caller.

    Example:
        with FolderReader("seq/images.zip", "", "seq/camera.txt") as reader:
            for i in range(reader.count()):
                frame = reader.image(i)
    """

    def __init__(
        self,
        path: str,
        depth_path: str = "",
        calibration_file: str = "",
        gamma_file: str = "",
        vignette_file: str = "",
        times_file: Optional[str] = None,
        corrector_factory: CorrectorFactory = load_corrector,
    ):
        self._path = path
        self._depth_path = depth_path or ""
        self._calibration_file = calibration_file
        self._main: Optional[FrameSource] = None
        self._depth: Optional[FrameSource] = None

        try:
            self._main = open_source(path, role="main")
            if self._depth_path:
                depth = open_source(self._depth_path, role="depth")
                if len(depth) > 0:
                    self._depth = depth
                else:
                    depth.close()

            if self._depth is not None and len(self._depth) != len(self._main):
                raise SourceError(
                    SourceErrorKind.COUNT_MISMATCH,
                    "depth",
                    self._depth_path,
                    f"{len(self._depth)} depth maps for {len(self._main)} images",
                )

            self._corrector = corrector_factory(calibration_file, gamma_file, vignette_file)

            width_org, height_org = self._corrector.original_size
            for source in (self._main, self._depth):
                if isinstance(source, ArchiveSource):
                    source.bind_raster_size(width_org, height_org)

            self._metadata = load_metadata(times_file or times_path_for(path), len(self._main))
        except Exception:
            self.close()
            raise

        self._assembler = FrameAssembler(
            self._main, self._corrector, self._metadata, depth=self._depth
        )

        logger.info(f"FolderReader: got {len(self._main)} images in {path}")
        if self._depth is not None:
            logger.info(f"FolderReader: got {len(self._depth)} depth maps in {self._depth_path}")

    @classmethod
    def from_config(
        cls,
        config: Union[Config, ReaderConfig],
        corrector_factory: CorrectorFactory = load_corrector,
    ) -> "FolderReader":
        """
        Adapter: Create a reader from a Config or ReaderConfig.

        A full Config also routes the package loggers to its log_path at its
        log_level before the reader is built, so construction logs land there.
        """
        if isinstance(config, Config):
            setup_logging(config.log_path, config.log_level)
            config = config.reader
        return cls(
            config.image_path,
            depth_path=config.depth_path,
            calibration_file=config.calibration_file,
            gamma_file=config.gamma_file,
            vignette_file=config.vignette_file,
            times_file=config.times_file,
            corrector_factory=corrector_factory,
        )

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_zipped(self) -> bool:
        return is_archive_path(self._path)

    @property
    def has_depth(self) -> bool:
        return self._depth is not None

    @property
    def metadata(self) -> FrameMetadata:
        return self._metadata

    @property
    def corrector(self) -> GeometricCorrector:
        return self._corrector

    def count(self) -> int:
        """Number of frames in the sequence."""
        return len(self._main)

    def __len__(self) -> int:
        return self.count()

    def timestamp(self, frame_id: int) -> float:
        """
        Timestamp of frame `frame_id` in seconds.

        Out-of-range ids return 0.0. Without sidecar timestamps the synthetic
        value `frame_id * 0.1` is returned.
        """
        return self._metadata.timestamp(frame_id)

    def raw_image(self, frame_id: int) -> RawRaster:
        """Uncorrected 8-bit main raster of frame `frame_id`."""
        return self._assembler.raw(frame_id)

    def image(self, frame_id: int) -> AssembledFrame:
        """
        Corrected frame `frame_id`.

        Raises:
            IndexError: If frame_id is outside [0, count()).
            DecodeError: If the frame cannot be read; the reader stays usable.
        """
        return self._assembler.assemble(frame_id)

    def original_calibration(self) -> np.ndarray:
        """Parameters of the original camera model."""
        return self._corrector.original_parameters.astype(np.float32)

    def original_dimensions(self) -> Tuple[int, int]:
        """(width, height) of raw rasters."""
        return self._corrector.original_size

    def mono_calibration(self) -> Tuple[np.ndarray, int, int]:
        """(K, width, height) of corrected frames."""
        w, h = self._corrector.size
        return self._corrector.K.astype(np.float32), w, h

    def photometric_gamma(self) -> Optional[np.ndarray]:
        """Inverse response function, or None without photometric calibration."""
        return self._corrector.photometric_gamma

    def close(self) -> None:
        """Close archive handles. Safe to call multiple times."""
        for source in (self._main, self._depth):
            if source is not None:
                source.close()

    def __enter__(self) -> "FolderReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[AssembledFrame]:
        """Iterate over corrected frames in order."""
        for frame_id in range(self.count()):
            yield self.image(frame_id)
