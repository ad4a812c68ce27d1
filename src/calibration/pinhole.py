"""
Pinhole / radial-tangential corrector backed by OpenCV.

Applies the photometric response and vignette on the original raster, then
remaps it into the rectified output camera.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from models.frame import AssembledFrame, RawRaster
from .base import CalibrationError, GeometricCorrector
from .files import CameraFile, load_gamma, load_vignette, parse_camera_file

logger = logging.getLogger(__name__)


def _camera_matrix(fx: float, fy: float, cx: float, cy: float) -> np.ndarray:
    return np.array([[fx, 0.0, cx], [0.0, fy, cy], [0.0, 0.0, 1.0]], dtype=np.float64)


class PinholeCorrector(GeometricCorrector):
    """
    Corrector for pinhole cameras with optional radial-tangential distortion.

    Example:
        corrector = PinholeCorrector.from_files("camera.txt", "pcalib.txt", "vignette.png")
        frame = corrector.undistort(raster, exposure=1.0, timestamp=0.0)
    """

    def __init__(
        self,
        camera: CameraFile,
        gamma: Optional[np.ndarray] = None,
        vignette: Optional[np.ndarray] = None,
    ):
        self._camera = camera
        self._gamma = gamma
        self._vignette = vignette

        self._K_org = _camera_matrix(*camera.intrinsics)
        self._dist = np.array(camera.distortion, dtype=np.float64)
        self._K = self._output_matrix()

        self._identity = (
            not camera.has_distortion
            and camera.original_size == camera.output_size
            and np.allclose(self._K, self._K_org)
        )
        self._map_x: Optional[np.ndarray] = None
        self._map_y: Optional[np.ndarray] = None
        if not self._identity:
            self._map_x, self._map_y = cv2.initUndistortRectifyMap(
                self._K_org, self._dist, None, self._K, camera.output_size, cv2.CV_32FC1
            )

    @classmethod
    def from_files(
        cls,
        calibration_file: str,
        gamma_file: str = "",
        vignette_file: str = "",
    ) -> "PinholeCorrector":
        """Build a corrector from a camera file and optional photometric files."""
        camera = parse_camera_file(calibration_file)
        gamma = load_gamma(gamma_file) if gamma_file else None
        vignette = load_vignette(vignette_file, camera.original_size) if vignette_file else None
        if gamma is None and vignette is None:
            logger.info("No photometric calibration, using raw intensities")

        corrector = cls(camera, gamma=gamma, vignette=vignette)
        logger.info(
            f"PinholeCorrector: {camera.model} {camera.original_size[0]}x{camera.original_size[1]} "
            f"-> {corrector.size[0]}x{corrector.size[1]} ({camera.output_mode})"
        )
        return corrector

    def _output_matrix(self) -> np.ndarray:
        camera = self._camera
        if camera.output_mode == "explicit":
            return _camera_matrix(*camera.output_intrinsics)

        if camera.output_mode in ("crop", "full"):
            alpha = 0.0 if camera.output_mode == "crop" else 1.0
            K, _ = cv2.getOptimalNewCameraMatrix(
                self._K_org, self._dist, camera.original_size, alpha, camera.output_size
            )
            return K.astype(np.float64)

        # "none": keep the original intrinsics, rescaled to the output size.
        sx = camera.output_size[0] / camera.original_size[0]
        sy = camera.output_size[1] / camera.original_size[1]
        fx, fy, cx, cy = camera.intrinsics
        return _camera_matrix(fx * sx, fy * sy, (cx + 0.5) * sx - 0.5, (cy + 0.5) * sy - 0.5)

    @property
    def original_size(self) -> Tuple[int, int]:
        return self._camera.original_size

    @property
    def size(self) -> Tuple[int, int]:
        return self._camera.output_size

    @property
    def original_parameters(self) -> np.ndarray:
        return self._camera.parameters

    @property
    def K(self) -> np.ndarray:
        return self._K

    @property
    def photometric_gamma(self) -> Optional[np.ndarray]:
        return self._gamma

    def undistort(self, raster: RawRaster, exposure: float, timestamp: float) -> AssembledFrame:
        if raster.size != self.original_size:
            raise CalibrationError(
                f"Raster {raster.name} is {raster.width}x{raster.height}, "
                f"calibration expects {self.original_size[0]}x{self.original_size[1]}"
            )

        if self._gamma is not None:
            image = self._gamma[raster.pixels]
        else:
            image = raster.pixels.astype(np.float32)
        if self._vignette is not None:
            image = image / self._vignette

        if not self._identity:
            image = cv2.remap(image, self._map_x, self._map_y, cv2.INTER_LINEAR)

        return AssembledFrame.from_numpy(
            np.ascontiguousarray(image, dtype=np.float32),
            exposure=exposure,
            timestamp=timestamp,
            source=raster.name,
        )


def load_corrector(calibration_file: str, gamma_file: str = "", vignette_file: str = "") -> GeometricCorrector:
    """Default corrector factory used by FolderReader."""
    return PinholeCorrector.from_files(calibration_file, gamma_file, vignette_file)
