"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ReaderConfig:
    """
    Inputs of a FolderReader.

    Attributes:
        image_path: Directory or .zip archive holding the main images.
        depth_path: Directory or .zip archive holding depth maps ("" = none).
        calibration_file: Camera calibration file for the corrector.
        gamma_file: Photometric response file ("" = none).
        vignette_file: Vignette image ("" = none).
        times_file: Explicit timestamp sidecar. None = times.txt next to image_path.
    """
    image_path: str = ""
    depth_path: str = ""
    calibration_file: str = ""
    gamma_file: str = ""
    vignette_file: str = ""
    times_file: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ReaderConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            image_path=d.get("image_path", ""),
            depth_path=d.get("depth_path", "") or "",
            calibration_file=d.get("calibration_file", ""),
            gamma_file=d.get("gamma_file", "") or "",
            vignette_file=d.get("vignette_file", "") or "",
            times_file=d.get("times_file"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "image_path": self.image_path,
            "depth_path": self.depth_path,
            "calibration_file": self.calibration_file,
            "gamma_file": self.gamma_file,
            "vignette_file": self.vignette_file,
        }
        if self.times_file is not None:
            d["times_file"] = self.times_file
        return d


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    log_path: str = "logs/frame_ingest.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            reader=ReaderConfig.from_dict(d.get("reader", {})),
            log_path=d.get("log_path", "logs/frame_ingest.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "reader": self.reader.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
