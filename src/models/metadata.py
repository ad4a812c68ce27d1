"""
Per-frame timestamp and exposure metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


# Spacing of synthetic timestamps when no sidecar timing is available.
SYNTHETIC_FRAME_INTERVAL = 0.1


class MetadataStatus(str, Enum):
    """Which fallback path the metadata loader ended up on."""
    FULL = "full"
    NO_EXPOSURES = "no_exposures"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class FrameMetadata:
    """
    Timestamps and exposures for an image sequence.

    Both tuples are either empty or exactly `count` long. Built once when
    a reader is constructed and never mutated afterwards.

    Attributes:
        count: Number of frames in the sequence.
        timestamps: Per-frame timestamps in seconds.
        exposures: Per-frame exposure values (always > 0 when present).
        status: Which fallback path was taken while loading.
    """
    count: int
    timestamps: Tuple[float, ...] = ()
    exposures: Tuple[float, ...] = ()
    status: MetadataStatus = MetadataStatus.SYNTHETIC

    @classmethod
    def synthetic(cls, count: int) -> "FrameMetadata":
        """Metadata with no timestamps and no exposures."""
        return cls(count=count)

    @property
    def has_timestamps(self) -> bool:
        return len(self.timestamps) > 0

    @property
    def has_exposures(self) -> bool:
        return len(self.exposures) > 0

    def _in_range(self, frame_id: int) -> bool:
        return 0 <= frame_id < self.count

    def timestamp(self, frame_id: int) -> float:
        """
        Public timestamp lookup.

        Out-of-range ids return 0.0. Without loaded timestamps the
        synthetic value `frame_id * 0.1` is returned.
        """
        if not self._in_range(frame_id):
            return 0.0
        if not self.timestamps:
            return frame_id * SYNTHETIC_FRAME_INTERVAL
        return self.timestamps[frame_id]

    def timestamp_or_default(self, frame_id: int) -> float:
        """Timestamp handed to the corrector: 0.0 when unknown."""
        if not self.timestamps or not self._in_range(frame_id):
            return 0.0
        return self.timestamps[frame_id]

    def exposure_or_default(self, frame_id: int) -> float:
        """Exposure handed to the corrector: 1.0 when unknown."""
        if not self.exposures or not self._in_range(frame_id):
            return 1.0
        return self.exposures[frame_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "timestamps": list(self.timestamps),
            "exposures": list(self.exposures),
            "status": self.status.value,
        }
