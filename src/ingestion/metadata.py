"""
Timestamp / exposure sidecar loading.

The sidecar (times.txt next to the image source) holds one frame per line:

    <int id> <float timestamp> <float exposure>
    <int id> <float timestamp>

Each field is a whitespace-separated token: the id is a plain integer, and a
float is a decimal or exponent literal, `inf`/`infinity` or `nan` (any case,
optionally signed). Anything after the last field is ignored. Lines matching
neither shape, including those whose id is not a whole integer token such
as `1.5 2.0 3.0`, are skipped. Problems never raise: the loader degrades to
fewer fields and logs which fallback it took.
"""

from __future__ import annotations

import logging
import os
import re
from typing import List, Optional, Tuple

from models.metadata import FrameMetadata, MetadataStatus

logger = logging.getLogger(__name__)


TIMES_FILENAME = "times.txt"

_INT = r"[+-]?\d+"
_FLOAT = r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)"
_FULL_LINE = re.compile(rf"^\s*({_INT})\s+({_FLOAT})\s+({_FLOAT})", re.IGNORECASE)
_STAMP_LINE = re.compile(rf"^\s*({_INT})\s+({_FLOAT})", re.IGNORECASE)


def times_path_for(image_path: str) -> str:
    """Sidecar location for an image directory or archive."""
    return os.path.join(os.path.dirname(image_path), TIMES_FILENAME)


def parse_times_line(line: str) -> Optional[Tuple[float, float]]:
    """
    Parse one sidecar line.

    Returns:
        (timestamp, exposure) with exposure 0.0 when the line has no
        exposure column, or None if the line matches neither shape.
    """
    match = _FULL_LINE.match(line)
    if match:
        return float(match.group(2)), float(match.group(3))
    match = _STAMP_LINE.match(line)
    if match:
        return float(match.group(2)), 0.0
    return None


def read_times_file(times_path: str) -> Tuple[List[float], List[float]]:
    """Read all parseable lines of a sidecar file. Missing files read as empty."""
    timestamps: List[float] = []
    exposures: List[float] = []
    try:
        with open(times_path, "r") as f:
            for line in f:
                parsed = parse_times_line(line)
                if parsed is None:
                    continue
                timestamps.append(parsed[0])
                exposures.append(parsed[1])
    except OSError as e:
        logger.info(f"No timestamp file read from {times_path}: {e}")
    return timestamps, exposures


def repair_exposures(exposures: List[float]) -> bool:
    """
    Fill zero exposures in place with the mean of their positive neighbours.

    Runs front to back, so an exposure repaired earlier can feed the next
    one.

    Returns:
        False if any exposure is still 0 afterwards.
    """
    all_good = True
    for i in range(len(exposures)):
        if exposures[i] == 0:
            total = 0.0
            num = 0
            if i > 0 and exposures[i - 1] > 0:
                total += exposures[i - 1]
                num += 1
            if i + 1 < len(exposures) and exposures[i + 1] > 0:
                total += exposures[i + 1]
                num += 1
            if num > 0:
                exposures[i] = total / num

        if exposures[i] == 0:
            all_good = False
    return all_good


def load_metadata(times_path: str, expected_count: int) -> FrameMetadata:
    """
    Load per-frame timestamps and exposures for `expected_count` frames.

    Discard policy:
        - timestamp count != expected_count: drop timestamps and exposures.
        - exposure count != expected_count, or an exposure could not be
          repaired: drop exposures only.
    """
    timestamps, exposures = read_times_file(times_path)

    exposures_good = len(exposures) == expected_count
    if not repair_exposures(exposures):
        exposures_good = False

    status = MetadataStatus.FULL
    if len(timestamps) != expected_count:
        if timestamps:
            logger.warning(
                f"Got {len(timestamps)} timestamps for {expected_count} images, "
                f"dropping timestamps and exposures"
            )
        timestamps = []
        exposures = []
        status = MetadataStatus.SYNTHETIC

    if len(exposures) != expected_count or not exposures_good:
        if exposures:
            logger.warning("Exposures incomplete or not repairable, dropping exposures")
        exposures = []
        if status == MetadataStatus.FULL:
            status = MetadataStatus.NO_EXPOSURES

    logger.info(
        f"got {expected_count} images and {len(timestamps)} timestamps "
        f"and {len(exposures)} exposures ({status.value})"
    )
    return FrameMetadata(
        count=expected_count,
        timestamps=tuple(timestamps),
        exposures=tuple(exposures),
        status=status,
    )
