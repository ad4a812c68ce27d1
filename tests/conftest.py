"""
Pytest configuration and shared fixtures.
"""

import logging
import os
import sys
import zipfile

import cv2
import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


FRAME_WIDTH = 64
FRAME_HEIGHT = 48
FRAME_COUNT = 3


def frame_pixels(value: int) -> np.ndarray:
    """A flat grayscale frame with every pixel set to `value`."""
    return np.full((FRAME_HEIGHT, FRAME_WIDTH), value, dtype=np.uint8)


def write_frames(directory, values, prefix=""):
    """Write one PNG per value into `directory`; returns the file names."""
    directory.mkdir(parents=True, exist_ok=True)
    names = []
    for i, value in enumerate(values):
        name = f"{prefix}{i:06d}.png"
        assert cv2.imwrite(str(directory / name), frame_pixels(value))
        names.append(name)
    return names


def zip_directory(directory, zip_path, with_dir_marker=True):
    """Pack the files of `directory` into `zip_path`."""
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        if with_dir_marker:
            zf.writestr("unused/", b"")
        for name in sorted(os.listdir(directory), reverse=True):
            zf.write(os.path.join(directory, name), arcname=name)
    return str(zip_path)


@pytest.fixture
def camera_file(tmp_path):
    """Identity pinhole calibration for FRAME_WIDTH x FRAME_HEIGHT frames."""
    path = tmp_path / "camera.txt"
    path.write_text(
        f"Pinhole 50 50 31.5 23.5 0\n"
        f"{FRAME_WIDTH} {FRAME_HEIGHT}\n"
        f"none\n"
        f"{FRAME_WIDTH} {FRAME_HEIGHT}\n"
    )
    return str(path)


@pytest.fixture
def sequence_dir(tmp_path):
    """
    A sequence folder laid out as:

        seq/images/000000.png .. 000002.png   (values 10, 20, 30)
        seq/depth/000000.png .. 000002.png    (values 100, 110, 120)
        seq/times.txt
    """
    seq = tmp_path / "seq"
    write_frames(seq / "images", [10, 20, 30])
    write_frames(seq / "depth", [100, 110, 120])
    (seq / "times.txt").write_text(
        "0 1000.0 2.0\n"
        "1 1000.5 4.0\n"
        "2 1001.0 6.0\n"
    )
    return seq


@pytest.fixture
def sequence_zip(sequence_dir):
    """The sequence_dir images packed as seq/images.zip (times.txt stays alongside)."""
    return zip_directory(sequence_dir / "images", sequence_dir / "images.zip")


@pytest.fixture
def package_loggers():
    """Restore the package loggers' handlers and levels after a test configures them."""
    from ops.logging import PACKAGE_LOGGERS

    loggers = [logging.getLogger(name) for name in PACKAGE_LOGGERS]
    saved = [(logger, logger.handlers[:], logger.level) for logger in loggers]
    yield loggers
    for logger, handlers, level in saved:
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers = handlers
        logger.setLevel(level)
