"""
End-to-end tests for FolderReader over directories and archives.
"""

import zipfile

import numpy as np
import pytest

from conftest import FRAME_HEIGHT, FRAME_WIDTH, write_frames, zip_directory
from calibration.base import CalibrationError, GeometricCorrector
from ingestion.errors import DecodeError, DecodeErrorKind, SourceError, SourceErrorKind
from ingestion.reader import FolderReader
from models.config import Config, ReaderConfig
from models.frame import AssembledFrame
from models.metadata import MetadataStatus


class RecordingCorrector(GeometricCorrector):
    """Identity corrector that records what it was called with."""

    def __init__(self, width=FRAME_WIDTH, height=FRAME_HEIGHT):
        self._size = (width, height)
        self.calls = []

    @property
    def original_size(self):
        return self._size

    @property
    def size(self):
        return self._size

    @property
    def original_parameters(self):
        return np.array([1.0, 2.0, 3.0, 4.0])

    @property
    def K(self):
        return np.eye(3)

    def undistort(self, raster, exposure, timestamp):
        self.calls.append((raster.name, exposure, timestamp))
        return AssembledFrame.from_numpy(
            raster.pixels.astype(np.float32), exposure=exposure, timestamp=timestamp, source=raster.name
        )


@pytest.fixture
def recorder():
    return RecordingCorrector()


@pytest.fixture
def factory(recorder):
    def _factory(calibration_file, gamma_file, vignette_file):
        recorder.inputs = (calibration_file, gamma_file, vignette_file)
        return recorder
    return _factory


class TestConstruction:
    def test_directory_reader(self, sequence_dir, camera_file):
        with FolderReader(str(sequence_dir / "images"), "", camera_file) as reader:
            assert reader.count() == 3
            assert len(reader) == 3
            assert reader.is_zipped is False
            assert reader.has_depth is False
            assert reader.metadata.status == MetadataStatus.FULL

    def test_archive_reader(self, sequence_zip, camera_file):
        with FolderReader(sequence_zip, "", camera_file) as reader:
            assert reader.count() == 3
            assert reader.is_zipped is True

    def test_passes_calibration_inputs(self, sequence_dir, factory, recorder):
        FolderReader(
            str(sequence_dir / "images"),
            calibration_file="cam.txt",
            gamma_file="pcalib.txt",
            vignette_file="vignette.png",
            corrector_factory=factory,
        )
        assert recorder.inputs == ("cam.txt", "pcalib.txt", "vignette.png")

    def test_depth_count_mismatch(self, sequence_dir, tmp_path, factory):
        write_frames(tmp_path / "short_depth", [1, 2])
        with pytest.raises(SourceError) as exc_info:
            FolderReader(str(sequence_dir / "images"), str(tmp_path / "short_depth"), corrector_factory=factory)
        assert exc_info.value.kind == SourceErrorKind.COUNT_MISMATCH
        assert exc_info.value.role == "depth"
        assert "short_depth" in str(exc_info.value)

    def test_missing_main_source(self, tmp_path, factory):
        with pytest.raises(SourceError) as exc_info:
            FolderReader(str(tmp_path / "nothing.zip"), corrector_factory=factory)
        assert exc_info.value.kind == SourceErrorKind.OPEN_FAILED
        assert exc_info.value.role == "main"

    def test_missing_depth_directory(self, sequence_dir, tmp_path, factory):
        with pytest.raises(SourceError) as exc_info:
            FolderReader(str(sequence_dir / "images"), str(tmp_path / "no_depth"), corrector_factory=factory)
        assert exc_info.value.kind == SourceErrorKind.EMPTY_DIRECTORY
        assert exc_info.value.role == "depth"

    def test_empty_depth_directory_means_no_depth(self, sequence_dir, tmp_path, factory):
        (tmp_path / "empty_depth").mkdir()
        reader = FolderReader(str(sequence_dir / "images"), str(tmp_path / "empty_depth"), corrector_factory=factory)
        assert reader.has_depth is False

    def test_corrector_failure_propagates(self, sequence_zip, tmp_path):
        with pytest.raises(CalibrationError):
            FolderReader(sequence_zip, "", str(tmp_path / "no_camera.txt"))

    def test_from_config(self, sequence_dir, camera_file):
        config = ReaderConfig(
            image_path=str(sequence_dir / "images"),
            depth_path=str(sequence_dir / "depth"),
            calibration_file=camera_file,
        )
        with FolderReader.from_config(config) as reader:
            assert reader.count() == 3
            assert reader.has_depth is True

    def test_from_full_config_routes_logs(self, sequence_dir, camera_file, tmp_path, package_loggers):
        log_path = tmp_path / "logs" / "reader.log"
        config = Config(
            reader=ReaderConfig(image_path=str(sequence_dir / "images"), calibration_file=camera_file),
            log_path=str(log_path),
            log_level="INFO",
        )
        with FolderReader.from_config(config) as reader:
            assert reader.count() == 3
        for handler in package_loggers[0].handlers:
            handler.flush()

        text = log_path.read_text()
        assert "ingestion.reader - INFO - FolderReader: got 3 images" in text
        assert "got 3 images and 3 timestamps and 3 exposures (full)" in text

    def test_explicit_times_file(self, sequence_dir, tmp_path, factory):
        times = tmp_path / "other_times.txt"
        times.write_text("0 5.0\n1 6.0\n2 7.0\n")
        reader = FolderReader(str(sequence_dir / "images"), times_file=str(times), corrector_factory=factory)
        assert reader.timestamp(2) == 7.0
        assert reader.metadata.status == MetadataStatus.NO_EXPOSURES


class TestTimestamps:
    def test_loaded_timestamps(self, sequence_dir, factory):
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        assert reader.timestamp(0) == 1000.0
        assert reader.timestamp(2) == 1001.0

    def test_out_of_range(self, sequence_dir, factory):
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        assert reader.timestamp(-1) == 0.0
        assert reader.timestamp(reader.count()) == 0.0

    def test_partial_times_fall_back_to_synthetic(self, sequence_dir, factory):
        (sequence_dir / "times.txt").write_text("0 1000.0 2.0\n1 1000.5 4.0\n")
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        assert reader.metadata.status == MetadataStatus.SYNTHETIC
        assert reader.timestamp(0) == 0.0
        assert reader.timestamp(1) == pytest.approx(0.1)
        assert reader.timestamp(-1) == 0.0
        assert reader.timestamp(3) == 0.0

    def test_archive_uses_sidecar_next_to_zip(self, sequence_zip, factory):
        reader = FolderReader(sequence_zip, corrector_factory=factory)
        assert reader.timestamp(1) == 1000.5


class TestImages:
    def test_raw_image(self, sequence_dir, factory):
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        raster = reader.raw_image(1)
        assert raster.pixels.dtype == np.uint8
        assert np.all(raster.pixels == 20)

    def test_image_uses_metadata(self, sequence_dir, factory, recorder):
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        frame = reader.image(2)
        assert frame.frame_index == 2
        assert frame.exposure == 6.0
        assert frame.timestamp == 1001.0
        assert np.all(frame.image == 30.0)
        assert recorder.calls[-1][1:] == (6.0, 1001.0)

    def test_image_defaults_without_metadata(self, sequence_dir, factory):
        (sequence_dir / "times.txt").unlink()
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        frame = reader.image(1)
        assert frame.exposure == 1.0
        assert frame.timestamp == 0.0

    def test_image_without_depth(self, sequence_dir, factory):
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        frame = reader.image(0)
        assert frame.has_depth is False
        assert frame.depth is None

    def test_image_with_depth(self, sequence_dir, factory, recorder):
        reader = FolderReader(
            str(sequence_dir / "images"), str(sequence_dir / "depth"), corrector_factory=factory
        )
        frame = reader.image(1)
        assert frame.has_depth is True
        assert frame.depth.size == frame.width * frame.height
        assert np.all(frame.depth == 110.0)
        assert np.all(frame.image == 20.0)
        # main and depth are corrected with the same exposure / timestamp
        assert recorder.calls[-2][1:] == recorder.calls[-1][1:]

    def test_zipped_depth(self, sequence_dir, sequence_zip, factory):
        depth_zip = zip_directory(sequence_dir / "depth", sequence_dir / "depth.zip")
        with FolderReader(sequence_zip, depth_zip, corrector_factory=factory) as reader:
            frame = reader.image(2)
        assert frame.has_depth is True
        assert np.all(frame.image == 30.0)
        assert np.all(frame.depth == 120.0)

    def test_directory_and_archive_agree(self, sequence_dir, sequence_zip, camera_file):
        with FolderReader(str(sequence_dir / "images"), "", camera_file) as plain, \
                FolderReader(sequence_zip, "", camera_file) as zipped:
            for i in range(plain.count()):
                assert np.array_equal(plain.image(i).image, zipped.image(i).image)
                assert plain.timestamp(i) == zipped.timestamp(i)

    def test_out_of_range_image(self, sequence_dir, factory):
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        with pytest.raises(IndexError):
            reader.image(3)

    def test_iteration(self, sequence_dir, factory):
        reader = FolderReader(str(sequence_dir / "images"), corrector_factory=factory)
        values = [float(frame.image[0, 0]) for frame in reader]
        assert values == [10.0, 20.0, 30.0]

    def test_bad_frame_does_not_tear_down_reader(self, tmp_path, factory):
        frames = tmp_path / "seq" / "frames"
        write_frames(frames, [10, 20])
        zip_path = tmp_path / "seq" / "frames.zip"
        zip_directory(frames, zip_path)
        with zipfile.ZipFile(zip_path, "a") as zf:
            zf.writestr("000002.png", b"corrupt")

        with FolderReader(str(zip_path), corrector_factory=factory) as reader:
            assert reader.count() == 3
            with pytest.raises(DecodeError) as exc_info:
                reader.image(2)
            assert exc_info.value.kind == DecodeErrorKind.DECODE_FAILED
            assert np.all(reader.image(1).image == 20.0)

    def test_oversized_entry_is_per_frame_error(self, tmp_path):
        frames = tmp_path / "seq" / "frames"
        write_frames(frames, [10])
        zip_path = tmp_path / "seq" / "frames.zip"
        zip_directory(frames, zip_path)
        small = RecordingCorrector(width=4, height=4)   # escalated capacity 10096 bytes
        with zipfile.ZipFile(zip_path, "a") as zf:
            zf.writestr("000001.png", b"\0" * 20000)

        with FolderReader(str(zip_path), corrector_factory=lambda *args: small) as reader:
            with pytest.raises(DecodeError) as exc_info:
                reader.raw_image(1)
            assert exc_info.value.kind == DecodeErrorKind.BUFFER_EXHAUSTED
            assert reader.raw_image(0).pixels.shape == (FRAME_HEIGHT, FRAME_WIDTH)


class TestCalibrationPassthrough:
    def test_original_calibration(self, sequence_dir, camera_file):
        with FolderReader(str(sequence_dir / "images"), "", camera_file) as reader:
            params = reader.original_calibration()
            assert params.dtype == np.float32
            np.testing.assert_allclose(params, [50, 50, 31.5, 23.5])
            assert reader.original_dimensions() == (FRAME_WIDTH, FRAME_HEIGHT)

    def test_mono_calibration(self, sequence_dir, camera_file):
        with FolderReader(str(sequence_dir / "images"), "", camera_file) as reader:
            K, w, h = reader.mono_calibration()
        assert K.dtype == np.float32
        assert K.shape == (3, 3)
        assert (w, h) == (FRAME_WIDTH, FRAME_HEIGHT)

    def test_photometric_gamma_absent(self, sequence_dir, camera_file):
        with FolderReader(str(sequence_dir / "images"), "", camera_file) as reader:
            assert reader.photometric_gamma() is None
