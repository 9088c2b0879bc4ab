import pytest
from pathlib import Path
from PIL import Image

from imnear.metadata.extract import CoordinateDecoder
from imnear.storage.store import MetadataStore

# 45.9645464, -108.276076 (Yellowstone County, MT) as EXIF degrees/minutes/seconds
YELLOWSTONE_DMS = ((45.0, 57.0, 52.36704), "N", (108.0, 16.0, 33.8736), "W")


class FakeDecoder(CoordinateDecoder):
    """Decoder stand-in that records calls instead of reading files."""

    def __init__(self, name="fake", result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = []

    def decode(self, path):
        self.calls.append(Path(path))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_decoder():
    """Returns the FakeDecoder class so tests can build as many as they need."""
    return FakeDecoder


@pytest.fixture
def store(tmp_path):
    """Returns a MetadataStore rooted in a fresh temp directory."""
    return MetadataStore(tmp_path / "cache")


def _write_jpeg(path: Path, gps=None):
    img = Image.new("RGB", (8, 8), "white")
    exif = Image.Exif()
    exif[0x0110] = "TestCam"  # Image Model
    if gps is not None:
        lat, lat_ref, lon, lon_ref = gps
        exif[0x8825] = {1: lat_ref, 2: lat, 3: lon_ref, 4: lon}
    img.save(path, "JPEG", exif=exif)
    return path


@pytest.fixture
def make_jpeg(tmp_path):
    """Factory writing a small JPEG, with GPS tags when gps=(lat, ref, lon, ref) is given."""
    def _make(name="photo.jpg", gps=None):
        return _write_jpeg(tmp_path / name, gps)
    return _make


@pytest.fixture
def yellowstone_gps():
    return YELLOWSTONE_DMS
