import json
import logging
import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import exifread

from .. import config
from ..exceptions import ExtractionError
from ..geo import validate_coordinates
from ..models import Coordinates

# e.g. 45 deg 57' 52.37" N
_DMS_RE = re.compile(
    r"""^\s*(?P<deg>\d+(?:\.\d+)?)\s*deg
        \s*(?P<min>\d+(?:\.\d+)?)'
        \s*(?P<sec>\d+(?:\.\d+)?)"
        \s*(?P<ref>[NSEW])?\s*$""",
    re.VERBOSE,
)

_AXIS_REFS = {
    'lat': {'N': 1.0, 'S': -1.0},
    'lon': {'E': 1.0, 'W': -1.0},
}


def dms_to_decimal(degrees: float, minutes: float, seconds: float) -> float:
    return degrees + minutes / 60.0 + seconds / 3600.0


class CoordinateDecoder(ABC):
    """
    Reads GPS coordinates from a single file.

    decode() returns None when the file is readable but has no location,
    and raises ExtractionError when the file cannot be decoded at all.
    """
    name = "decoder"

    @abstractmethod
    def decode(self, path: Path) -> Optional[Coordinates]:
        ...


class ExifReadDecoder(CoordinateDecoder):
    """
    In-process EXIF reader built on 'exifread'.

    Only a 'W' longitude reference flips the sign. A 'S' latitude reference
    is ignored unless config.HONOR_LATITUDE_REF is set, so southern
    hemisphere photos decode with a positive latitude by default.
    """
    name = "exifread"

    def __init__(self, honor_latitude_ref: Optional[bool] = None):
        if honor_latitude_ref is None:
            honor_latitude_ref = config.HONOR_LATITUDE_REF
        self.honor_latitude_ref = honor_latitude_ref

    def decode(self, path: Path) -> Optional[Coordinates]:
        try:
            with path.open('rb') as f:
                # details=False skips MakerNotes and thumbnails
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            raise ExtractionError(f"ExifRead failed for {path}: {e}") from e

        if not tags:
            raise ExtractionError(f"No EXIF container found in {path}")

        names = config.GPS_TAGS
        if names['lat'] not in tags or names['lon'] not in tags:
            logging.debug("No GPS tags in %s", path)
            return None

        lat = self._tag_to_degrees(tags[names['lat']], path)
        lon = self._tag_to_degrees(tags[names['lon']], path)

        lon_ref = self._ref(tags, names['lon_ref'])
        if lon_ref == 'W':
            lon = -lon

        lat_ref = self._ref(tags, names['lat_ref'])
        if self.honor_latitude_ref and lat_ref == 'S':
            lat = -lat

        return lat, lon

    def _tag_to_degrees(self, tag, path: Path) -> float:
        values = getattr(tag, 'values', None)
        if not values or len(values) != 3:
            raise ExtractionError(f"Malformed GPS value in {path}: {tag}")

        parts = []
        for ratio in values:
            num = getattr(ratio, 'num', ratio)
            den = getattr(ratio, 'den', 1)
            if not den:
                raise ExtractionError(f"Zero denominator in GPS value in {path}: {tag}")
            parts.append(float(num) / float(den))
        return dms_to_decimal(*parts)

    def _ref(self, tags, name: str) -> Optional[str]:
        if name not in tags:
            return None
        return str(tags[name]).strip().upper()[:1] or None


class ExifToolDecoder(CoordinateDecoder):
    """
    Wraps the 'exiftool' command line utility.
    Must be installed and on the system PATH.
    """
    name = "exiftool"

    def __init__(self, command: Optional[Sequence[str]] = None, timeout: Optional[float] = None):
        self.command = list(command or config.EXIFTOOL_CMD)
        self.timeout = config.EXIFTOOL_TIMEOUT_SEC if timeout is None else timeout

    def decode(self, path: Path) -> Optional[Coordinates]:
        tags = self._run(path)
        return parse_exiftool_tags(tags, path)

    def _run(self, path: Path) -> Dict[str, Any]:
        cmd = self.command + [str(path)]
        try:
            out = subprocess.check_output(
                cmd, stderr=subprocess.DEVNULL, text=True, timeout=self.timeout
            )
        except FileNotFoundError as e:
            raise ExtractionError(f"{self.command[0]} not found on PATH") from e
        except subprocess.TimeoutExpired as e:
            raise ExtractionError(f"{self.command[0]} timed out after {self.timeout}s on {path}") from e
        except subprocess.CalledProcessError as e:
            raise ExtractionError(f"{self.command[0]} failed on {path} (exit {e.returncode})") from e

        try:
            data_list = json.loads(out)
        except ValueError as e:
            raise ExtractionError(f"Unparsable {self.command[0]} output for {path}: {e}") from e

        if not isinstance(data_list, list) or not data_list or not isinstance(data_list[0], dict):
            raise ExtractionError(f"Unexpected {self.command[0]} output for {path}")
        return data_list[0]


def parse_exiftool_tags(tags: Dict[str, Any], path: Path) -> Optional[Coordinates]:
    """
    Reads GPSLatitude/GPSLongitude from one exiftool JSON record.

    Falls back to the composite GPSPosition / QuickTime GPSCoordinates
    fields ("<lat>, <lon>[, <alt>]") used by some video containers.
    """
    lat_val = tags.get("GPSLatitude")
    lon_val = tags.get("GPSLongitude")

    if lat_val is None:
        combined = tags.get("GPSPosition") or tags.get("GPSCoordinates")
        if not combined:
            logging.debug("No GPS fields in exiftool output for %s", path)
            return None
        parts = [p.strip() for p in str(combined).split(",")]
        if len(parts) < 2:
            raise ExtractionError(f"Unparsable GPS position for {path}: {combined!r}")
        lat_val, lon_val = parts[0], parts[1]

    if lon_val is None:
        raise ExtractionError(f"Found latitude but no longitude for {path}")

    lat = parse_degrees(lat_val, tags.get("GPSLatitudeRef"), 'lat', path)
    lon = parse_degrees(lon_val, tags.get("GPSLongitudeRef"), 'lon', path)
    return lat, lon


def parse_degrees(value: Any, ref_field: Any, axis: str, path: Path) -> float:
    """
    Parses 'D deg M' S" R' (or a plain number) into signed decimal degrees.
    The hemisphere comes from the string itself, else from the Ref field
    ('North', 'S', ...).
    """
    refs = _AXIS_REFS[axis]

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        magnitude, ref = abs(float(value)), None
        if value < 0:
            ref = 'S' if axis == 'lat' else 'W'
    else:
        m = _DMS_RE.match(str(value))
        if not m:
            raise ExtractionError(f"Unparsable GPS {axis} for {path}: {value!r}")
        magnitude = dms_to_decimal(float(m.group('deg')), float(m.group('min')), float(m.group('sec')))
        ref = m.group('ref')

    if ref is None and ref_field:
        ref = str(ref_field).strip().upper()[:1]

    if ref is None:
        return magnitude
    if ref not in refs:
        raise ExtractionError(f"Bad {axis} hemisphere {ref!r} for {path}")
    return refs[ref] * magnitude


class CoordinateExtractor:
    """
    Picks a decoding strategy by media type.

    Strategies:
      - Images: exifread (fast, Python-native) -> falls back to exiftool
        when the EXIF container itself can't be read.
      - Video: exiftool only.
      - Anything else: no coordinates.
    """

    def __init__(self,
                 primary: Optional[CoordinateDecoder] = None,
                 secondary: Optional[CoordinateDecoder] = None):
        self.primary = primary or ExifReadDecoder()
        self.secondary = secondary or ExifToolDecoder()
        self._strategies = {
            'image': self._extract_image,
            'video': self._extract_video,
        }

    @staticmethod
    def media_type(path: Path) -> Optional[str]:
        return config.EXT_TO_TYPE.get(Path(path).suffix.lower())

    def extract(self, path: Path) -> Optional[Coordinates]:
        path = Path(path)
        strategy = self._strategies.get(self.media_type(path))
        if strategy is None:
            logging.debug("Unsupported file type, no coordinates: %s", path)
            return None

        coords = strategy(path)
        if coords is not None:
            validate_coordinates(coords)
        return coords

    def _extract_image(self, path: Path) -> Optional[Coordinates]:
        try:
            return self.primary.decode(path)
        except ExtractionError as e:
            logging.debug("%s; trying %s", e, self.secondary.name)
        return self.secondary.decode(path)

    def _extract_video(self, path: Path) -> Optional[Coordinates]:
        return self.secondary.decode(path)
