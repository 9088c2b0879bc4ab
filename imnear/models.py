from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

# (latitude, longitude) in decimal degrees
Coordinates = Tuple[float, float]


def coordinates_from_json(value: Any) -> Optional[Coordinates]:
    """
    Accepts a JSON [lat, lon] pair (or None) and returns a float tuple.
    Raises ValueError for anything else.
    """
    if value is None:
        return None
    if (isinstance(value, (list, tuple)) and len(value) == 2
            and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)):
        return float(value[0]), float(value[1])
    raise ValueError(f"not a coordinate pair: {value!r}")


@dataclass
class PhotoMetadata:
    """
    Cached extraction result for one file.
    coordinates=None is a valid outcome: the file carries no location.
    """
    coordinates: Optional[Coordinates] = None

    def to_document(self) -> dict:
        coords = list(self.coordinates) if self.coordinates is not None else None
        return {"coordinates": coords}

    @classmethod
    def from_document(cls, doc: Any) -> "PhotoMetadata":
        """
        Reads either {"coordinates": [lat, lon] | null} or a bare [lat, lon].
        """
        if isinstance(doc, dict):
            if "coordinates" not in doc:
                raise ValueError("document has no 'coordinates' field")
            return cls(coordinates_from_json(doc["coordinates"]))
        return cls(coordinates_from_json(doc))


@dataclass
class FilterResult:
    """
    Outcome of checking one candidate against the target location.
    """
    path: Path
    distance: float         # meters
    selected: bool
