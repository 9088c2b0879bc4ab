"""
Address -> coordinates lookup against the Nominatim search API.

Results are cached as bare [lat, lon] documents so an address is only
sent to the service once.
"""
import logging
from typing import Any, Optional

import requests

from . import config
from .exceptions import GeocodingError, StorageFatal
from .models import Coordinates, coordinates_from_json
from .storage.store import MetadataStore


def json_to_coords(response: Any) -> Optional[Coordinates]:
    """
    Reads the first feature of a GeoJSON FeatureCollection.
    GeoJSON orders positions [lon, lat]; we return (lat, lon).
    """
    try:
        features = response.get("features") or []
        if not features:
            return None
        position = features[0]["geometry"]["coordinates"]
        return float(position[1]), float(position[0])
    except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
        raise GeocodingError(f"Malformed geocoding response: {e}") from e


class Geocoder:
    def __init__(self,
                 cache: Optional[MetadataStore] = None,
                 user_agent: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 url: str = config.NOMINATIM_URL,
                 timeout: float = config.HTTP_TIMEOUT_SEC):
        self.cache = cache
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        # Nominatim's usage policy requires an identifying User-Agent
        self.session.headers["User-Agent"] = user_agent or config.DEFAULT_USER_AGENT

    def locate(self, address: str) -> Coordinates:
        """
        Resolves an address, raising GeocodingError when nothing matches
        or the service can't be reached.
        """
        cached = self._from_cache(address)
        if cached is not None:
            logging.debug("Geocode cache hit: %s", address)
            return cached

        params = {"q": address, "format": "geojson"}
        try:
            r = self.session.get(self.url, params=params, timeout=self.timeout)
            r.raise_for_status()
            payload = r.json()
        except requests.RequestException as e:
            raise GeocodingError(f"Geocoding request for {address!r} failed: {e}") from e
        except ValueError as e:
            raise GeocodingError(f"Geocoding response for {address!r} is not JSON: {e}") from e

        coords = json_to_coords(payload)
        if coords is None:
            raise GeocodingError(f"No location found for address {address!r}")

        logging.debug("Resolved %r to %s, %s", address, coords[0], coords[1])
        self._to_cache(address, coords)
        return coords

    def _from_cache(self, address: str) -> Optional[Coordinates]:
        if self.cache is None:
            return None
        doc = self.cache.get(address)
        if doc is None:
            return None
        try:
            return coordinates_from_json(doc)
        except ValueError as e:
            raise StorageFatal(f"Malformed geocode cache entry for {address!r}: {e}") from e

    def _to_cache(self, address: str, coords: Coordinates):
        if self.cache is None:
            return
        try:
            self.cache.put(address, list(coords))
        except StorageFatal as e:
            logging.warning("Could not cache geocode result: %s", e)
