import logging
import math
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Tuple, Union

from . import geo
from .exceptions import ExtractionError, InvalidCoordinate, StorageFatal, UserInputError
from .metadata.extract import CoordinateExtractor
from .models import Coordinates, FilterResult, PhotoMetadata
from .storage.store import MetadataStore

PathLike = Union[str, Path]


class SearchOrchestrator:
    """
    Finds candidate files within `radius` meters of `target`.

    Coordinates are looked up in the metadata cache first; on a miss the
    extractor runs and its result (including "no location") is cached.
    """

    def __init__(self,
                 target: Coordinates,
                 radius: float,
                 store: MetadataStore,
                 early_stop_count: int = -1,
                 sort_by_distance: bool = False,
                 verbose: bool = False,
                 extractor: Optional[CoordinateExtractor] = None):
        self.target = geo.validate_coordinates((float(target[0]), float(target[1])))
        if math.isnan(radius) or radius < 0:
            raise UserInputError(f"Radius must be a non-negative number of meters, got {radius}")

        self.radius = radius
        self.store = store
        self.early_stop_count = early_stop_count
        self.sort_by_distance = sort_by_distance
        self.verbose = verbose
        self.extractor = extractor or CoordinateExtractor()

        # Run statistics
        self.processed = 0
        self.skipped = 0
        self.failures: List[Tuple[str, Exception]] = []

    def filter(self, path: PathLike) -> Optional[FilterResult]:
        """
        Returns a FilterResult for a file with known coordinates, None otherwise.
        Storage and extraction errors propagate to the caller.
        """
        key = str(path)
        metadata = self.store.get_metadata(key)

        if metadata is not None:
            logging.debug("Cache hit: %s", key)
        else:
            logging.debug("Cache miss: %s", key)
            coords = self.extractor.extract(Path(path))
            metadata = PhotoMetadata(coordinates=coords)
            self.store.put_metadata(key, metadata)

        if metadata.coordinates is None:
            logging.debug("Skipping %s: no location info", key)
            return None

        dist = geo.distance(self.target, metadata.coordinates)
        return FilterResult(path=Path(path), distance=dist, selected=dist <= self.radius)

    def collect(self, paths: Iterable[PathLike]) -> List[FilterResult]:
        """
        Consumes candidate paths lazily and keeps the selected results.

        A failing file is logged and recorded in self.failures; the batch
        carries on. With early_stop_count >= 0 iteration ends as soon as that
        many results have been selected. Run statistics cover this call only.
        """
        self.processed = 0
        self.skipped = 0
        self.failures = []

        found: List[FilterResult] = []
        if self._early_stop_reached(found):
            return found

        for path in paths:
            self.processed += 1
            try:
                result = self.filter(path)
            except (StorageFatal, ExtractionError, InvalidCoordinate) as e:
                self.skipped += 1
                self.failures.append((str(path), e))
                logging.warning("Skipping %s: %s", path, e)
                continue

            if result is None:
                self.skipped += 1
                continue

            logging.debug("%s\t%s", result.distance, result.path)
            if result.selected:
                found.append(result)
                if self._early_stop_reached(found):
                    logging.debug("Early stop after %d results", len(found))
                    break

        logging.info(
            "Processed %d files: %d selected, %d skipped, %d failed",
            self.processed, len(found), self.skipped, len(self.failures)
        )
        return found

    def present(self, results: List[FilterResult], out: Optional[TextIO] = None) -> List[FilterResult]:
        """
        Writes one selected path per line to `out` (stdout by default).
        Returns the results in the order they were written.
        """
        if out is None:
            out = sys.stdout
        ordered = list(results)
        if self.sort_by_distance:
            ordered.sort(key=lambda r: (r.distance, str(r.path)))

        logging.info("Found %d files near target location", len(ordered))
        for r in ordered:
            if self.verbose:
                logging.info("%.1f m\t%s", r.distance, r.path)
            out.write(f"{r.path}\n")
        out.flush()
        return ordered

    def _early_stop_reached(self, found: List[FilterResult]) -> bool:
        return self.early_stop_count >= 0 and len(found) >= self.early_stop_count
