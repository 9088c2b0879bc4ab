import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .core import SearchOrchestrator
from .exceptions import ImNearError, InvalidCoordinate, StorageFatal, UserInputError
from .geocoding import Geocoder
from .scanning.filesystem import MediaScanner, iter_path_lines
from .storage.store import MetadataStore


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """
    Diagnostics go to stderr (and optionally a file); stdout is reserved
    for the list of matching paths.
    """
    log_level = logging.DEBUG if verbose else logging.WARNING

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def default_cache_root() -> Path:
    env = os.environ.get(config.CACHE_DIR_ENV)
    if env:
        return Path(env)
    return Path.home() / ".cache" / "imnear"


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="Search photos near a geographic location")

    p.add_argument("radius", type=float, help="Max distance from the target location (meters)")

    p.add_argument("--lat", type=float, default=None, help="Latitude of the target location")
    p.add_argument("--lon", type=float, default=None, help="Longitude of the target location")
    p.add_argument("--address", type=str, default=None, help="Address or search words")

    p.add_argument("-d", "--dir", type=Path, default=Path("."), help="Directory/folder to search from")
    p.add_argument("-e", "--early-stop-count", type=int, default=-1,
                   help="Stop after this many matches (-1 = no limit)")
    p.add_argument("-s", "--sort-by-distance", action="store_true", help="Sort results by distance")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")

    p.add_argument("--cache-dir", type=Path, default=None,
                   help=f"Cache root (default: ${config.CACHE_DIR_ENV} or ~/.cache/imnear)")
    p.add_argument("--user-agent", type=str, default=None, help="User-Agent sent to the geocoding service")
    p.add_argument("--log-file", type=Path, default=None, help="Also write diagnostics to this file")

    return p.parse_args(argv)


def resolve_target(args, cache_root: Path):
    """Uses the address if given, otherwise --lat/--lon."""
    if args.address:
        geocoder = Geocoder(
            cache=MetadataStore(cache_root / config.GEOCODE_CACHE_SUBDIR),
            user_agent=args.user_agent,
        )
        lat, lon = geocoder.locate(args.address)
        logging.info(f"Found coordinates: {lat}, {lon}")
        return lat, lon

    if args.lat is None or args.lon is None:
        raise UserInputError("Provide either --address or both --lat and --lon")
    return args.lat, args.lon


def is_stdin_piped() -> bool:
    return not sys.stdin.isatty()


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    cache_root = args.cache_dir if args.cache_dir else default_cache_root()

    try:
        target = resolve_target(args, cache_root)
        store = MetadataStore(cache_root / config.METADATA_CACHE_SUBDIR)

        searcher = SearchOrchestrator(
            target=target,
            radius=args.radius,
            store=store,
            early_stop_count=args.early_stop_count,
            sort_by_distance=args.sort_by_distance,
            verbose=args.verbose,
        )

        if is_stdin_piped():
            paths = iter_path_lines(sys.stdin)
        else:
            paths = MediaScanner().scan(args.dir)

        found = searcher.collect(paths)
        searcher.present(found, sys.stdout)

    except (UserInputError, InvalidCoordinate) as e:
        logging.error(str(e))
        sys.exit(1)
    except StorageFatal as e:
        logging.error(f"Cache unavailable: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Search cancelled by user.")
        sys.exit(130)
    except ImNearError:
        logging.exception("Fatal error during search.")
        sys.exit(1)


if __name__ == "__main__":
    main()
