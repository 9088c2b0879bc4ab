"""
Flat-file metadata cache.

One JSON file per key inside a cache directory. Keys are arbitrary strings
(usually file paths) that are sanitized into flat filenames.
"""
import hashlib
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

from .. import config
from ..exceptions import StorageFatal
from ..models import PhotoMetadata

_SEPARATORS = re.compile(r"[/\\]")
_UNSAFE_CHARS = re.compile(r'[<>:"|?*\x00-\x1f\x7f]')


def cache_key(raw_key: str) -> str:
    """
    Maps an arbitrary string to a safe flat filename.

    Path separators become '__', other characters that are illegal in
    filenames become '_'. Names longer than config.MAX_KEY_BYTES in UTF-8
    are cut and suffixed with a digest of the raw key so they stay unique.
    """
    key = _SEPARATORS.sub("__", raw_key)
    key = _UNSAFE_CHARS.sub("_", key)
    if key in ("", ".", ".."):
        key = "_" + key

    # Filesystems cap names in bytes, not characters
    encoded = key.encode("utf-8", "surrogateescape")
    if len(encoded) > config.MAX_KEY_BYTES:
        digest = hashlib.sha256(raw_key.encode("utf-8", "surrogateescape")).hexdigest()[:16]
        head = encoded[:config.MAX_KEY_BYTES - 17].decode("utf-8", "ignore")
        key = f"{head}-{digest}"
    return key


class MetadataStore:
    """
    Write-once key/value store. Writing an existing key is an error.

    Entries never expire and the directory is never pruned.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        # filename -> raw key that claimed it during this process
        self._claimed: Dict[str, str] = {}

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFatal(f"Cannot create cache directory {self.directory}: {e}") from e

        if not os.access(self.directory, os.W_OK | os.X_OK):
            raise StorageFatal(f"Cache directory is not writable: {self.directory}")

    def path_for(self, key: str) -> Path:
        return self.directory / cache_key(key)

    def contains(self, key: str) -> bool:
        return self._exists(self.path_for(key))

    def get(self, key: str) -> Optional[Any]:
        """
        Returns the decoded document, or None when nothing is cached for key.
        """
        name = cache_key(key)
        self._check_collision(name, key, fatal=False)
        path = self.directory / name
        if not self._exists(path):
            return None

        try:
            contents = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageFatal(f"Cannot read cache file {path}: {e}") from e

        try:
            return json.loads(contents)
        except ValueError as e:
            raise StorageFatal(f"Cannot decode cache file {path}: {e}") from e

    def put(self, key: str, document: Any) -> None:
        name = cache_key(key)
        self._check_collision(name, key, fatal=True)
        path = self.directory / name

        try:
            payload = json.dumps(document, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise StorageFatal(f"Cannot encode cache entry for {key}: {e}") from e

        try:
            # 'x' mode refuses to touch an existing entry
            f = path.open("x", encoding="utf-8")
        except FileExistsError as e:
            raise StorageFatal(f"Cache file exists: {path}") from e
        except OSError as e:
            raise StorageFatal(f"Cannot write cache file {path}: {e}") from e

        # Never leave a partial entry behind
        try:
            with f:
                f.write(payload)
        except OSError as e:
            self._discard(path)
            raise StorageFatal(f"Cannot write cache file {path}: {e}") from e
        except BaseException:
            self._discard(path)
            raise

        self._claimed[name] = key
        logging.debug("Cached %s -> %s", key, path)

    # --- Typed Helpers ---

    def get_metadata(self, key: str) -> Optional[PhotoMetadata]:
        doc = self.get(key)
        if doc is None:
            return None
        try:
            return PhotoMetadata.from_document(doc)
        except ValueError as e:
            raise StorageFatal(f"Malformed cache entry for {key}: {e}") from e

    def put_metadata(self, key: str, metadata: PhotoMetadata) -> None:
        self.put(key, metadata.to_document())

    @staticmethod
    def _exists(path: Path) -> bool:
        try:
            return path.exists()
        except OSError as e:
            raise StorageFatal(f"Cannot stat cache file {path}: {e}") from e

    @staticmethod
    def _discard(path: Path):
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logging.error("Cannot remove partial cache file %s: %s", path, e)

    def _check_collision(self, name: str, key: str, fatal: bool):
        """
        Claims are recorded by put only, so lookups never grow the table.
        """
        owner = self._claimed.get(name)
        if owner is None or owner == key:
            return
        msg = f"Cache key collision: {key!r} and {owner!r} both map to {name}"
        if fatal:
            raise StorageFatal(msg)
        logging.warning(msg)
