import os
import logging
from pathlib import Path
from typing import Iterator, Optional, Set, TextIO

from .. import config


class MediaScanner:
    def __init__(self, extensions: Optional[Set[str]] = None):
        exts = extensions if extensions is not None else config.EXT_TO_TYPE.keys()
        self.extensions = {e.lower() for e in exts}

    def scan(self, root: Path, skip_dirs: Optional[Set[Path]] = None) -> Iterator[Path]:
        """
        Generator that yields every supported media file under root,
        matching extensions case-insensitively.
        """
        for path in self._iter_files(Path(root), skip_dirs or set()):
            if path.suffix.lower() in self.extensions:
                yield path

    def _iter_files(self, root: Path, skip_dirs: Set[Path]) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()
            if skip_dirs and any(sd == current or sd in current.parents for sd in skip_dirs):
                continue

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except (OSError, PermissionError):
                logging.warning(f"Permission denied: {current}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    files.append(Path(e.path))

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f


def iter_path_lines(stream: TextIO) -> Iterator[str]:
    """Yields one candidate path per non-blank line, e.g. from a pipe."""
    for line in stream:
        line = line.rstrip("\r\n")
        if line.strip():
            yield line
