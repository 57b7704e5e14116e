from __future__ import annotations

import os
import sys
from typing import Iterable, Optional


def _dbg(*parts):
    if os.environ.get("PLAIT_DEBUG"):
        print("[DBG]", *parts, file=sys.stderr)


def include_paths_from_env() -> list[str]:
    """Extra include prefixes from PLAIT_INCLUDE_PATH (os.pathsep separated)."""
    raw = os.environ.get("PLAIT_INCLUDE_PATH", "")
    return [p for p in raw.split(os.pathsep) if p]


class FileLoader:
    """Reads include files from the local filesystem.

    The template engine only needs `exists` and `read`; anything offering
    those two methods can stand in for this class.
    """

    def _resolve(self, path: str) -> str:
        return os.path.expanduser(path)

    def exists(self, path: str) -> bool:
        return os.path.isfile(self._resolve(path))

    def read(self, path: str) -> bytes:
        with open(self._resolve(path), "rb") as f:
            return f.read()


def find_include(filename: str, include_paths: Iterable[str], loader: FileLoader) -> Optional[str]:
    """Returns the first include prefix joined with filename that exists, or None."""
    for prefix in include_paths:
        candidate = os.path.join(prefix, filename) if prefix else filename
        if loader.exists(candidate):
            _dbg(f"include {filename!r}: found {candidate!r}")
            return candidate
        _dbg(f"include {filename!r}: no {candidate!r}")
    return None
