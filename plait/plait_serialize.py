from __future__ import annotations

import json
import os
import tomllib
from typing import Any, Optional

import yaml


class DecodeError(ValueError):
    """Raised when a document cannot be decoded in the requested format."""


# --------------------------
# Helpers
# --------------------------

_EXTENSIONS = {
    '.json': 'json',
    '.yaml': 'yaml',
    '.yml': 'yaml',
    '.toml': 'toml',
}


def _norm_text(data: bytes | bytearray | str, *, encoding: Optional[str] = None) -> str:
    if isinstance(data, (bytes, bytearray)):
        enc = encoding or 'utf-8'
        try:
            return bytes(data).decode(enc)
        except UnicodeDecodeError as e:
            raise DecodeError(f"not valid {enc} text: {e}") from e
    if isinstance(data, str):
        return data
    return str(data)


def detect_format(path: Optional[str] = None, data_hint: Optional[str] = None) -> Optional[str]:
    """
    Returns a canonical format name among: 'json', 'yaml', 'toml'.
    Uses the file extension first; falls back to simple data sniffing if provided.
    """
    if path:
        ext = os.path.splitext(str(path))[1].lower()
        if ext in _EXTENSIONS:
            return _EXTENSIONS[ext]

    # Heuristics based on data
    if data_hint is not None:
        s = data_hint.lstrip()
        if s.startswith('{') or s.startswith('['):
            return 'json'
        # YAML is a superset of JSON, and the natural fallback for plain documents
        return 'yaml'
    return None


# --------------------------
# Public API
# --------------------------

def deserialize(data: bytes | bytearray | str,
                *,
                path: Optional[str] = None,
                fmt: Optional[str] = None,
                encoding: Optional[str] = None) -> Any:
    """
    Convert a serialized document (bytes/string) into plain data: dicts, lists and scalars.
    Supported fmt: 'json', 'yaml', 'toml'.
    If fmt is None, uses the extension of path, then sniffing.
    """
    text = _norm_text(data, encoding=encoding)
    f = (fmt or detect_format(path, text))
    if f == 'json':
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeError(f"invalid JSON: {e}") from e
    if f == 'yaml':
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DecodeError(f"invalid YAML: {e}") from e
    if f == 'toml':
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise DecodeError(f"invalid TOML: {e}") from e
    raise DecodeError(f"Unsupported format: {f!r}")


def serialize(value: Any,
              *,
              fmt: str,
              pretty: bool = True) -> str:
    """
    Convert a plain value into a textual representation.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    if f == 'json':
        return json.dumps(value, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(value, sort_keys=False, allow_unicode=True)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "DecodeError",
    "deserialize",
    "serialize",
    "detect_format",
]
