from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import requests

from .config import DEFAULT_HTTP_TIMEOUT, DEFAULT_STRUCTURE_URL
from .engine.adapter import EngineError

logger = logging.getLogger(__name__)


_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,32}$")


class ParseError(ValueError):
    """Raised when a local structure file cannot be read or is not a supported format."""


@dataclass(frozen=True)
class StructureSource:
    data: Union[str, bytes]
    fmt: str
    label: str

    @property
    def is_binary(self) -> bool:
        return isinstance(self.data, bytes)


# -------------------------
# Remote (by identifier)
# -------------------------

def normalize_identifier(identifier: str) -> str:
    text = (identifier or "").strip()
    if not _IDENTIFIER_PATTERN.match(text):
        raise ValueError(f"Invalid structure identifier: {identifier!r}")
    return text.upper()


def structure_url(identifier: str, base_url: str = DEFAULT_STRUCTURE_URL) -> str:
    return f"{base_url.rstrip('/')}/{normalize_identifier(identifier).lower()}.pdb"


def fetch_remote(
    identifier: str,
    *,
    base_url: str = DEFAULT_STRUCTURE_URL,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> StructureSource:
    """Download a legacy-format structure by identifier. Blocking; run it off the event loop."""
    label = normalize_identifier(identifier)
    url = structure_url(label, base_url)
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise EngineError(f"Could not load structure {label}: network error or unknown identifier") from exc

    logger.debug("fetched %s (%s bytes)", url, len(response.content))
    return StructureSource(data=response.text, fmt="pdb", label=label)


# -------------------------
# Local files
# -------------------------

def detect_format(filename: str) -> Tuple[str, bool]:
    """(format, is_binary) from the file extension."""
    name = filename.lower()
    if name.endswith(".bcif"):
        return "mmcif", True
    if name.endswith(".cif"):
        return "mmcif", False
    return "pdb", False


def source_from_bytes(filename: str, raw: bytes) -> StructureSource:
    fmt, is_binary = detect_format(filename)
    if not raw:
        raise ParseError(f"{filename} is empty.")
    if is_binary:
        return StructureSource(data=bytes(raw), fmt=fmt, label=filename)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"{filename} is not a text PDB or CIF file.") from exc
    return StructureSource(data=text, fmt=fmt, label=filename)


def read_local(path: Union[str, Path]) -> StructureSource:
    p = Path(path)
    try:
        raw = p.read_bytes()
    except OSError as exc:
        raise ParseError(f"Cannot read {p}: {exc}") from exc
    return source_from_bytes(p.name, raw)


__all__ = [
    "ParseError",
    "StructureSource",
    "normalize_identifier",
    "structure_url",
    "fetch_remote",
    "detect_format",
    "source_from_bytes",
    "read_local",
]
