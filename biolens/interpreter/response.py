"""
Parsing of untrusted interpreter replies.

raw text -> PlainText | Candidate -> Interpretation

Only Candidate replies can carry updates, and only fields that pass
coerce_field survive. Nothing here talks to the network.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from ..schemas import Interpretation
from ..state import WIRE_FIELDS, coerce_field
from .adapter import strip_code_fence

logger = logging.getLogger(__name__)


DEFAULT_MESSAGE = "Visual parameters updated."


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class Candidate:
    payload: Dict[str, Any]


ParsedReply = Union[PlainText, Candidate]


def parse_reply(raw: str) -> ParsedReply:
    text = raw.strip()
    try:
        payload = json.loads(strip_code_fence(text))
    except json.JSONDecodeError:
        return PlainText(text)
    if not isinstance(payload, dict):
        return PlainText(text)
    return Candidate(payload)


def validate_updates(updates: Any) -> Dict[str, Any]:
    """Keep recognized keys whose values are legal; drop everything else."""
    if not isinstance(updates, dict):
        if updates is not None:
            logger.debug("dropping non-object updates: %r", updates)
        return {}

    accepted: Dict[str, Any] = {}
    for key, value in updates.items():
        if key not in WIRE_FIELDS:
            logger.debug("dropping unknown field %r", key)
            continue
        try:
            _, typed = coerce_field(key, value)
        except ValueError:
            logger.debug("dropping invalid value for %s: %r", key, value)
            continue
        accepted[key] = typed.value if isinstance(typed, Enum) else typed
    return accepted


def validate_reply(parsed: ParsedReply, fallback: str = DEFAULT_MESSAGE) -> Interpretation:
    if isinstance(parsed, PlainText):
        return Interpretation(updates={}, message=parsed.text or fallback)

    message = parsed.payload.get("message")
    if not isinstance(message, str) or not message.strip():
        message = fallback
    return Interpretation(
        updates=validate_updates(parsed.payload.get("updates")),
        message=message.strip(),
    )


def interpret_reply(raw: str, fallback: str = DEFAULT_MESSAGE) -> Interpretation:
    return validate_reply(parse_reply(raw), fallback)


__all__ = [
    "DEFAULT_MESSAGE",
    "PlainText",
    "Candidate",
    "ParsedReply",
    "parse_reply",
    "validate_updates",
    "validate_reply",
    "interpret_reply",
]
