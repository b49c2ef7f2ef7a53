from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .color import normalize_tint
from .schemas import ColorMode, Style


DEFAULT_TINT = "#4f46e5"

# Wire name (interpreter JSON, MCP payloads) -> VisualState attribute.
WIRE_FIELDS: Dict[str, str] = {
    "style": "style",
    "colorMode": "color_mode",
    "tint": "tint",
    "showWater": "show_water",
    "showHetero": "show_hetero",
}


@dataclass
class VisualState:
    """The authoritative visual parameters of a session."""
    style: Style = Style.CARTOON
    color_mode: ColorMode = ColorMode.CHAIN_ID
    tint: str = DEFAULT_TINT
    show_water: bool = False
    show_hetero: bool = True
    structure_id: Optional[str] = None

    def __post_init__(self) -> None:
        # constructor arguments go through the same coercion as apply_updates
        for name, coerce in _COERCERS.items():
            try:
                setattr(self, name, coerce(getattr(self, name)))
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid value for '{name}': {getattr(self, name)!r}") from exc

    @property
    def has_structure(self) -> bool:
        return bool(self.structure_id)

    def to_json(self) -> Dict[str, Any]:
        return {
            "style": self.style.value,
            "colorMode": self.color_mode.value,
            "tint": self.tint,
            "showWater": self.show_water,
            "showHetero": self.show_hetero,
            "structureId": self.structure_id,
        }

    def copy(self) -> "VisualState":
        return VisualState(**asdict(self))


# -------------------------
# Field coercion
# -------------------------

def _coerce_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected a boolean, got {value!r}")
    return value


_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "style": Style,
    "color_mode": ColorMode,
    "tint": normalize_tint,
    "show_water": _coerce_bool,
    "show_hetero": _coerce_bool,
}


def field_name(key: str) -> str:
    """Resolve a wire name or attribute name to the VisualState attribute."""
    if key in WIRE_FIELDS:
        return WIRE_FIELDS[key]
    if key in _COERCERS:
        return key
    raise KeyError(f"Unknown visual parameter '{key}'")


def coerce_field(key: str, value: Any) -> tuple[str, Any]:
    """Validate one parameter; returns (attribute, typed value) or raises ValueError/KeyError."""
    name = field_name(key)
    try:
        return name, _COERCERS[name](value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for '{key}': {value!r}") from exc


def apply_updates(state: VisualState, updates: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate every entry first, then assign. Either all fields apply or none do.
    Returns the attribute -> value mapping that was applied.
    """
    coerced: Dict[str, Any] = {}
    for key, value in updates.items():
        name, typed = coerce_field(key, value)
        coerced[name] = typed

    if coerced.get("color_mode", state.color_mode) is ColorMode.UNIFORM:
        # tint must be well formed before uniform coloring can reach the engine
        normalize_tint(coerced.get("tint", state.tint))

    for name, typed in coerced.items():
        setattr(state, name, typed)
    return coerced


__all__ = [
    "DEFAULT_TINT",
    "WIRE_FIELDS",
    "VisualState",
    "field_name",
    "coerce_field",
    "apply_updates",
]
