from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Union


class Style(str, Enum):
    CARTOON = "cartoon"
    SURFACE = "surface"
    BALL_AND_STICK = "ball-and-stick"
    SPACEFILL = "spacefill"
    PUTTY = "putty"
    WIREFRAME = "wireframe"


class ColorMode(str, Enum):
    CHAIN_ID = "chain-id"
    ELEMENT_SYMBOL = "element-symbol"
    RESIDUE_NAME = "residue-name"
    HYDROPHOBICITY = "hydrophobicity"
    UNIFORM = "uniform"


class ComponentKind(str, Enum):
    POLYMER = "polymer"
    LIGAND = "ligand"
    WATER = "water"


# Engine-side representation names for each user-facing style.
ENGINE_STYLES: Dict[Style, str] = {
    Style.CARTOON: "cartoon",
    Style.SURFACE: "molecular-surface",
    Style.BALL_AND_STICK: "ball-and-stick",
    Style.SPACEFILL: "spacefill",
    Style.PUTTY: "putty",
    Style.WIREFRAME: "line",
}


@dataclass(frozen=True)
class StructureRef:
    ref: str
    label: str
    fmt: str


@dataclass(frozen=True)
class ComponentRef:
    ref: str
    kind: ComponentKind


@dataclass(frozen=True)
class RepresentationParams:
    type: str
    color: str
    color_params: Optional[Dict[str, Any]] = None
    type_params: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type,
            "color": self.color,
            "typeParams": dict(self.type_params),
        }
        if self.color_params is not None:
            payload["colorParams"] = dict(self.color_params)
        return payload


# -------------------------
# Scene operations
# -------------------------

@dataclass(frozen=True)
class RemoveComponents:
    components: Sequence[ComponentRef]

    def to_json(self) -> Dict[str, Any]:
        return {"op": "remove", "components": [c.ref for c in self.components]}


@dataclass(frozen=True)
class CreateSubset:
    kind: ComponentKind

    def to_json(self) -> Dict[str, Any]:
        return {"op": "create", "kind": self.kind.value}


@dataclass(frozen=True)
class AddRepresentation:
    """Attach a representation to the subset of `kind` created earlier in the same batch."""
    kind: ComponentKind
    params: RepresentationParams

    def to_json(self) -> Dict[str, Any]:
        return {"op": "represent", "kind": self.kind.value, **self.params.to_json()}


SceneOp = Union[RemoveComponents, CreateSubset, AddRepresentation]


# -------------------------
# Interpreter output
# -------------------------

@dataclass
class Interpretation:
    updates: Dict[str, Any] = field(default_factory=dict)
    message: str = ""

    def to_json(self) -> Dict[str, Any]:
        return {"updates": dict(self.updates), "message": self.message}


__all__ = [
    "Style",
    "ColorMode",
    "ComponentKind",
    "ENGINE_STYLES",
    "StructureRef",
    "ComponentRef",
    "RepresentationParams",
    "RemoveComponents",
    "CreateSubset",
    "AddRepresentation",
    "SceneOp",
    "Interpretation",
]
