"""Translate the SceneEngine scene into a py3Dmol view for the front ends."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import py3Dmol

from ..schemas import ComponentKind, RepresentationParams
from .scene import WATER_RESIDUES, SceneEngine

logger = logging.getLogger(__name__)


BACKGROUND = "#0a0a0f"

# Kyte-Doolittle hydropathy bucketed into a blue (hydrophilic) -> orange (hydrophobic) ramp.
_HYDROPATHY = {
    "ILE": 4.5, "VAL": 4.2, "LEU": 3.8, "PHE": 2.8, "CYS": 2.5, "MET": 1.9, "ALA": 1.8,
    "GLY": -0.4, "THR": -0.7, "SER": -0.8, "TRP": -0.9, "TYR": -1.3, "PRO": -1.6,
    "HIS": -3.2, "GLU": -3.5, "GLN": -3.5, "ASP": -3.5, "ASN": -3.5, "LYS": -3.9, "ARG": -4.5,
}
_HYDRO_RAMP = ["#2166ac", "#67a9cf", "#d1e5f0", "#fddbc7", "#ef8a62", "#b2182b"]


def _hydrophobicity_map() -> Dict[str, str]:
    lo, hi = -4.5, 4.5
    steps = len(_HYDRO_RAMP) - 1
    return {
        resn: _HYDRO_RAMP[round((value - lo) / (hi - lo) * steps)]
        for resn, value in _HYDROPATHY.items()
    }


_COLOR_SCHEMES: Dict[str, Any] = {
    "chain-id": "chain",
    "element-symbol": "default",
    "residue-name": "amino",
    "hydrophobicity": {"prop": "resn", "map": _hydrophobicity_map()},
}


def selection_for(kind: ComponentKind) -> Dict[str, Any]:
    waters = sorted(WATER_RESIDUES)
    if kind is ComponentKind.POLYMER:
        return {"hetflag": False}
    if kind is ComponentKind.WATER:
        return {"resn": waters}
    return {"hetflag": True, "not": {"resn": waters}}


def color_spec(params: RepresentationParams) -> Dict[str, Any]:
    if params.color == "uniform":
        value = (params.color_params or {}).get("value", 0xFFFFFF)
        return {"color": f"#{int(value):06x}"}
    scheme = _COLOR_SCHEMES.get(params.color)
    if scheme is None:
        logger.debug("no py3Dmol scheme for %s, using default", params.color)
        scheme = "default"
    return {"colorscheme": scheme}


def style_spec(params: RepresentationParams) -> Dict[str, Any]:
    """py3Dmol style dict for one representation (surfaces are handled separately)."""
    color = color_spec(params)
    opts = params.type_params
    size = float(opts.get("sizeFactor", 1.0))
    opacity = opts.get("alpha")
    extra = {"opacity": opacity} if opacity is not None and opacity < 1.0 else {}

    if params.type == "cartoon":
        return {"cartoon": {**color, **extra}}
    if params.type == "putty":
        return {"cartoon": {"style": "trace", "thickness": 0.6, **color, **extra}}
    if params.type == "spacefill":
        return {"sphere": {**color, **extra}}
    if params.type == "line":
        return {"line": {**color, **extra}}
    if params.type == "ball-and-stick":
        return {
            "stick": {"radius": round(0.25 * size + 0.05, 3), **color, **extra},
            "sphere": {"scale": round(0.3 * size + 0.1, 3), **color, **extra},
        }
    raise ValueError(f"Unsupported representation type: {params.type}")


def build_view(engine: SceneEngine, *, width: str = "100%", height: int = 560) -> Optional[py3Dmol.view]:
    structure = engine.structure
    if structure is None:
        return None
    if isinstance(structure.data, bytes):
        logger.warning("binary structure %s cannot be embedded in a py3Dmol view", structure.ref.label)
        return None

    view = py3Dmol.view(width=width, height=height)
    view.addModel(structure.data, "cif" if structure.ref.fmt == "mmcif" else "pdb")
    view.setStyle({}, {})

    for component in engine.components:
        selection = selection_for(component.ref.kind)
        for params in component.representations:
            if params.type == "molecular-surface":
                surface = {"opacity": params.type_params.get("alpha", 1.0), **color_spec(params)}
                view.addSurface("SES", surface, selection)
                continue
            view.addStyle(selection, style_spec(params))

    view.setBackgroundColor(BACKGROUND)
    # camera reset: no orientation survives between renders
    view.zoomTo()
    return view


def snapshot_filename(structure_id: Optional[str]) -> str:
    """Download name for an exported scene, e.g. `4HHB.html` or `model.html` for `model.cif`."""
    stem = Path(structure_id).stem if structure_id else ""
    return f"{stem or 'snapshot'}.html"


def render_html(engine: SceneEngine, *, width: str = "100%", height: int = 560) -> str:
    """Embeddable HTML snapshot of the current scene (empty string when nothing is loaded)."""
    view = build_view(engine, width=width, height=height)
    if view is None:
        return ""
    return view._make_html()


__all__ = ["selection_for", "color_spec", "style_spec", "build_view", "render_html", "snapshot_filename"]
