from __future__ import annotations

import copy
import itertools
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, FrozenSet, List, Optional, Sequence, Set, Union

from ..schemas import ComponentKind, ComponentRef, RepresentationParams, StructureRef
from .adapter import EngineAdapter, EngineError

logger = logging.getLogger(__name__)


WATER_RESIDUES = frozenset({"HOH", "WAT", "H2O", "DOD", "SOL", "TIP", "TIP3"})


# =========================
# Scene records
# =========================

@dataclass
class LoadedStructure:
    ref: StructureRef
    data: Union[str, bytes]
    kinds: FrozenSet[ComponentKind]


@dataclass
class SceneComponent:
    ref: ComponentRef
    representations: List[RepresentationParams] = field(default_factory=list)


# =========================
# Atom classification
# =========================

def classify_structure(data: Union[str, bytes], fmt: str) -> FrozenSet[ComponentKind]:
    """
    Decide which component kinds the structure can provide.
    Binary CIF is opaque here; it is assumed to carry a polymer only.
    """
    if isinstance(data, bytes):
        if not data:
            raise EngineError("Empty structure data.")
        return frozenset({ComponentKind.POLYMER})

    if fmt == "mmcif":
        kinds = _classify_mmcif(data)
    else:
        kinds = _classify_pdb(data)

    if not kinds:
        raise EngineError(f"No atom records found in {fmt} data.")
    return frozenset(kinds)


def _classify_residue(record: str, residue: str, kinds: Set[ComponentKind]) -> None:
    if record == "ATOM":
        kinds.add(ComponentKind.POLYMER)
    elif residue.upper() in WATER_RESIDUES:
        kinds.add(ComponentKind.WATER)
    else:
        kinds.add(ComponentKind.LIGAND)


def _classify_pdb(text: str) -> Set[ComponentKind]:
    kinds: Set[ComponentKind] = set()
    for line in text.splitlines():
        record = line[:6].strip()
        if record in ("ATOM", "HETATM"):
            _classify_residue(record, line[17:20].strip(), kinds)
    return kinds


def _classify_mmcif(text: str) -> Set[ComponentKind]:
    kinds: Set[ComponentKind] = set()
    columns: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("_atom_site."):
            columns.append(stripped.split()[0][len("_atom_site."):])
            continue
        if not stripped.startswith(("ATOM", "HETATM")):
            continue
        tokens = stripped.split()
        residue = ""
        for name in ("label_comp_id", "auth_comp_id"):
            if name in columns and columns.index(name) < len(tokens):
                residue = tokens[columns.index(name)]
                break
        _classify_residue(tokens[0], residue, kinds)
    return kinds


# =========================
# Engine
# =========================

class SceneEngine(EngineAdapter):
    """In-process engine that owns the scene model rendered by the front ends."""

    def __init__(self) -> None:
        self.structure: Optional[LoadedStructure] = None
        self.components: List[SceneComponent] = []
        self.camera_resets = 0
        self._ids = itertools.count(1)
        self._in_transaction = False

    # -------------------------------------------------

    async def clear(self) -> None:
        self.structure = None
        self.components = []

    async def load_structure(self, data: Union[str, bytes], fmt: str, label: str) -> StructureRef:
        kinds = classify_structure(data, fmt)
        await self.clear()
        ref = StructureRef(ref=f"structure-{next(self._ids)}", label=label, fmt=fmt)
        self.structure = LoadedStructure(ref=ref, data=data, kinds=kinds)
        # default preset: a bare polymer component, replaced by the first sync
        polymer = await self.create_component_subset(ComponentKind.POLYMER)
        if polymer is not None:
            await self.add_representation(
                polymer, RepresentationParams(type="cartoon", color="chain-id")
            )
        logger.debug("loaded %s (%s) kinds=%s", label, fmt, sorted(k.value for k in kinds))
        return ref

    async def reset_camera(self) -> None:
        """
        Views are built fresh by render.build_view and always end with zoomTo,
        so every render starts from the reset camera; this only counts requests.
        """
        self.camera_resets += 1

    # -------------------------------------------------

    async def active_structure(self) -> Optional[StructureRef]:
        return self.structure.ref if self.structure else None

    async def list_components(self) -> List[ComponentRef]:
        return [component.ref for component in self.components]

    async def remove_components(self, components: Sequence[ComponentRef]) -> None:
        doomed = set(components)
        self.components = [c for c in self.components if c.ref not in doomed]

    async def create_component_subset(self, kind: ComponentKind) -> Optional[ComponentRef]:
        if self.structure is None:
            raise EngineError("No structure loaded.")
        if kind not in self.structure.kinds:
            return None
        ref = ComponentRef(ref=f"{kind.value}-{next(self._ids)}", kind=kind)
        self.components.append(SceneComponent(ref=ref))
        return ref

    async def add_representation(self, component: ComponentRef, params: RepresentationParams) -> None:
        for item in self.components:
            if item.ref == component:
                item.representations.append(params)
                return
        raise EngineError(f"Component '{component.ref}' is not part of the scene.")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._in_transaction:
            raise EngineError("A scene transaction is already in progress.")
        self._in_transaction = True
        snapshot = copy.deepcopy(self.components)
        try:
            yield
        except BaseException:
            self.components = snapshot
            logger.warning("transaction rolled back")
            raise
        finally:
            self._in_transaction = False

    # -------------------------------------------------

    def representations(self) -> Dict[ComponentKind, List[RepresentationParams]]:
        """Current representations grouped by component kind."""
        grouped: Dict[ComponentKind, List[RepresentationParams]] = {}
        for component in self.components:
            grouped.setdefault(component.ref.kind, []).extend(component.representations)
        return grouped


__all__ = [
    "WATER_RESIDUES",
    "LoadedStructure",
    "SceneComponent",
    "SceneEngine",
    "classify_structure",
]
