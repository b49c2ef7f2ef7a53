from __future__ import annotations

import logging
from typing import List, Sequence

from .color import tint_to_int
from .engine.adapter import EngineAdapter
from .schemas import (
    ENGINE_STYLES,
    AddRepresentation,
    ColorMode,
    ComponentKind,
    ComponentRef,
    CreateSubset,
    RemoveComponents,
    RepresentationParams,
    SceneOp,
)
from .state import VisualState

logger = logging.getLogger(__name__)


WATER_TINT = 0x4FC3F7

LIGAND_REPRESENTATION = RepresentationParams(
    type="ball-and-stick",
    color="element-symbol",
    type_params={"sizeFactor": 0.3},
)

WATER_REPRESENTATION = RepresentationParams(
    type="ball-and-stick",
    color="uniform",
    color_params={"value": WATER_TINT},
    type_params={"alpha": 0.3, "sizeFactor": 0.1},
)


def polymer_representation(state: VisualState) -> RepresentationParams:
    if state.color_mode is ColorMode.UNIFORM:
        color_params = {"value": tint_to_int(state.tint)}
    else:
        color_params = None
    return RepresentationParams(
        type=ENGINE_STYLES[state.style],
        color=state.color_mode.value,
        color_params=color_params,
        type_params={"quality": "auto", "alpha": 1.0},
    )


def build_scene_ops(state: VisualState, existing: Sequence[ComponentRef]) -> List[SceneOp]:
    """
    Full rebuild of the scene for `state`. The batch always opens with the
    removal of every existing component so repeated runs never stack.
    """
    ops: List[SceneOp] = [RemoveComponents(tuple(existing))]

    ops.append(CreateSubset(ComponentKind.POLYMER))
    ops.append(AddRepresentation(ComponentKind.POLYMER, polymer_representation(state)))

    if state.show_hetero:
        ops.append(CreateSubset(ComponentKind.LIGAND))
        ops.append(AddRepresentation(ComponentKind.LIGAND, LIGAND_REPRESENTATION))

    if state.show_water:
        ops.append(CreateSubset(ComponentKind.WATER))
        ops.append(AddRepresentation(ComponentKind.WATER, WATER_REPRESENTATION))

    return ops


class Synchronizer:
    """Rebuilds the engine scene from the current VisualState in one transaction."""

    def __init__(self, engine: EngineAdapter) -> None:
        self.engine = engine

    async def synchronize(self, state: VisualState) -> bool:
        """
        Returns False when there was nothing to synchronize (no structure).
        Raises EngineError when the engine rejects the transaction; `state`
        is never modified.
        """
        if not state.has_structure:
            logger.debug("sync skipped: state has no structure")
            return False

        structure = await self.engine.active_structure()
        if structure is None:
            logger.debug("sync skipped: no structure loaded")
            return False

        existing = await self.engine.list_components()
        ops = build_scene_ops(state, existing)
        logger.debug(
            "sync %s: removing %s components, %s ops",
            structure.label,
            len(existing),
            len(ops),
        )
        await self.engine.run_atomic(ops)
        return True


__all__ = [
    "WATER_TINT",
    "LIGAND_REPRESENTATION",
    "WATER_REPRESENTATION",
    "polymer_representation",
    "build_scene_ops",
    "Synchronizer",
]
