from __future__ import annotations

import abc
import logging
from typing import AsyncContextManager, Dict, List, Optional, Sequence, Union

from ..schemas import (
    AddRepresentation,
    ComponentKind,
    ComponentRef,
    CreateSubset,
    RemoveComponents,
    RepresentationParams,
    SceneOp,
    StructureRef,
)

logger = logging.getLogger(__name__)


class EngineError(RuntimeError):
    """Raised when the visualization engine fails to load data or apply a transaction."""


class EngineAdapter(abc.ABC):
    """
    Subset of the visualization engine the synchronizer needs.
    Concrete engines implement the primitives; run_atomic drives them inside
    the engine's own transaction.
    """

    # -------------------------------------------------
    # Structure boundary (used by the shell)
    # -------------------------------------------------

    @abc.abstractmethod
    async def clear(self) -> None:
        ...

    @abc.abstractmethod
    async def load_structure(self, data: Union[str, bytes], fmt: str, label: str) -> StructureRef:
        ...

    @abc.abstractmethod
    async def reset_camera(self) -> None:
        ...

    # -------------------------------------------------
    # Scene primitives
    # -------------------------------------------------

    @abc.abstractmethod
    async def active_structure(self) -> Optional[StructureRef]:
        ...

    @abc.abstractmethod
    async def list_components(self) -> List[ComponentRef]:
        ...

    @abc.abstractmethod
    async def remove_components(self, components: Sequence[ComponentRef]) -> None:
        ...

    @abc.abstractmethod
    async def create_component_subset(self, kind: ComponentKind) -> Optional[ComponentRef]:
        ...

    @abc.abstractmethod
    async def add_representation(self, component: ComponentRef, params: RepresentationParams) -> None:
        ...

    @abc.abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """Scope in which scene mutations either all land or are rolled back."""

    # -------------------------------------------------

    async def run_atomic(self, ops: Sequence[SceneOp]) -> None:
        try:
            async with self.transaction():
                created: Dict[ComponentKind, ComponentRef] = {}
                for op in ops:
                    await self._apply_op(op, created)
        except EngineError:
            raise
        except Exception as exc:
            raise EngineError(f"Scene transaction failed: {exc}") from exc

        logger.debug("transaction applied (%s ops)", len(ops))

    async def _apply_op(self, op: SceneOp, created: Dict[ComponentKind, ComponentRef]) -> None:
        if isinstance(op, RemoveComponents):
            if op.components:
                await self.remove_components(op.components)
        elif isinstance(op, CreateSubset):
            component = await self.create_component_subset(op.kind)
            if component is not None:
                created[op.kind] = component
        elif isinstance(op, AddRepresentation):
            component = created.get(op.kind)
            if component is None:
                # structure has no atoms of this kind
                return
            await self.add_representation(component, op.params)
        else:
            raise EngineError(f"Unknown scene operation: {op!r}")


__all__ = ["EngineError", "EngineAdapter"]
