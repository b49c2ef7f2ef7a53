from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

from .config import Settings
from .engine.adapter import EngineAdapter, EngineError
from .engine.scene import SceneEngine
from .history import History
from .interpreter import CommandInterpreter, LLMAdapter
from .loader import ParseError, StructureSource, fetch_remote, read_local, source_from_bytes
from .schemas import Interpretation
from .state import VisualState, apply_updates
from .synchronizer import Synchronizer

logger = logging.getLogger(__name__)


NO_ASSISTANT_MESSAGE = "No language model is configured for this session."


class ViewerSession:
    """
    Explicit context for one viewer: the VisualState, the busy gate, and the
    components that act on them. Every public coroutine holds the gate for its
    whole duration, so loads, parameter changes and commands run one at a time.
    Engine, parse and interpreter failures are recorded in `last_error`.
    """

    def __init__(
        self,
        engine: EngineAdapter,
        interpreter: Optional[CommandInterpreter] = None,
        *,
        settings: Optional[Settings] = None,
        state: Optional[VisualState] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.engine = engine
        self.state = state or VisualState()
        self.synchronizer = Synchronizer(engine)
        self.interpreter = interpreter
        self.history = interpreter.history if interpreter is not None else History()
        self.last_error: Optional[str] = None
        self._gate = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._gate.locked()

    def dismiss_error(self) -> None:
        self.last_error = None

    # -------------------------------------------------
    # Structure loading
    # -------------------------------------------------

    async def load_identifier(self, identifier: str) -> bool:
        async with self._gate:
            try:
                source = await asyncio.to_thread(
                    fetch_remote,
                    identifier,
                    base_url=self.settings.structure_url,
                    timeout=self.settings.http_timeout,
                )
            except (ValueError, EngineError) as exc:
                return self._fail(str(exc))
            return await self._load(source)

    async def open_file(self, path: str) -> bool:
        async with self._gate:
            try:
                source = read_local(path)
            except ParseError as exc:
                return self._fail(str(exc))
            return await self._load(source)

    async def load_bytes(self, filename: str, raw: bytes) -> bool:
        async with self._gate:
            try:
                source = source_from_bytes(filename, raw)
            except ParseError as exc:
                return self._fail(str(exc))
            return await self._load(source)

    async def _load(self, source: StructureSource) -> bool:
        try:
            await self.engine.load_structure(source.data, source.fmt, source.label)
        except EngineError as exc:
            logger.warning("engine rejected %s: %s", source.label, exc)
            return self._fail(
                f"Could not parse {source.label}: make sure it is a standard PDB or CIF file."
            )
        self.state.structure_id = source.label
        self.last_error = None
        return await self._sync()

    # -------------------------------------------------
    # Parameters
    # -------------------------------------------------

    async def update(self, updates: Optional[Mapping[str, Any]] = None, **fields: Any) -> bool:
        merged: Dict[str, Any] = {**(updates or {}), **fields}
        async with self._gate:
            try:
                apply_updates(self.state, merged)
            except (KeyError, ValueError) as exc:
                return self._fail(str(exc))
            return await self._sync()

    async def synchronize(self) -> bool:
        async with self._gate:
            return await self._sync()

    async def command(self, text: str) -> Interpretation:
        async with self._gate:
            if self.interpreter is None:
                self.history.add_user_turn(text)
                self.history.add_assistant_turn(NO_ASSISTANT_MESSAGE)
                return Interpretation(updates={}, message=NO_ASSISTANT_MESSAGE)

            result = await self.interpreter.interpret(text, self.state.copy())
            if result.updates:
                apply_updates(self.state, result.updates)
                await self._sync()
            return result

    async def reset_camera(self) -> None:
        async with self._gate:
            await self.engine.reset_camera()

    # -------------------------------------------------

    async def _sync(self) -> bool:
        try:
            await self.synchronizer.synchronize(self.state)
        except EngineError as exc:
            return self._fail(f"Visual sync failed: {exc}")
        return True

    def _fail(self, message: str) -> bool:
        logger.warning(message)
        self.last_error = message
        return False

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.to_json(),
            "last_error": self.last_error,
            "history": self.history.as_messages(),
        }


def build_session(settings: Optional[Settings] = None, *, engine: Optional[EngineAdapter] = None) -> ViewerSession:
    settings = settings or Settings()
    adapter = LLMAdapter(
        settings.model,
        host=settings.ollama_host,
        default_options=settings.llm_options,
        verbose=settings.verbose,
    )
    interpreter = CommandInterpreter(adapter, history_turns=settings.history_turns)
    return ViewerSession(engine or SceneEngine(), interpreter, settings=settings)


__all__ = ["NO_ASSISTANT_MESSAGE", "ViewerSession", "build_session"]
