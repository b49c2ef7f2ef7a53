from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..history import History
from ..schemas import Interpretation
from ..state import VisualState
from .adapter import LLMAdapter, LLMError
from .prompt_builders import build_command_prompt
from .prompt_texts import COMMAND_PROMPT
from .response import DEFAULT_MESSAGE, interpret_reply

logger = logging.getLogger(__name__)


UNAVAILABLE_MESSAGE = "The assistant is unavailable right now."


class InterpreterError(RuntimeError):
    """Raised when the language service cannot produce a reply."""


class CommandInterpreter:
    """Turns free text into a validated partial VisualState update plus a reply."""

    def __init__(
        self,
        adapter: LLMAdapter,
        *,
        history: Optional[History] = None,
        history_turns: int = 6,
        default_message: str = DEFAULT_MESSAGE,
        unavailable_message: str = UNAVAILABLE_MESSAGE,
    ) -> None:
        self.adapter = adapter
        self.history = history if history is not None else History()
        self.history_turns = history_turns
        self.default_message = default_message
        self.unavailable_message = unavailable_message
        self.last_debug: Dict[str, Any] = {}

    async def interpret(self, text: str, state: VisualState) -> Interpretation:
        if not text or not text.strip():
            raise ValueError("Command text must not be empty.")

        prompt = build_command_prompt(
            state,
            text,
            self.history.as_text(limit=self.history_turns),
        )
        self.history.add_user_turn(text)
        self.last_debug = {}

        try:
            raw = await self._request(prompt)
        except InterpreterError as exc:
            logger.warning("interpreter degraded: %s", exc)
            result = Interpretation(updates={}, message=self.unavailable_message)
        else:
            result = interpret_reply(raw, self.default_message)

        self.history.add_assistant_turn(result.message)
        self.last_debug = {"prompt": prompt, **self.last_debug, **result.to_json()}
        return result

    async def _request(self, prompt: str) -> str:
        try:
            raw, attempts = await self.adapter.request_text("command", COMMAND_PROMPT, prompt)
        except LLMError as exc:
            raise InterpreterError(str(exc)) from exc
        except Exception as exc:  # noqa: BLE001 - any transport failure degrades to the fallback
            raise InterpreterError(f"language service failed: {exc}") from exc

        self.last_debug = {"attempts": attempts}
        return raw


__all__ = ["UNAVAILABLE_MESSAGE", "InterpreterError", "CommandInterpreter"]
