from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List, NamedTuple, Optional


class Turn(NamedTuple):
    role: str
    content: str


class History:
    """
    Conversation log shared by the interpreter prompt and the front ends.
    Roles are `user` and `assistant`; blank turns are not recorded.
    """

    def __init__(self, max_turns: Optional[int] = None) -> None:
        self.max_turns = max_turns
        self.turns: Deque[Turn] = deque(maxlen=max_turns)

    def add_user_turn(self, text: str) -> None:
        self._add("user", text)

    def add_assistant_turn(self, text: str) -> None:
        self._add("assistant", text)

    def recent(self, limit: Optional[int] = None) -> List[Turn]:
        turns = list(self.turns)
        return turns[-limit:] if limit else turns

    def as_text(self, limit: Optional[int] = None) -> str:
        """Prompt-ready transcript, e.g. `User: ...` / `Assistant: ...` lines."""
        return "\n".join(f"{turn.role.title()}: {turn.content}" for turn in self.recent(limit))

    def as_messages(self) -> List[Dict[str, Any]]:
        return [turn._asdict() for turn in self.turns]

    def _add(self, role: str, content: str) -> None:
        text = content.strip()
        if text:
            self.turns.append(Turn(role, text))


__all__ = ["Turn", "History"]
