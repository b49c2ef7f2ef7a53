from __future__ import annotations

import textwrap

from ..state import VisualState


def format_state(state: VisualState) -> str:
    """Current parameters as plain `key: value` lines."""
    lines = []
    for key, value in state.to_json().items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        lines.append(f"{key}: {value if value is not None else 'none'}")
    return "\n".join(lines)


def build_command_prompt(state: VisualState, user_text: str, history_text: str = "") -> str:
    return textwrap.dedent(
        """
        # Current Viewer State
        {state}

        # Recent Conversation
        {history}

        # User Request
        {request}
        """
    ).strip().format(
        state=format_state(state),
        history=history_text or "No prior conversation.",
        request=user_text.strip(),
    )


__all__ = ["format_state", "build_command_prompt"]
