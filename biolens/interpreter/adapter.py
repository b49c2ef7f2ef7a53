from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

import ollama
from ollama import ResponseError

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^\s*```[\w-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


class LLMError(RuntimeError):
    """Raised when the LLM fails after retries."""


class LLMAdapter:
    """
    Thin gateway around the Ollama chat API.
    Handles transport-level retries and normalization.
    """

    def __init__(
        self,
        model: str,
        *,
        host: Optional[str] = None,
        default_options: Optional[Mapping[str, Any]] = None,
        stage_options: Optional[Mapping[str, Mapping[str, Any]]] = None,
        max_attempts: int = 3,
        verbose: bool = False,
        client: Optional[ollama.AsyncClient] = None,
    ) -> None:

        self.model = model
        self.default_options = dict(default_options or {})
        self.stage_options = dict(stage_options or {})
        self.max_attempts = max(1, max_attempts)
        self.verbose = verbose
        self.client = client or ollama.AsyncClient(host=host)

    # -------------------------------------------------

    async def request_text(self, stage: str, system_prompt: str, payload_text: str) -> tuple[str, list[dict]]:
        messages = self._build_messages(system_prompt, payload_text)
        options = self._stage_options(stage)

        if self.verbose:
            logger.info("[%s] request started", stage.upper())

        attempt_history: List[Dict[str, Any]] = []

        for attempt in range(1, self.max_attempts + 1):
            if self.verbose:
                logger.info("[%s] attempt %s", stage.upper(), attempt)

            try:
                response = await self.client.chat(model=self.model, messages=messages, options=options)
                content = self._extract_content(response)

            except ResponseError as exc:
                content = self._extract_raw_from_error(exc) or ""
                if not content:
                    logger.warning("[%s] service error: %s", stage.upper(), exc)

            except ConnectionError as exc:
                raise LLMError(f"Stage '{stage}' could not reach the model service: {exc}") from exc

            content = content.strip()

            attempt_history.append({
                "attempt": attempt,
                "content": content,
                "success": bool(content)
            })

            if content:
                if self.verbose:
                    logger.info(
                        "[%s] success (%s chars)",
                        stage.upper(),
                        len(content),
                    )
                return content, attempt_history

            # empty -> retry
            messages.append(
                {
                    "role": "system",
                    "content": "Your last reply was empty. Reply with the JSON object now.",
                }
            )

        raise LLMError(f"Stage '{stage}' failed after {self.max_attempts} attempts.")

    # -------------------------------------------------

    def _build_messages(self, system_prompt: str, user_payload: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_payload},
        ]

    def _stage_options(self, stage: str) -> Dict[str, Any]:
        options = dict(self.default_options)
        if stage in self.stage_options:
            options.update(self.stage_options[stage])
        return options

    # -------------------------------------------------

    @staticmethod
    def _extract_content(response: Any) -> str:
        message = getattr(response, "message", None)

        if message is None and isinstance(response, dict):
            message = response.get("message")

        if not message:
            return ""

        if hasattr(message, "model_dump"):
            payload = message.model_dump(exclude_none=True)
        elif isinstance(message, dict):
            payload = message
        else:
            return ""

        content = payload.get("content", "")

        if isinstance(content, list):
            content = "".join(map(str, content))

        return str(content)

    @staticmethod
    def _extract_raw_from_error(exc: Exception) -> Optional[str]:
        msg = str(exc)
        marker = "raw='"
        start = msg.find(marker)
        if start == -1:
            return None
        start += len(marker)
        end = msg.find("'", start)
        return None if end == -1 else msg[start:end]


def strip_code_fence(text: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence, wherever the lines break."""
    stripped = _FENCE_OPEN.sub("", text.strip(), count=1)
    return _FENCE_CLOSE.sub("", stripped, count=1).strip()


__all__ = ["LLMAdapter", "LLMError", "strip_code_fence"]
