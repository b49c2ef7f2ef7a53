from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


DEFAULT_MODEL = os.getenv("BIOLENS_MODEL", "llama3.1:8b")
DEFAULT_OLLAMA_HOST = os.getenv("OLLAMA_HOST")
DEFAULT_STRUCTURE_URL = os.getenv("BIOLENS_STRUCTURE_URL", "https://files.rcsb.org/download")
DEFAULT_STRUCTURE_ID = os.getenv("BIOLENS_DEFAULT_ID", "4HHB")
DEFAULT_HTTP_TIMEOUT = float(os.getenv("BIOLENS_HTTP_TIMEOUT", "30"))


@dataclass
class Settings:
    model: str = DEFAULT_MODEL
    ollama_host: Optional[str] = DEFAULT_OLLAMA_HOST
    structure_url: str = DEFAULT_STRUCTURE_URL
    default_structure_id: str = DEFAULT_STRUCTURE_ID
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    history_turns: int = 6
    verbose: bool = False
    llm_options: Dict[str, Any] = field(
        default_factory=lambda: {
            "temperature": 0.1,
            "top_p": 0.5,
            "top_k": 10,
        }
    )


__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_OLLAMA_HOST",
    "DEFAULT_STRUCTURE_URL",
    "DEFAULT_STRUCTURE_ID",
    "DEFAULT_HTTP_TIMEOUT",
    "Settings",
]
