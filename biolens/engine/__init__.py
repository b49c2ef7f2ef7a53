from .adapter import EngineAdapter, EngineError
from .scene import SceneEngine

__all__ = ["EngineAdapter", "EngineError", "SceneEngine"]
