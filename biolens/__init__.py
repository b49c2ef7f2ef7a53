"""Molecular viewer state synchronization and natural-language control."""

from .session import ViewerSession, build_session
from .state import VisualState
from .synchronizer import Synchronizer

__all__ = ["ViewerSession", "build_session", "VisualState", "Synchronizer"]
