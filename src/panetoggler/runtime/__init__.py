"""Runtime module - Bootstrap and event loop"""

from .bootstrap import (
    RuntimeComponents,
    bootstrap,
    get_current_components,
)
from .dispatcher import EventDispatcher

__all__ = [
    "bootstrap",
    "get_current_components",
    "RuntimeComponents",
    "EventDispatcher",
]
