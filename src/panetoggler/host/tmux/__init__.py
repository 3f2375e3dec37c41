"""Tmux host facility."""

from .client import TmuxClient, pane_target, parse_pane_handle
from .facility import TmuxHost

__all__ = ["TmuxClient", "TmuxHost", "pane_target", "parse_pane_handle"]
