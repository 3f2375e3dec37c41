"""Host facilities - 真实 pane 的创建与终止"""

from .tmux import TmuxClient, TmuxHost

__all__ = ["TmuxClient", "TmuxHost"]
