"""Pane 注册表 - 逻辑 pane_id → 生命周期状态

单一事实来源：不在表中即"未打开且无进行中的操作"。
不做任何校验，不变量由 TransitionCoordinator 维护。
"""

from .types import Closing, Opened, PaneState


class PaneRegistry:
    """Pane 注册表

    使用示例:
        registry = PaneRegistry()
        registry.insert("logs", Opened(host_pane_id=7))
        registry.find_by_handle(7)  # -> "logs"
    """

    def __init__(self):
        self._panes: dict[str, PaneState] = {}

    def get(self, pane_id: str) -> PaneState | None:
        return self._panes.get(pane_id)

    def insert(self, pane_id: str, state: PaneState) -> None:
        """写入状态（覆盖旧状态）"""
        self._panes[pane_id] = state

    def remove(self, pane_id: str) -> PaneState | None:
        return self._panes.pop(pane_id, None)

    def find_by_handle(self, host_pane_id: int) -> str | None:
        """按 host 句柄反查逻辑 pane_id

        只匹配 Opened / Closing（Opening 尚无句柄）。线性扫描，
        同时跟踪的 pane 数量很小。

        Args:
            host_pane_id: host 分配的 pane 句柄

        Returns:
            逻辑 pane_id，找不到返回 None
        """
        for pane_id, state in self._panes.items():
            if isinstance(state, (Opened, Closing)) and state.host_pane_id == host_pane_id:
                return pane_id
        return None

    def snapshot(self) -> dict[str, PaneState]:
        """获取所有状态（浅拷贝，调试/状态接口用）"""
        return dict(self._panes)

    def __len__(self) -> int:
        return len(self._panes)

    def __contains__(self, pane_id: object) -> bool:
        return pane_id in self._panes
