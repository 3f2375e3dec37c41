"""Toggler 核心模块

模块结构：
- types: 生命周期状态、请求/响应模型、输入事件
- registry: PaneRegistry 逻辑 pane_id → 状态
- base: HostFacility / PipeTransport 抽象接口
- coordinator: TransitionCoordinator 状态机
"""

from .base import HostFacility, PipeTransport, respond_json
from .coordinator import TransitionCoordinator
from .registry import PaneRegistry
from .types import (
    Closing,
    CommandPaneExited,
    CommandPaneOpened,
    Opened,
    Opening,
    PaneClosed,
    PaneState,
    PipeMessage,
)

__all__ = [
    # 状态
    "PaneState",
    "Opening",
    "Opened",
    "Closing",
    # 事件
    "PipeMessage",
    "CommandPaneOpened",
    "CommandPaneExited",
    "PaneClosed",
    # 组件
    "PaneRegistry",
    "TransitionCoordinator",
    "HostFacility",
    "PipeTransport",
    "respond_json",
]
