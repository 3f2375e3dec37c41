"""Bootstrap - 集中构造系统组件

职责：
- 创建 PaneRegistry, TransitionCoordinator, EventDispatcher
- 创建 host facility（默认 tmux）与 HTTP 传输层
- 把 host 完成通知接到 dispatcher
- 返回 RuntimeComponents 供调用方使用

Registry 只在这里构造一次，之后只经由 Coordinator 修改。
"""

import asyncio
from dataclasses import dataclass, field

from ..config import TMUX_SOCKET
from ..host.tmux import TmuxClient, TmuxHost
from ..telemetry import get_logger
from ..toggler.base import HostFacility
from ..toggler.coordinator import TransitionCoordinator
from ..toggler.registry import PaneRegistry
from ..web.transport import HttpPipeTransport
from .dispatcher import EventDispatcher

logger = get_logger(__name__)

# Global registry to track bootstrap state and prevent dual-construction
_current_components: "RuntimeComponents | None" = None


@dataclass
class RuntimeComponents:
    """Bootstrap 返回的运行时组件集合"""

    registry: PaneRegistry
    coordinator: TransitionCoordinator
    dispatcher: EventDispatcher
    host: HostFacility
    transport: HttpPipeTransport
    _dispatcher_task: asyncio.Task | None = field(default=None, repr=False)

    async def start(self) -> None:
        """启动 dispatcher 与 host 后台任务"""
        self._dispatcher_task = asyncio.create_task(self.dispatcher.run())
        await self.host.start()
        logger.info(f"[Bootstrap] Runtime started (host={self.host.name})")

    async def stop(self) -> None:
        """停止 host 与 dispatcher"""
        await self.host.stop()
        self.dispatcher.stop()
        if self._dispatcher_task:
            self._dispatcher_task.cancel()
            try:
                await self._dispatcher_task
            except asyncio.CancelledError:
                pass
            self._dispatcher_task = None
        logger.info("[Bootstrap] Runtime stopped")


def bootstrap(
    host: HostFacility | None = None,
    transport: HttpPipeTransport | None = None,
) -> RuntimeComponents:
    """构造运行时组件

    Args:
        host: host facility（默认使用 tmux）
        transport: 传输层（默认新建 HttpPipeTransport）

    Returns:
        RuntimeComponents 包含所有构造好的组件

    Raises:
        RuntimeError: 如果已经调用过 bootstrap（防止双重构造）
    """
    global _current_components

    if _current_components is not None:
        raise RuntimeError(
            "bootstrap() has already been called. "
            "Use get_current_components() to access existing components."
        )

    host = host or TmuxHost(TmuxClient(socket_path=TMUX_SOCKET))
    transport = transport or HttpPipeTransport()

    registry = PaneRegistry()
    coordinator = TransitionCoordinator(registry, host, transport)
    dispatcher = EventDispatcher(coordinator)
    host.set_event_sink(dispatcher.post)

    logger.info("[Bootstrap] Components created")

    _current_components = RuntimeComponents(
        registry=registry,
        coordinator=coordinator,
        dispatcher=dispatcher,
        host=host,
        transport=transport,
    )
    return _current_components


def get_current_components() -> "RuntimeComponents | None":
    """获取当前运行的 RuntimeComponents

    如果 bootstrap() 还没调用，返回 None。
    """
    return _current_components


def _reset_for_testing() -> None:
    """重置 bootstrap 状态（仅用于测试）"""
    global _current_components
    _current_components = None
