"""外部协作者接口

Coordinator 只依赖这两个抽象：
- HostFacility: 创建/终止真实 pane（异步完成，结果以事件形式回送）
- PipeTransport: 请求通道的暂停/恢复与单次响应

设计原则：
1. 非阻塞：create/terminate 立即返回，完成通知由 host 另行投递
2. 单次响应：每个 pipe_id 只响应一次，响应即恢复通道
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from ..telemetry import get_logger, metrics
from ..config import METRICS_ENABLED
from .types import CommandContext, HostEvent, Response

logger = get_logger(__name__)

# 完成通知投递回调
EventSink = Callable[[HostEvent], None]


class HostFacility(ABC):
    """Host pane 管理接口

    完成通知：
    - create → CommandPaneOpened(host_pane_id, context)
    - terminate → CommandPaneExited(host_pane_id)
    - 任意时刻 → PaneClosed(host_pane_id)（与 CommandPaneExited 同等处理）

    完成通知通过 set_event_sink 设置的回调投递（通常是 EventDispatcher.post）。
    """

    _sink: EventSink | None = None

    def set_event_sink(self, sink: EventSink) -> None:
        """设置完成通知的投递目标"""
        self._sink = sink

    def emit(self, event: HostEvent) -> None:
        """投递完成通知"""
        if self._sink is None:
            logger.warning(f"[{self.name}] No event sink, dropped {type(event).__name__}")
            return
        self._sink(event)

    async def start(self) -> None:
        """启动 host 侧后台任务（可选）"""
        pass

    async def stop(self) -> None:
        """停止 host 侧后台任务（可选）"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Host 名称（如 "tmux"）"""
        pass

    @abstractmethod
    def create(
        self,
        cmd: str,
        args: list[str],
        cwd: str | None,
        context: CommandContext,
    ) -> None:
        """请求创建命令 pane（立即返回）

        Args:
            cmd: 可执行命令
            args: 命令参数
            cwd: 工作目录，None 表示沿用 host 默认
            context: 关联上下文，完成通知中原样带回
        """
        pass

    @abstractmethod
    def terminate(self, host_pane_id: int) -> None:
        """请求终止 pane（立即返回）"""
        pass


class PipeTransport(ABC):
    """请求传输层接口"""

    @abstractmethod
    def suspend(self, pipe_id: str) -> None:
        """暂停通道的后续输入（直到响应）"""
        pass

    @abstractmethod
    def resume(self, pipe_id: str) -> None:
        """恢复通道输入"""
        pass

    @abstractmethod
    def output(self, pipe_id: str, body: str) -> None:
        """向通道写出一条已编码的响应"""
        pass

    def respond(self, pipe_id: str, body: str) -> None:
        """写出响应并恢复通道"""
        self.output(pipe_id, body)
        self.resume(pipe_id)


def respond_json(transport: PipeTransport, pipe_id: str, response: Response) -> None:
    """编码响应模型并发送到通道

    Args:
        transport: 传输层
        pipe_id: 响应通道
        response: 响应模型
    """
    body = response.model_dump_json()
    logger.debug(f"[Pipe:{pipe_id[:8]}] → {body}")
    if METRICS_ENABLED:
        metrics.inc("toggler.responses", {"ok": str(response.ok).lower()})
    transport.respond(pipe_id, body)
