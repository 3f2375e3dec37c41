"""HttpPipeTransport - 以 HTTP 请求作为管道通道

每个 pipe_id 对应一个等待中的 HTTP 请求（asyncio.Future）：
- respond: 解决 Future，HTTP 请求返回响应体
- suspend/resume: 记录通道是否在等待 host 完成（状态接口展示）
"""

import asyncio

from ..config import METRICS_ENABLED
from ..telemetry import get_logger, metrics
from ..toggler.base import PipeTransport

logger = get_logger(__name__)


class HttpPipeTransport(PipeTransport):
    """HTTP 管道传输层

    使用示例:
        transport = HttpPipeTransport()
        future = transport.open_channel(pipe_id)
        dispatcher.post(PipeMessage(name, pipe_id, payload))
        body = await future
    """

    def __init__(self):
        self._channels: dict[str, asyncio.Future[str]] = {}
        self._suspended: set[str] = set()

    def open_channel(self, pipe_id: str) -> asyncio.Future[str]:
        """登记通道，返回等待响应的 Future

        Raises:
            ValueError: pipe_id 已在等待响应
        """
        if pipe_id in self._channels:
            raise ValueError(f"pipe {pipe_id} is already open")
        future = asyncio.get_running_loop().create_future()
        self._channels[pipe_id] = future
        return future

    def close_channel(self, pipe_id: str) -> None:
        """移除通道（HTTP 请求结束或客户端断开）"""
        future = self._channels.pop(pipe_id, None)
        self._suspended.discard(pipe_id)
        if future is not None and not future.done():
            future.cancel()

    @property
    def open_channels(self) -> set[str]:
        return set(self._channels)

    @property
    def suspended_channels(self) -> set[str]:
        return set(self._suspended)

    def suspend(self, pipe_id: str) -> None:
        self._suspended.add(pipe_id)
        logger.debug(f"[Transport:{pipe_id[:8]}] suspended")

    def resume(self, pipe_id: str) -> None:
        self._suspended.discard(pipe_id)
        logger.debug(f"[Transport:{pipe_id[:8]}] resumed")

    def output(self, pipe_id: str, body: str) -> None:
        future = self._channels.get(pipe_id)
        if future is None:
            # 客户端已断开，响应无人接收
            logger.info(f"[Transport:{pipe_id[:8]}] Channel gone, dropped response: {body}")
            if METRICS_ENABLED:
                metrics.inc("transport.dropped")
            return
        if future.done():
            logger.warning(f"[Transport:{pipe_id[:8]}] Duplicate response dropped: {body}")
            if METRICS_ENABLED:
                metrics.inc("transport.duplicate")
            return
        future.set_result(body)
