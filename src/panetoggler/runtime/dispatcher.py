"""EventDispatcher - 单消费者事件循环

管道请求与 host 通知来自不同通道，统一入队后串行处理：
一个事件处理完毕才取下一个，Registry 只被一个逻辑线程访问。
"""

import asyncio

from ..config import EVENT_QUEUE_MAX_SIZE, METRICS_ENABLED
from ..telemetry import get_logger, metrics
from ..toggler.coordinator import TransitionCoordinator
from ..toggler.types import Event, PipeMessage

logger = get_logger(__name__)


class EventDispatcher:
    """事件分发器

    使用示例:
        dispatcher = EventDispatcher(coordinator)
        task = asyncio.create_task(dispatcher.run())
        dispatcher.post(PipeMessage("toggler::toggle", pipe_id, payload))
    """

    def __init__(self, coordinator: TransitionCoordinator, max_size: int = EVENT_QUEUE_MAX_SIZE):
        self._coordinator = coordinator
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=max_size)
        self._running = False

    @property
    def pending(self) -> int:
        """队列中待处理的事件数"""
        return self._queue.qsize()

    def post(self, event: Event) -> None:
        """投递事件（不阻塞）"""
        self._queue.put_nowait(event)
        if METRICS_ENABLED:
            metrics.gauge("dispatcher.depth", self._queue.qsize())

    def dispatch(self, event: Event) -> None:
        """同步处理单个事件

        处理器抛出的异常只记录，不中断事件循环；
        管道请求处理失败时以 error 响应结束，避免通道一直挂起。
        """
        try:
            if isinstance(event, PipeMessage):
                self._coordinator.handle_pipe(event)
            else:
                self._coordinator.handle_event(event)
        except Exception as e:
            logger.exception(f"[Dispatcher] Failed to handle {type(event).__name__}: {e}")
            if METRICS_ENABLED:
                metrics.inc("dispatcher.errors", {"event": type(event).__name__})
            if isinstance(event, PipeMessage):
                self._coordinator.reply_error(event.pipe_id, f"internal error: {e}")

    async def run(self) -> None:
        """启动事件循环

        持续运行直到调用 stop() 或任务被取消。
        """
        if self._running:
            logger.warning("[Dispatcher] Already running")
            return

        self._running = True
        logger.info("[Dispatcher] Started")

        try:
            while self._running:
                event = await self._queue.get()
                try:
                    self.dispatch(event)
                finally:
                    self._queue.task_done()
        except asyncio.CancelledError:
            logger.info("[Dispatcher] Cancelled")
            raise
        finally:
            self._running = False

    def stop(self) -> None:
        self._running = False

    async def drain(self) -> None:
        """等待已入队事件全部处理完"""
        await self._queue.join()
