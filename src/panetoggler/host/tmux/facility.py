"""TmuxHost - 基于 tmux 的 HostFacility

负责：
- create: split-window 运行命令，完成后投递 CommandPaneOpened（带回关联上下文）
- terminate: kill-pane，完成后投递 CommandPaneExited
- 轮询存活 pane，已跟踪的 pane 消失时投递 PaneClosed（命令退出、用户手动关闭）

create/terminate 只创建后台任务，立即返回。
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from ...config import METRICS_ENABLED, POLL_INTERVAL, SPLIT_DIRECTION
from ...telemetry import get_logger, metrics
from ...toggler.base import HostFacility
from ...toggler.types import (
    CommandContext,
    CommandPaneExited,
    CommandPaneOpened,
    PaneClosed,
)
from .client import TmuxClient

logger = get_logger(__name__)


class TmuxHost(HostFacility):
    """tmux host facility

    使用示例:
        host = TmuxHost(TmuxClient())
        host.set_event_sink(dispatcher.post)
        await host.start()
        host.create("htop", [], None, {"__toggler_pane_id": "monitor"})
    """

    def __init__(
        self,
        client: TmuxClient | None = None,
        poll_interval: float | None = None,
        direction: str = SPLIT_DIRECTION,
    ):
        self._client = client or TmuxClient()
        self._poll_interval = poll_interval or POLL_INTERVAL
        self._direction = direction
        self._poll_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        # 本进程创建且仍存活的 pane 句柄
        self._tracked: set[int] = set()

    @property
    def name(self) -> str:
        return "tmux"

    @property
    def tracked_panes(self) -> set[int]:
        return set(self._tracked)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # === 生命周期 ===

    async def start(self) -> None:
        """检查 tmux 并启动存活轮询"""
        if await self._client.check_available():
            logger.info("[TmuxHost] tmux server reachable")
        else:
            logger.warning("[TmuxHost] tmux server not reachable, pane commands will fail")
        self._poll_task = asyncio.create_task(self._poll_panes())
        logger.info("[TmuxHost] Pane 轮询已启动")

    async def stop(self) -> None:
        """停止轮询并取消未完成的命令"""
        tasks = list(self._tasks)
        if self._poll_task:
            tasks.append(self._poll_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._poll_task = None
        logger.info("[TmuxHost] Pane 轮询已停止")

    # === HostFacility ===

    def create(
        self,
        cmd: str,
        args: list[str],
        cwd: str | None,
        context: CommandContext,
    ) -> None:
        self._spawn(self._create(cmd, list(args), cwd, dict(context)))

    def terminate(self, host_pane_id: int) -> None:
        self._spawn(self._terminate(host_pane_id))

    async def _create(
        self, cmd: str, args: list[str], cwd: str | None, context: CommandContext
    ) -> None:
        handle = await self._client.open_command_pane(cmd, args, cwd, self._direction)
        if handle is None:
            logger.error(f"[TmuxHost] Failed to open pane for {cmd!r} (context={context})")
            if METRICS_ENABLED:
                metrics.inc("host.create_failed")
            return

        self._tracked.add(handle)
        logger.debug(f"[TmuxHost] Opened pane %{handle}")
        self.emit(CommandPaneOpened(host_pane_id=handle, context=context))

    async def _terminate(self, handle: int) -> None:
        if not await self._client.kill_pane(handle):
            # pane 已不存在时视为终止完成
            live = await self._client.list_pane_ids()
            if live is None or handle in live:
                logger.error(f"[TmuxHost] Failed to kill pane %{handle}")
                if METRICS_ENABLED:
                    metrics.inc("host.terminate_failed")
                return
            logger.debug(f"[TmuxHost] Pane %{handle} already gone")

        self._tracked.discard(handle)
        logger.debug(f"[TmuxHost] Killed pane %{handle}")
        self.emit(CommandPaneExited(host_pane_id=handle))

    # === 存活轮询 ===

    async def check_panes(self) -> list[int]:
        """对比已跟踪句柄与 tmux 存活 pane，投递 PaneClosed

        Returns:
            本次判定为已关闭的句柄
        """
        # 先取快照，轮询期间新建的 pane 不参与比较
        known = set(self._tracked)
        if not known:
            return []

        live = await self._client.list_pane_ids()
        if live is None:
            return []

        vanished = sorted(known - live)
        for handle in vanished:
            self._tracked.discard(handle)
            logger.info(f"[TmuxHost] Pane %{handle} closed")
            self.emit(PaneClosed(host_pane_id=handle))
        return vanished

    async def _poll_panes(self) -> None:
        """定期检查 pane 存活

        单次异常不终止轮询。
        """
        consecutive_errors = 0
        max_consecutive_errors = 5

        while True:
            try:
                await self.check_panes()
                consecutive_errors = 0
            except asyncio.CancelledError:
                raise
            except Exception as e:
                consecutive_errors += 1
                logger.error(
                    f"[TmuxHost] Pane 轮询异常 ({consecutive_errors}/{max_consecutive_errors}): {e}"
                )
                if consecutive_errors >= max_consecutive_errors:
                    logger.warning("[TmuxHost] 连续错误过多，增加轮询间隔")
                    await asyncio.sleep(self._poll_interval * 5)
                    consecutive_errors = 0

            await asyncio.sleep(self._poll_interval)
