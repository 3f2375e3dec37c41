"""TransitionCoordinator - pane 生命周期状态机

职责：
- 解码管道请求，按 (请求类型 × 当前状态) 决定下一状态
- 向 host 下发 create/terminate，暂停请求通道
- 将 host 完成通知对回原请求，发送延迟响应

流转表：
| 请求 | 不存在 | Opening | Opened | Closing |
|------|--------|---------|--------|---------|
| open | 开始打开 | warn: already opening | warn: already opened | err: closing |
| close | warn: not found | err: opening | 开始关闭 | warn: already closing |
| toggle | 开始打开(toggle) | warn: transitioning | 开始关闭(toggle) | warn: transitioning |

完成通知：
- CommandPaneOpened: 按上下文中的逻辑 pane_id 查找，Opening → Opened
- CommandPaneExited / PaneClosed: 按句柄反查，Closing → 移除
- 无法对应的通知静默忽略（host 可能上报无关 pane）
"""

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from ..config import (
    LOG_MAX_CMD_LEN,
    METRICS_ENABLED,
    PANE_ID_CONTEXT,
    PIPE_CLOSE,
    PIPE_OPEN,
    PIPE_TOGGLE,
)
from ..telemetry import format_pane_log, get_logger, metrics
from .base import HostFacility, PipeTransport, respond_json
from .registry import PaneRegistry
from .types import (
    ERR_CLOSING,
    ERR_OPENING,
    WARN_ALREADY_CLOSING,
    WARN_ALREADY_OPENED,
    WARN_ALREADY_OPENING,
    WARN_NOT_FOUND,
    WARN_TRANSITIONING,
    CloseRequest,
    Closing,
    CommandConfig,
    CommandPaneExited,
    CommandPaneOpened,
    ErrorResponse,
    HostEvent,
    OkResponse,
    OpenRequest,
    Opened,
    Opening,
    PaneClosed,
    PipeMessage,
    ToggleAction,
    ToggleRequest,
    ToggleResponse,
    WarningResponse,
    state_name,
)

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


class TransitionCoordinator:
    """Pane 生命周期协调器

    所有入口都是同步方法，由 EventDispatcher 串行调用，
    一次处理完一个事件，不需要加锁。

    使用示例:
        coordinator = TransitionCoordinator(PaneRegistry(), host, transport)
        coordinator.handle_pipe(PipeMessage("toggler::open", "p1", '{"pane_id": "a", "cmd": "bash"}'))
        coordinator.handle_event(CommandPaneOpened(7, {"__toggler_pane_id": "a"}))
    """

    def __init__(self, registry: PaneRegistry, host: HostFacility, transport: PipeTransport):
        self.registry = registry
        self._host = host
        self._transport = transport

    # === 管道入口 ===

    def handle_pipe(self, message: PipeMessage) -> None:
        """处理管道请求

        Args:
            message: 管道消息
        """
        pipe_id = message.pipe_id
        payload = message.payload or ""

        if METRICS_ENABLED:
            metrics.inc("toggler.requests", {"name": message.name})

        if message.name == PIPE_OPEN:
            request = self._decode_or_respond(pipe_id, payload, OpenRequest)
            if request is not None:
                self.handle_open(pipe_id, request)
        elif message.name == PIPE_CLOSE:
            request = self._decode_or_respond(pipe_id, payload, CloseRequest)
            if request is not None:
                self.handle_close(pipe_id, request)
        elif message.name == PIPE_TOGGLE:
            request = self._decode_or_respond(pipe_id, payload, ToggleRequest)
            if request is not None:
                self.handle_toggle(pipe_id, request)
        else:
            logger.warning(f"[Coordinator] Unknown command: {message.name}")
            respond_json(
                self._transport,
                pipe_id,
                ErrorResponse(error=f"unknown command: {message.name}"),
            )

    def _decode_or_respond(
        self, pipe_id: str, payload: str, model: type[T]
    ) -> T | None:
        """解码 payload，失败时直接响应 invalid json"""
        try:
            return model.model_validate_json(payload)
        except ValidationError as e:
            logger.info(f"[Coordinator] Invalid {model.__name__} payload: {e.error_count()} error(s)")
            respond_json(self._transport, pipe_id, ErrorResponse(error=f"invalid json: {e}"))
            return None

    # === 请求处理 ===

    def handle_open(self, pipe_id: str, request: OpenRequest) -> None:
        state = self.registry.get(request.pane_id)

        if state is None:
            self._start_opening(pipe_id, request.pane_id, request, is_toggle=False)
        elif isinstance(state, Opening):
            self._reply_conflict(pipe_id, request.pane_id, WarningResponse(warning=WARN_ALREADY_OPENING))
        elif isinstance(state, Opened):
            self._reply_conflict(pipe_id, request.pane_id, WarningResponse(warning=WARN_ALREADY_OPENED))
        elif isinstance(state, Closing):
            self._reply_conflict(pipe_id, request.pane_id, ErrorResponse(error=ERR_CLOSING))
        else:
            raise TypeError(f"unexpected pane state: {state!r}")

    def handle_close(self, pipe_id: str, request: CloseRequest) -> None:
        state = self.registry.get(request.pane_id)

        if state is None:
            self._reply_conflict(pipe_id, request.pane_id, WarningResponse(warning=WARN_NOT_FOUND))
        elif isinstance(state, Opening):
            self._reply_conflict(pipe_id, request.pane_id, ErrorResponse(error=ERR_OPENING))
        elif isinstance(state, Opened):
            self._start_closing(pipe_id, request.pane_id, state.host_pane_id, is_toggle=False)
        elif isinstance(state, Closing):
            self._reply_conflict(pipe_id, request.pane_id, WarningResponse(warning=WARN_ALREADY_CLOSING))
        else:
            raise TypeError(f"unexpected pane state: {state!r}")

    def handle_toggle(self, pipe_id: str, request: ToggleRequest) -> None:
        state = self.registry.get(request.pane_id)

        if state is None:
            self._start_opening(pipe_id, request.pane_id, request, is_toggle=True)
        elif isinstance(state, Opened):
            self._start_closing(pipe_id, request.pane_id, state.host_pane_id, is_toggle=True)
        elif isinstance(state, (Opening, Closing)):
            self._reply_conflict(pipe_id, request.pane_id, WarningResponse(warning=WARN_TRANSITIONING))
        else:
            raise TypeError(f"unexpected pane state: {state!r}")

    def _reply_conflict(
        self, pipe_id: str, pane_id: str, response: WarningResponse | ErrorResponse
    ) -> None:
        """同步响应状态冲突"""
        text = response.warning if isinstance(response, WarningResponse) else response.error
        logger.info(format_pane_log("Coordinator", pane_id, f"Conflict: {text}"))
        if METRICS_ENABLED:
            metrics.inc("toggler.conflicts")
        respond_json(self._transport, pipe_id, response)

    def _start_opening(
        self, pipe_id: str, pane_id: str, command: CommandConfig, is_toggle: bool
    ) -> None:
        """absent → Opening，下发 create"""
        self._transport.suspend(pipe_id)
        self.registry.insert(pane_id, Opening(pipe_id=pipe_id, is_toggle=is_toggle))

        command_line = " ".join([command.cmd, *command.args])[:LOG_MAX_CMD_LEN]
        logger.info(
            format_pane_log(
                "Coordinator", pane_id, f"absent → opening | cmd={command_line} | toggle={is_toggle}"
            )
        )

        context = {PANE_ID_CONTEXT: pane_id}
        try:
            self._host.create(command.cmd, list(command.args), command.cwd, context)
        except Exception as e:
            self.registry.remove(pane_id)
            self._fail_host_command(pipe_id, pane_id, "create", e)

    def _start_closing(
        self, pipe_id: str, pane_id: str, host_pane_id: int, is_toggle: bool
    ) -> None:
        """Opened → Closing，下发 terminate"""
        self._transport.suspend(pipe_id)
        self.registry.insert(
            pane_id,
            Closing(host_pane_id=host_pane_id, pipe_id=pipe_id, is_toggle=is_toggle),
        )
        logger.info(
            format_pane_log(
                "Coordinator", pane_id, f"opened → closing | handle={host_pane_id} | toggle={is_toggle}"
            )
        )
        try:
            self._host.terminate(host_pane_id)
        except Exception as e:
            self.registry.insert(pane_id, Opened(host_pane_id=host_pane_id))
            self._fail_host_command(pipe_id, pane_id, "terminate", e)

    def _fail_host_command(self, pipe_id: str, pane_id: str, command: str, error: Exception) -> None:
        """host 命令下发失败：状态已回滚，直接响应错误"""
        logger.error(format_pane_log("Coordinator", pane_id, f"Host {command} failed: {error}"))
        if METRICS_ENABLED:
            metrics.inc("toggler.host_errors", {"command": command})
        respond_json(self._transport, pipe_id, ErrorResponse(error=f"host {command} failed: {error}"))

    def reply_error(self, pipe_id: str, text: str) -> None:
        """以错误结束请求（处理请求时出现未预期异常）"""
        respond_json(self._transport, pipe_id, ErrorResponse(error=text))

    # === host 完成通知 ===

    def handle_event(self, event: HostEvent) -> None:
        """处理 host 事件"""
        if isinstance(event, CommandPaneOpened):
            self.handle_pane_opened(event.host_pane_id, event.context)
        elif isinstance(event, (CommandPaneExited, PaneClosed)):
            self.handle_pane_exited(event.host_pane_id)
        else:
            raise TypeError(f"unexpected host event: {event!r}")

    def handle_pane_opened(self, host_pane_id: int, context: dict[str, str] | None) -> None:
        """Opening → Opened，发送延迟响应

        Args:
            host_pane_id: host 分配的句柄
            context: create 时下发的关联上下文
        """
        pane_id = (context or {}).get(PANE_ID_CONTEXT)
        if pane_id is None:
            self._ignore("opened", host_pane_id, "no toggler context")
            return

        state = self.registry.get(pane_id)
        if not isinstance(state, Opening):
            self._ignore("opened", host_pane_id, f"{pane_id} is {state_name(state)}")
            return

        self.registry.insert(pane_id, Opened(host_pane_id=host_pane_id))
        logger.info(format_pane_log("Coordinator", pane_id, f"opening → opened | handle={host_pane_id}"))

        if state.is_toggle:
            respond_json(self._transport, state.pipe_id, ToggleResponse(action=ToggleAction.OPENED))
        else:
            respond_json(self._transport, state.pipe_id, OkResponse())

    def handle_pane_exited(self, host_pane_id: int) -> None:
        """Closing → 移除，发送延迟响应

        终止通知只带句柄，需要反查逻辑 pane_id。
        Opened 状态下的 pane 被外部关闭时不做处理，保留原状态。
        """
        pane_id = self.registry.find_by_handle(host_pane_id)
        if pane_id is None:
            self._ignore("exited", host_pane_id, "unknown handle")
            return

        state = self.registry.get(pane_id)
        if not isinstance(state, Closing):
            self._ignore("exited", host_pane_id, f"{pane_id} is {state_name(state)}")
            return

        self.registry.remove(pane_id)
        logger.info(format_pane_log("Coordinator", pane_id, f"closing → absent | handle={host_pane_id}"))

        if state.is_toggle:
            respond_json(self._transport, state.pipe_id, ToggleResponse(action=ToggleAction.CLOSED))
        else:
            respond_json(self._transport, state.pipe_id, OkResponse())

    def _ignore(self, kind: str, host_pane_id: int, reason: str) -> None:
        logger.debug(f"[Coordinator] Ignored {kind} event for handle {host_pane_id}: {reason}")
        if METRICS_ENABLED:
            metrics.inc("toggler.ignored_events", {"kind": kind})
