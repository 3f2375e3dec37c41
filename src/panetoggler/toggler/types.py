"""Toggler 类型定义

包含：
- Pane 生命周期状态（Opening / Opened / Closing）
- 管道请求体（pydantic，用于解码 JSON payload）
- 管道响应体（pydantic，常量 ok 字段）
- 输入事件（管道消息 + host 完成通知）
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel

# === Pane 生命周期状态 ===


@dataclass
class Opening:
    """已请求打开，等待 host 确认 pane 创建完成"""

    pipe_id: str
    is_toggle: bool


@dataclass
class Opened:
    """pane 已存在

    Attributes:
        host_pane_id: host 创建完成后分配的 pane 句柄
    """

    host_pane_id: int


@dataclass
class Closing:
    """已请求关闭，等待 host 确认 pane 终止"""

    host_pane_id: int
    pipe_id: str
    is_toggle: bool


PaneState = Opening | Opened | Closing

# 关联上下文：随 create 命令下发，在 CommandPaneOpened 中原样带回
CommandContext = dict[str, str]


def state_name(state: PaneState | None) -> str:
    """状态名（日志/状态接口用）"""
    if state is None:
        return "absent"
    return type(state).__name__.lower()


# === 请求体 ===


class CommandConfig(BaseModel):
    """要在新 pane 中运行的命令"""

    cmd: str
    args: list[str] = []
    cwd: str | None = None


class OpenRequest(CommandConfig):
    """toggler::open 请求体: {pane_id, cmd, args?, cwd?}"""

    pane_id: str


class CloseRequest(BaseModel):
    """toggler::close 请求体: {pane_id}"""

    pane_id: str


class ToggleRequest(CommandConfig):
    """toggler::toggle 请求体: {pane_id, cmd, args?, cwd?}"""

    pane_id: str


# === 响应体 ===


class ToggleAction(str, Enum):
    """toggle 实际执行的动作"""

    OPENED = "opened"
    CLOSED = "closed"


class OkResponse(BaseModel):
    ok: Literal[True] = True


class ToggleResponse(BaseModel):
    ok: Literal[True] = True
    action: ToggleAction


class WarningResponse(BaseModel):
    """非致命冲突（良性竞争，调用方可重试）"""

    ok: Literal[True] = True
    warning: str


class ErrorResponse(BaseModel):
    """致命冲突或非法输入"""

    ok: Literal[False] = False
    error: str


Response = OkResponse | ToggleResponse | WarningResponse | ErrorResponse

# 冲突提示文本
WARN_ALREADY_OPENED = "pane is already opened"
WARN_ALREADY_OPENING = "pane is already opening"
WARN_ALREADY_CLOSING = "pane is already closing"
WARN_NOT_FOUND = "pane not found"
WARN_TRANSITIONING = "pane is transitioning"
ERR_CLOSING = "pane is closing"
ERR_OPENING = "pane is opening"


# === 输入事件 ===


@dataclass
class PipeMessage:
    """来自传输层的请求

    Attributes:
        name: 请求名称（如 "toggler::open"）
        pipe_id: 响应通道（关联令牌）
        payload: 原始 JSON 文本，缺省视为空串
    """

    name: str
    pipe_id: str
    payload: str = ""


@dataclass
class CommandPaneOpened:
    """host: 命令 pane 创建完成"""

    host_pane_id: int
    context: CommandContext = field(default_factory=dict)


@dataclass
class CommandPaneExited:
    """host: 命令 pane 终止（terminate 完成）"""

    host_pane_id: int
    exit_code: int | None = None


@dataclass
class PaneClosed:
    """host: 通用 pane 关闭信号（只带句柄）"""

    host_pane_id: int


HostEvent = CommandPaneOpened | CommandPaneExited | PaneClosed
Event = PipeMessage | HostEvent
