"""PaneToggler 配置

配置分为以下几类：
- 管道配置：请求名称、关联上下文 key
- 服务配置：HTTP 监听地址
- Host 配置：tmux socket、轮询间隔
- 日志/指标配置
"""

import os

# === 管道配置 ===
PIPE_OPEN = "toggler::open"
PIPE_CLOSE = "toggler::close"
PIPE_TOGGLE = "toggler::toggle"
PANE_ID_CONTEXT = "__toggler_pane_id"  # create 命令关联上下文中保存逻辑 pane_id 的 key

# === 服务配置 ===
HOST = os.environ.get("PANETOGGLER_HOST", "127.0.0.1")
PORT = int(os.environ.get("PANETOGGLER_PORT", "8766"))
SERVER_URL = os.environ.get("PANETOGGLER_URL", f"http://{HOST}:{PORT}")
CLIENT_TIMEOUT = None  # CLI 等待响应不设超时（pane 可能一直处于过渡态）

# === 事件队列配置 ===
EVENT_QUEUE_MAX_SIZE = 0  # 0 = 不限长度

# === Host (tmux) 配置 ===
TMUX_SOCKET = os.environ.get("PANETOGGLER_TMUX_SOCKET") or None
POLL_INTERVAL = 1.0  # pane 存活轮询间隔（秒）
SPLIT_DIRECTION = "-h"  # split-window 方向（-h 水平 / -v 垂直）

# === 日志配置 ===
LOG_LEVEL = os.environ.get("PANETOGGLER_LOG_LEVEL", "INFO")  # 日志级别
LOG_MAX_CMD_LEN = 120  # 命令日志截断长度

# === 指标配置 ===
METRICS_ENABLED = True  # 是否启用指标收集
