"""Web 模块 - HTTP 管道传输与服务器"""

from .server import WebServer
from .transport import HttpPipeTransport

__all__ = ["WebServer", "HttpPipeTransport"]
