"""FastAPI 应用初始化"""

import asyncio

import uvicorn

from .. import config
from ..runtime import bootstrap
from ..telemetry import get_logger, setup_logging
from .server import WebServer

logger = get_logger(__name__)


def create_app() -> WebServer:
    """创建 Web 应用（默认 tmux host）"""
    return WebServer(bootstrap())


async def start_server(host: str = config.HOST, port: int = config.PORT):
    """启动服务器"""
    server = create_app()

    uvicorn_config = uvicorn.Config(
        server.app, host=host, port=port, log_level=config.LOG_LEVEL.lower()
    )
    uvicorn_server = uvicorn.Server(uvicorn_config)

    logger.info(f"PaneToggler server starting at http://{host}:{port}")
    await uvicorn_server.serve()


def main(host: str = config.HOST, port: int = config.PORT):
    """入口函数"""
    setup_logging(config.LOG_LEVEL)
    try:
        asyncio.run(start_server(host, port))
    except KeyboardInterrupt:
        print("\nServer stopped")
