"""Web 服务器 - 管道请求的 HTTP 入口"""

import uuid
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import Response

from ..telemetry import get_logger, metrics
from ..toggler.types import ErrorResponse, PipeMessage, state_name

if TYPE_CHECKING:
    from ..runtime import RuntimeComponents

logger = get_logger(__name__)


class WebServer:
    """HTTP 管道服务器

    提供：
    - POST /api/pipe/{name}: 请求体为原始 JSON payload，等待唯一响应后返回
    - GET /api/status: Registry 快照、挂起通道、计数器与 gauge

    app 的 lifespan 负责启动/停止 runtime（dispatcher + host）。
    """

    def __init__(self, components: "RuntimeComponents"):
        self.components = components
        self.app = FastAPI(title="PaneToggler", lifespan=self._lifespan)
        self._setup_routes()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self.components.start()
        try:
            yield
        finally:
            await self.components.stop()

    def _setup_routes(self):
        transport = self.components.transport
        dispatcher = self.components.dispatcher

        @self.app.post("/api/pipe/{name}")
        async def pipe(name: str, request: Request):
            """转发管道请求，等待 Coordinator 的响应"""
            try:
                payload = (await request.body()).decode("utf-8")
            except UnicodeDecodeError as e:
                logger.info(f"[WebServer] {name} rejected: payload is not UTF-8")
                body = ErrorResponse(error=f"invalid json: {e}").model_dump_json()
                return Response(content=body, media_type="application/json")

            pipe_id = uuid.uuid4().hex
            logger.debug(f"[WebServer] {name} ← {pipe_id[:8]}")

            future = transport.open_channel(pipe_id)
            dispatcher.post(PipeMessage(name=name, pipe_id=pipe_id, payload=payload))
            try:
                body = await future
            finally:
                transport.close_channel(pipe_id)

            return Response(content=body, media_type="application/json")

        @self.app.get("/api/status")
        async def status():
            """获取 Registry 状态"""
            return self.get_status_dict()

    def get_status_dict(self) -> dict:
        panes = {}
        for pane_id, state in self.components.registry.snapshot().items():
            panes[pane_id] = {"state": state_name(state), **asdict(state)}
        return {
            "host": self.components.host.name,
            "panes": panes,
            "suspended": sorted(self.components.transport.suspended_channels),
            "pending_events": self.components.dispatcher.pending,
            "metrics": metrics.get_all_counters(),
            "gauges": metrics.get_all_gauges(),
        }
