"""EventDispatcher 测试"""

import asyncio
import json
from unittest.mock import MagicMock

from panetoggler.config import PANE_ID_CONTEXT
from panetoggler.runtime import EventDispatcher
from panetoggler.telemetry import metrics
from panetoggler.toggler import CommandPaneOpened, Opened, PaneClosed, PipeMessage


class TestEventDispatcher:
    async def test_events_processed_in_order(self, coordinator, registry, host, transport):
        dispatcher = EventDispatcher(coordinator)
        host.set_event_sink(dispatcher.post)
        task = asyncio.create_task(dispatcher.run())
        try:
            dispatcher.post(
                PipeMessage("toggler::open", "p1", json.dumps({"pane_id": "a", "cmd": "bash"}))
            )
            dispatcher.post(CommandPaneOpened(host_pane_id=7, context={PANE_ID_CONTEXT: "a"}))
            await dispatcher.drain()
        finally:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        assert registry.get("a") == Opened(host_pane_id=7)
        assert transport.response("p1") == {"ok": True}
        assert dispatcher.pending == 0

    async def test_host_sink_feeds_dispatcher(self, coordinator, host, transport):
        dispatcher = EventDispatcher(coordinator)
        host.set_event_sink(dispatcher.post)

        host.emit(PaneClosed(host_pane_id=3))

        assert dispatcher.pending == 1

    def test_handler_error_is_contained(self):
        coordinator = MagicMock()
        coordinator.handle_event.side_effect = RuntimeError("boom")
        dispatcher = EventDispatcher(coordinator)

        dispatcher.dispatch(PaneClosed(host_pane_id=1))

        assert metrics.get_counter("dispatcher.errors", {"event": "PaneClosed"}) == 1

    def test_pipe_message_routed_to_handle_pipe(self):
        coordinator = MagicMock()
        dispatcher = EventDispatcher(coordinator)
        message = PipeMessage("toggler::close", "p1", "{}")

        dispatcher.dispatch(message)

        coordinator.handle_pipe.assert_called_once_with(message)
        coordinator.handle_event.assert_not_called()

    def test_failed_pipe_message_gets_error_response(self, coordinator, registry, transport):
        """处理管道请求时抛出异常，通道仍收到唯一的 error 响应"""
        registry.insert("a", object())
        dispatcher = EventDispatcher(coordinator)

        dispatcher.dispatch(PipeMessage("toggler::close", "p1", json.dumps({"pane_id": "a"})))

        response = transport.response("p1")
        assert response["ok"] is False
        assert response["error"].startswith("internal error: unexpected pane state")
        assert "p1" not in transport.suspended
        assert metrics.get_counter("dispatcher.errors", {"event": "PipeMessage"}) == 1

    def test_failed_host_event_sends_no_response(self):
        coordinator = MagicMock()
        coordinator.handle_event.side_effect = RuntimeError("boom")
        dispatcher = EventDispatcher(coordinator)

        dispatcher.dispatch(PaneClosed(host_pane_id=1))

        coordinator.reply_error.assert_not_called()
