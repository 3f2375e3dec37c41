"""Pytest 配置与共享 fake"""

import json

import pytest

from panetoggler.runtime.bootstrap import _reset_for_testing
from panetoggler.telemetry import metrics
from panetoggler.toggler import PaneRegistry, TransitionCoordinator
from panetoggler.toggler.base import HostFacility, PipeTransport


class FakeHost(HostFacility):
    """记录 create/terminate 调用，不投递完成通知"""

    def __init__(self):
        self.created: list[tuple[str, list[str], str | None, dict[str, str]]] = []
        self.terminated: list[int] = []

    @property
    def name(self) -> str:
        return "fake"

    def create(self, cmd, args, cwd, context):
        self.created.append((cmd, list(args), cwd, dict(context)))

    def terminate(self, host_pane_id):
        self.terminated.append(host_pane_id)


class FakeTransport(PipeTransport):
    """记录每个通道收到的响应（已解码）"""

    def __init__(self):
        self.outputs: dict[str, list[dict]] = {}
        self.suspended: set[str] = set()

    def suspend(self, pipe_id):
        self.suspended.add(pipe_id)

    def resume(self, pipe_id):
        self.suspended.discard(pipe_id)

    def output(self, pipe_id, body):
        self.outputs.setdefault(pipe_id, []).append(json.loads(body))

    def response(self, pipe_id: str) -> dict:
        """通道唯一的响应"""
        responses = self.outputs.get(pipe_id, [])
        assert len(responses) == 1, f"expected exactly one response on {pipe_id}, got {responses}"
        return responses[0]


@pytest.fixture(autouse=True)
def reset_metrics():
    """每次测试前重置指标"""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture(autouse=True)
def reset_bootstrap():
    """每次测试前重置 bootstrap 单例"""
    _reset_for_testing()
    yield
    _reset_for_testing()


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def registry():
    return PaneRegistry()


@pytest.fixture
def coordinator(registry, host, transport):
    return TransitionCoordinator(registry, host, transport)
