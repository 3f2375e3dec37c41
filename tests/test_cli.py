"""CLI 测试"""

import json
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from panetoggler.cli import app

runner = CliRunner()


class TestPipeCommands:
    def test_toggle_sends_payload(self):
        with patch("panetoggler.cli.send_pipe", return_value='{"ok":true,"action":"opened"}') as mock_send:
            result = runner.invoke(app, ["toggle", "logs", "--", "tail", "-f", "app.log"])

        assert result.exit_code == 0
        assert '{"ok":true,"action":"opened"}' in result.output
        _, name, payload = mock_send.call_args[0]
        assert name == "toggler::toggle"
        assert json.loads(payload) == {"pane_id": "logs", "cmd": "tail", "args": ["-f", "app.log"]}

    def test_open_with_cwd(self):
        with patch("panetoggler.cli.send_pipe", return_value='{"ok":true}') as mock_send:
            result = runner.invoke(app, ["open", "--cwd", "/tmp", "shell", "bash"])

        assert result.exit_code == 0
        _, name, payload = mock_send.call_args[0]
        assert name == "toggler::open"
        assert json.loads(payload) == {"pane_id": "shell", "cmd": "bash", "args": [], "cwd": "/tmp"}

    def test_close_error_exits_nonzero(self):
        with patch("panetoggler.cli.send_pipe", return_value='{"ok":false,"error":"pane is opening"}'):
            result = runner.invoke(app, ["close", "logs"])

        assert result.exit_code == 1
        assert "pane is opening" in result.output

    def test_raw_pipe_uses_url_option(self):
        with patch("panetoggler.cli.send_pipe", return_value='{"ok":true}') as mock_send:
            result = runner.invoke(
                app, ["--url", "http://example:9000/", "pipe", "toggler::close", '{"pane_id":"a"}']
            )

        assert result.exit_code == 0
        mock_send.assert_called_once_with("http://example:9000", "toggler::close", '{"pane_id":"a"}')


class TestStatusCommand:
    def test_status_table(self):
        response = MagicMock()
        response.json.return_value = {
            "host": "tmux",
            "panes": {"logs": {"state": "opened", "host_pane_id": 7}},
        }
        with patch("panetoggler.cli.httpx.get", return_value=response):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "logs" in result.output
        assert "opened" in result.output
        assert "%7" in result.output

    def test_status_empty(self):
        response = MagicMock()
        response.json.return_value = {"host": "tmux", "panes": {}}
        with patch("panetoggler.cli.httpx.get", return_value=response):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "No tracked panes" in result.output
