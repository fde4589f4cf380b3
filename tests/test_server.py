"""End-to-end tests for the stdio server loop."""

import io
import json
import logging

import pytest

from toolhost.mcp.server import MCPServer
from toolhost.mcp.transport import StdioTransport
from toolhost.tools.base import Param, ToolError, ToolUnit
from toolhost.tools.source import StaticToolSource
from toolhost.validation.config import ToolHostConfig


def _echo(ctx, Msg):
    return Msg


def _fail(ctx):
    raise ToolError("DNS server ns1 timed out")


SOURCE = StaticToolSource([
    ToolUnit("Echo", _echo, params=(Param("Msg", str, required=True),)),
    ToolUnit("Fail", _fail),
])


def run_session(*lines, config=None):
    """Feed ``lines`` to a server and return (exit code, decoded output messages)."""
    data = "".join(line + "\n" for line in lines).encode("utf-8")
    writer = io.BytesIO()
    transport = StdioTransport(reader=io.BytesIO(data), writer=writer)
    server = MCPServer.from_config(config or ToolHostConfig(), transport=transport, source=SOURCE)

    code = server.serve()

    raw = writer.getvalue().decode("utf-8")
    assert raw == "" or raw.endswith("\n")
    return code, [json.loads(line) for line in raw.splitlines()]


class TestScenarios:
    """Tests for the basic client exchanges."""

    def test_initialize(self):
        """Test the initialize handshake."""
        code, out = run_session('{"jsonrpc":"2.0","id":1,"method":"initialize"}')

        assert code == 0
        assert len(out) == 1
        assert out[0]["id"] == 1
        assert out[0]["result"]["protocolVersion"] == "2024-11-05"
        assert out[0]["result"]["serverInfo"]["name"] == "toolhost"

    def test_unknown_tool(self):
        """Test calling a tool that is not registered."""
        _, out = run_session(
            '{"jsonrpc":"2.0","id":2,"method":"tools/call","params":{"name":"NoSuchTool","arguments":{}}}'
        )

        assert out[0]["id"] == 2
        assert out[0]["error"]["code"] == -32601

    def test_initialized_notification(self):
        """Test that the initialized notification gets no response."""
        _, out = run_session('{"jsonrpc":"2.0","method":"notifications/initialized"}')
        assert out == []

    def test_echo(self):
        """Test a successful tool call."""
        _, out = run_session(
            '{"jsonrpc":"2.0","id":3,"method":"tools/call","params":{"name":"Echo","arguments":{"Msg":"hi"}}}'
        )

        assert out[0]["id"] == 3
        assert "hi" in out[0]["result"]["content"][0]["text"]
        assert out[0]["result"]["isError"] is False


class TestSession:
    """Tests for behaviour across a whole session."""

    def test_one_response_per_request_in_order(self):
        """Test that requests are answered once each, in order."""
        _, out = run_session(
            '{"jsonrpc":"2.0","id":"a","method":"initialize"}',
            '{"jsonrpc":"2.0","method":"notifications/initialized"}',
            '{"jsonrpc":"2.0","id":"b","method":"tools/list"}',
            '{"jsonrpc":"2.0","method":"whatever/unknown"}',
            '{"jsonrpc":"2.0","id":"c","method":"prompts/list"}',
        )

        assert [m["id"] for m in out] == ["a", "b", "c"]
        assert [t["name"] for t in out[1]["result"]["tools"]] == ["Echo", "Fail"]

    def test_malformed_line_does_not_stop_session(self, caplog):
        """Test that malformed lines are logged and skipped."""
        with caplog.at_level(logging.ERROR):
            code, out = run_session(
                '{"jsonrpc":"2.0","id":1,',
                "[1, 2, 3]",
                '{"jsonrpc":"2.0","id":2,"method":"ping"}',
            )

        assert code == 0
        assert [m["id"] for m in out] == [2]
        assert "Dropping line 1" in caplog.text

    def test_empty_lines_ignored(self):
        """Test that blank lines produce no output."""
        _, out = run_session("", "   ", '{"jsonrpc":"2.0","id":4,"method":"ping"}')
        assert [m["id"] for m in out] == [4]

    def test_unknown_tool_then_next_request(self):
        """Test that the session continues after an unknown tool."""
        _, out = run_session(
            '{"jsonrpc":"2.0","id":1,"method":"tools/call","params":{"name":"Nope"}}',
            '{"jsonrpc":"2.0","id":2,"method":"tools/call","params":{"name":"Echo","arguments":{"Msg":"still here"}}}',
        )

        assert out[0]["error"]["code"] == -32601
        assert out[1]["result"]["content"][0]["text"] == "still here"

    def test_tool_failure_then_next_request(self):
        """Test that the session continues after a failing tool."""
        _, out = run_session(
            '{"jsonrpc":"2.0","id":1,"method":"tools/call","params":{"name":"Fail"}}',
            '{"jsonrpc":"2.0","id":2,"method":"ping"}',
        )

        assert out[0]["result"]["isError"] is True
        assert out[0]["result"]["content"][0]["text"] == "DNS server ns1 timed out"
        assert out[1]["id"] == 2

    def test_eof_without_input(self):
        """Test that empty input exits cleanly."""
        code, out = run_session()
        assert code == 0
        assert out == []

    @pytest.mark.parametrize("request_id", [0, -5, "req-1", 1.5, None])
    def test_id_echoed(self, request_id):
        """Test that the request id is echoed unchanged."""
        line = json.dumps({"jsonrpc": "2.0", "id": request_id, "method": "ping"})
        _, out = run_session(line)
        assert len(out) == 1
        assert out[0]["id"] == request_id

    def test_strict_initialize_from_config(self):
        """Test the strict initialize gate enabled through config."""
        config = ToolHostConfig(server={"strict_initialize": True})

        _, out = run_session(
            '{"jsonrpc":"2.0","id":1,"method":"tools/list"}',
            '{"jsonrpc":"2.0","id":2,"method":"initialize"}',
            '{"jsonrpc":"2.0","id":3,"method":"tools/list"}',
            config=config,
        )

        assert out[0]["error"]["code"] == -32002
        assert "result" in out[2]

    def test_lone_surrogate_in_id(self):
        """Test that an id holding an unpaired surrogate is echoed and the session goes on."""
        code, out = run_session(
            '{"jsonrpc":"2.0","id":"\\ud800","method":"ping"}',
            '{"jsonrpc":"2.0","id":2,"method":"ping"}',
        )

        assert code == 0
        assert [m["id"] for m in out] == ["\ud800", 2]

    def test_lone_surrogate_in_tool_name(self):
        """Test that an unknown tool name with an unpaired surrogate still gets -32601."""
        _, out = run_session(
            '{"jsonrpc":"2.0","id":1,"method":"tools/call","params":{"name":"\\udc80"}}',
            '{"jsonrpc":"2.0","id":2,"method":"ping"}',
        )

        assert out[0]["error"]["code"] == -32601
        assert out[1]["id"] == 2

    def test_deeply_nested_line_dropped(self, caplog):
        """Test that a line nested too deeply to decode is dropped like any malformed line."""
        with caplog.at_level(logging.ERROR):
            code, out = run_session(
                "[" * 100000 + "]" * 100000,
                '{"jsonrpc":"2.0","id":2,"method":"ping"}',
            )

        assert code == 0
        assert [m["id"] for m in out] == [2]
        assert "Dropping line 1" in caplog.text

    def test_write_failure_does_not_stop_session(self, caplog):
        """Test that a failed write is logged and the next request is still answered."""

        class FlakyWriter(io.BytesIO):
            failures = 1

            def write(self, data):
                if FlakyWriter.failures:
                    FlakyWriter.failures -= 1
                    raise OSError("pipe hiccup")
                return super().write(data)

        data = b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n{"jsonrpc":"2.0","id":2,"method":"ping"}\n'
        writer = FlakyWriter()
        transport = StdioTransport(reader=io.BytesIO(data), writer=writer)
        server = MCPServer.from_config(ToolHostConfig(), transport=transport, source=SOURCE)

        with caplog.at_level(logging.ERROR):
            code = server.serve()

        assert code == 0
        assert [json.loads(line)["id"] for line in writer.getvalue().splitlines()] == [2]
        assert "Failed to answer line 1" in caplog.text
