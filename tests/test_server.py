"""Tests for MCP server wiring and tool call routing."""

import json

import pytest

from sumologic_search_mcp.exceptions import ConfigurationError
from sumologic_search_mcp.masking import MASK, get_masking_policy, mask_sensitive_info
from sumologic_search_mcp.server import SumoSearchMCPServer

from .conftest import FakeSearchBackend


@pytest.fixture
async def server(config):
    server = SumoSearchMCPServer(config.model_copy(update={"mask_patterns": [r"ORD-\d+"]}))
    await server.start()
    yield server
    await server.shutdown()


def use_backend(server: SumoSearchMCPServer, backend: FakeSearchBackend) -> None:
    server.search_tools.api_client = backend


async def test_start_registers_search_tool(server) -> None:
    assert list(server.tool_handlers) == ["search_sumologic"]
    assert server.tool_definitions[0]["name"] == "search_sumologic"


async def test_start_applies_configured_mask_patterns(server) -> None:
    assert get_masking_policy().version == "default-1+1"
    assert mask_sensitive_info("order ORD-7 shipped") == f"order {MASK} shipped"


async def test_tool_call_returns_json_result(server) -> None:
    use_backend(server, FakeSearchBackend(messages=[{"_raw": "password=pw", "host": "a"}]))

    result = await server.handle_tool_call("search_sumologic", {"query": "error"})

    assert result["isError"] is False
    assert json.loads(result["content"][0]["text"]) == {
        "messages": [{"_raw": f"password={MASK}", "host": "a"}]
    }


async def test_unknown_tool_is_an_error_result(server) -> None:
    result = await server.handle_tool_call("list_dashboards", {})

    assert result["isError"] is True
    assert "Unknown tool: list_dashboards" in result["content"][0]["text"]
    assert "search_sumologic" in result["content"][0]["text"]


async def test_invalid_arguments_are_an_error_result(server) -> None:
    use_backend(server, FakeSearchBackend())

    result = await server.handle_tool_call("search_sumologic", {"query": "error", "from": "last week"})

    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Validation Error in search_sumologic")


async def test_missing_arguments_are_an_error_result(server) -> None:
    result = await server.handle_tool_call("search_sumologic", None)

    assert result["isError"] is True
    assert "Unexpected Error in search_sumologic" in result["content"][0]["text"]


async def test_start_fails_without_credentials(config) -> None:
    server = SumoSearchMCPServer(config.model_copy(update={"access_key": ""}))

    with pytest.raises(ConfigurationError):
        await server.start()
