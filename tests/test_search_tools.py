"""Tests for the ``search_sumologic`` MCP tool."""

import pytest

from sumologic_search_mcp.exceptions import SearchError, TimeoutError, ValidationError
from sumologic_search_mcp.masking import MASK
from sumologic_search_mcp.models import FailureKind, SearchFailure
from sumologic_search_mcp.tools import SearchTools

from .conftest import FakeSearchBackend


@pytest.fixture
def tools(backend, config) -> SearchTools:
    return SearchTools(backend, config)


def test_tool_definition_schema(tools) -> None:
    (definition,) = tools.get_tool_definitions()
    schema = definition["inputSchema"]

    assert definition["name"] == "search_sumologic"
    assert schema["required"] == ["query"]
    assert schema["properties"]["query"]["type"] == "string"
    assert schema["properties"]["from"] == {"type": "string", "description": "ISO 8601 format"}
    assert schema["properties"]["to"] == {"type": "string", "description": "ISO 8601 format"}


async def test_search_returns_sanitized_messages(config) -> None:
    backend = FakeSearchBackend(messages=[{"_raw": "token=abc123 failed"}])

    result = await SearchTools(backend, config).search_sumologic(query="error")

    assert result == {"messages": [{"_raw": f"token={MASK} failed"}]}


async def test_time_arguments_are_forwarded(tools, backend) -> None:
    await tools.search_sumologic(query=" error ", **{"from": "2024-01-01T00:00:00", "to": "2024-01-02"})

    params = backend.called("create")[0][1]
    assert params["query"] == "error"
    assert params["from"] == "2024-01-01T00:00:00"
    assert params["to"] == "2024-01-02"
    assert params["timeZone"] == tools.config.time_zone


async def test_invalid_time_raises_validation_error(tools, backend) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await tools.search_sumologic(query="error", **{"from": "yesterday"})

    assert "from_time" in exc_info.value.validation_errors
    assert backend.calls == []


async def test_blank_query_raises_validation_error(tools) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await tools.search_sumologic(query="   ")

    assert "query" in exc_info.value.validation_errors


async def test_unknown_argument_raises_validation_error(tools) -> None:
    with pytest.raises(ValidationError, match="Unexpected arguments: limit"):
        await tools.search_sumologic(query="error", limit="5")


async def test_fail_soft_returns_empty_result(tools, backend) -> None:
    backend.create_error = RuntimeError("down")

    assert await tools.search_sumologic(query="error") == {"messages": []}


async def test_fail_hard_raises_search_error(backend, config) -> None:
    backend.create_error = RuntimeError("down")
    tools = SearchTools(backend, config.model_copy(update={"fail_soft": False}))

    with pytest.raises(SearchError, match="Search submission failed: down"):
        await tools.search_sumologic(query="error")


async def test_fail_hard_success_returns_result(backend, config) -> None:
    tools = SearchTools(backend, config.model_copy(update={"fail_soft": False}))

    assert await tools.search_sumologic(query="error") == {"messages": []}


def test_timeout_failure_maps_to_timeout_error(tools) -> None:
    failure = SearchFailure(kind=FailureKind.TIMEOUT, message="too slow", job_id="job-1")

    error = tools._failure_to_error(failure, "error")

    assert isinstance(error, TimeoutError)
    assert error.timeout_seconds == tools.config.max_wait
    assert error.context == {"job_id": "job-1"}


def test_fetch_failure_maps_to_search_error(tools) -> None:
    failure = SearchFailure(kind=FailureKind.FETCH, message="boom", job_id="job-1")

    error = tools._failure_to_error(failure, "error")

    assert isinstance(error, SearchError)
    assert error.job_id == "job-1"
    assert error.query == "error"
