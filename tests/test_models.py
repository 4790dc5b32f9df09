"""Tests for request and response models."""

import pytest
from pydantic import ValidationError

from sumologic_search_mcp.models import (
    SearchJobStatus,
    SearchRequest,
    SearchResult,
)


def test_job_status_from_api_payload() -> None:
    status = SearchJobStatus.from_api(
        "job-1",
        {"state": "DONE GATHERING RESULTS", "messageCount": 12, "recordCount": 3, "pendingErrors": None},
    )

    assert status.is_done
    assert not status.is_abandoned
    assert status.message_count == 12
    assert status.record_count == 3
    assert status.pending_errors == []


@pytest.mark.parametrize("state", ["CANCELLED", "FORCE PAUSED"])
def test_job_status_abandoned_states(state: str) -> None:
    status = SearchJobStatus.from_api("job-1", {"state": state})
    assert status.is_abandoned
    assert not status.is_done


def test_job_status_missing_counts_default_to_zero() -> None:
    status = SearchJobStatus.from_api("job-1", {"state": "GATHERING RESULTS"})
    assert status.message_count == 0
    assert status.record_count == 0


def test_search_result_omits_records_when_not_fetched() -> None:
    assert SearchResult(messages=[{"a": 1}]).to_dict() == {"messages": [{"a": 1}]}
    assert SearchResult(messages=[], records=[]).to_dict() == {"messages": [], "records": []}


def test_search_request_strips_query_and_blank_times() -> None:
    request = SearchRequest(query="  error  ", from_time="  ", to_time="2024-01-01T00:00:00")

    assert request.query == "error"
    assert request.from_time is None
    assert request.time_range() == {"to": "2024-01-01T00:00:00"}


def test_search_request_rejects_blank_query() -> None:
    with pytest.raises(ValidationError):
        SearchRequest(query="   ")


def test_search_request_rejects_non_iso_time() -> None:
    with pytest.raises(ValidationError, match="Invalid time format"):
        SearchRequest(query="error", from_time="yesterday")
