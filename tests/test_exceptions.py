"""Tests for exception serialization and retry classification."""

from sumologic_search_mcp.exceptions import (
    APIError,
    RateLimitError,
    SearchError,
    SumoLogicError,
    ValidationError,
)


def test_base_error_str_includes_context() -> None:
    error = SumoLogicError("failed", context={"job_id": "J1"})

    assert str(error) == "failed (Context: job_id=J1)"
    assert error.to_dict() == {"error_type": "SumoLogicError", "message": "failed", "context": {"job_id": "J1"}}


def test_to_dict_includes_only_set_details() -> None:
    assert APIError("boom", status_code=502).to_dict() == {
        "error_type": "APIError",
        "message": "boom",
        "context": {},
        "status_code": 502,
    }


def test_rate_limit_error_inherits_api_details() -> None:
    error = RateLimitError("slow down", retry_after=10, limit_type="api_requests")

    assert error.status_code == 429
    assert error.is_retryable
    assert error.to_dict()["retry_after"] == 10
    assert error.to_dict()["status_code"] == 429
    assert str(error) == "slow down (HTTP 429) (Retry after 10 seconds)"


def test_search_error_to_dict_leaves_out_query() -> None:
    data = SearchError("cancelled", job_id="J1", query="password=x", search_state="CANCELLED").to_dict()

    assert data["job_id"] == "J1"
    assert data["search_state"] == "CANCELLED"
    assert "query" not in data


def test_validation_error_str_names_field() -> None:
    error = ValidationError("Unexpected arguments: limit", field_name="limit")
    assert str(error) == "Unexpected arguments: limit (Field: limit)"


def test_api_error_classification() -> None:
    assert APIError("bad", status_code=404).is_client_error
    assert not APIError("bad", status_code=404).is_retryable
    assert APIError("timeout", status_code=408).is_retryable
    assert APIError("down", status_code=503).is_server_error
