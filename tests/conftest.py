"""Shared fixtures for the Sumo Logic search MCP tests.

``FakeSearchBackend`` stands in for the Search Job API client and
``FakeClock`` drives the polling loop without real sleeps.
"""

import os
from typing import Any, Dict, List, Optional

import pytest

from sumologic_search_mcp.config import SumoSearchConfig
from sumologic_search_mcp.masking import set_masking_policy

DONE = "DONE GATHERING RESULTS"
GATHERING = "GATHERING RESULTS"


def job_status(state: str = DONE, message_count: int = 0, record_count: int = 0) -> Dict[str, Any]:
    return {
        "state": state,
        "messageCount": message_count,
        "recordCount": record_count,
        "pendingWarnings": [],
        "pendingErrors": [],
    }


class FakeSearchBackend:
    """In-memory search backend recording every call it receives.

    ``statuses`` are returned in order; the last one repeats forever.
    Set one of the ``*_error`` attributes to make that call raise.
    """

    def __init__(
        self,
        statuses: Optional[List[Dict[str, Any]]] = None,
        messages: Optional[List[Any]] = None,
        records: Optional[List[Any]] = None,
        job: Optional[Dict[str, Any]] = None
    ):
        self.job = {"id": "job-1"} if job is None else job
        self.statuses = list(statuses or [job_status()])
        self.messages = messages or []
        self.records = records or []
        self.calls: List[tuple] = []

        self.create_error: Optional[Exception] = None
        self.status_error: Optional[Exception] = None
        self.messages_error: Optional[Exception] = None
        self.records_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    async def create_search_job(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("create", params))
        if self.create_error:
            raise self.create_error
        return self.job

    async def get_search_job_status(self, job_id: str) -> Dict[str, Any]:
        self.calls.append(("status", job_id))
        if self.status_error:
            raise self.status_error
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    async def get_messages(self, job_id: str) -> Dict[str, Any]:
        self.calls.append(("messages", job_id))
        if self.messages_error:
            raise self.messages_error
        return {"messages": self.messages}

    async def get_records(self, job_id: str) -> Dict[str, Any]:
        self.calls.append(("records", job_id))
        if self.records_error:
            raise self.records_error
        return {"records": self.records}

    async def delete_search_job(self, job_id: str) -> None:
        self.calls.append(("delete", job_id))
        if self.delete_error:
            raise self.delete_error


class FakeClock:
    """Monotonic clock advanced only by its own ``sleep``."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def backend() -> FakeSearchBackend:
    return FakeSearchBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> SumoSearchConfig:
    return SumoSearchConfig(
        access_id="suTESTACCESSID",
        access_key="test-access-key",
        endpoint="https://api.sumologic.com"
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every Sumo Logic variable from the environment."""
    for name in list(os.environ):
        if name.startswith(("SUMOLOGIC_", "SUMO_")):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def default_masking_policy():
    """Restore the default masking policy after each test."""
    yield
    set_masking_policy(None)
