"""Response models for Sumo Logic search data."""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class SearchJobState(str, Enum):
    """Enumeration of search job states."""
    NOT_STARTED = "NOT STARTED"
    GATHERING_RESULTS = "GATHERING RESULTS"
    DONE_GATHERING_RESULTS = "DONE GATHERING RESULTS"
    CANCELLED = "CANCELLED"
    FORCE_PAUSED = "FORCE PAUSED"


# States a job never leaves without reaching DONE GATHERING RESULTS
ABANDONED_STATES = {SearchJobState.CANCELLED.value, SearchJobState.FORCE_PAUSED.value}


class SearchJobStatus(BaseModel):
    """Model for search job status information."""

    job_id: str = Field(..., description="Search job identifier")
    state: str = Field(..., description="Current job state as reported by the API")
    message_count: int = Field(default=0, description="Current message count", ge=0)
    record_count: int = Field(default=0, description="Current record count", ge=0)
    pending_warnings: List[str] = Field(default_factory=list, description="Pending warnings")
    pending_errors: List[str] = Field(default_factory=list, description="Pending errors")

    @classmethod
    def from_api(cls, job_id: str, payload: Dict[str, Any]) -> "SearchJobStatus":
        """Build a status from a ``GET /search/jobs/{id}`` response body."""
        return cls(
            job_id=job_id,
            state=str(payload.get("state", "")),
            message_count=payload.get("messageCount") or 0,
            record_count=payload.get("recordCount") or 0,
            pending_warnings=payload.get("pendingWarnings") or [],
            pending_errors=payload.get("pendingErrors") or [],
        )

    @property
    def is_done(self) -> bool:
        return self.state == SearchJobState.DONE_GATHERING_RESULTS.value

    @property
    def is_abandoned(self) -> bool:
        return self.state in ABANDONED_STATES


class SearchResult(BaseModel):
    """Sanitized messages and, when the job produced any, sanitized records."""

    messages: List[Any] = Field(default_factory=list, description="Sanitized log messages")
    records: Optional[List[Any]] = Field(None, description="Sanitized aggregate records")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, leaving ``records`` out when none were fetched."""
        result: Dict[str, Any] = {"messages": list(self.messages)}
        if self.records is not None:
            result["records"] = list(self.records)
        return result


class CleanupOutcome(BaseModel):
    """Result of deleting a search job once it is no longer needed."""

    job_id: str
    deleted: bool
    error: Optional[str] = None


class FailureKind(str, Enum):
    """Stage of a search that failed."""
    SUBMISSION = "submission"
    POLLING = "polling"
    TIMEOUT = "timeout"
    FETCH = "fetch"


class SearchSuccess(BaseModel):
    """A search that ran to completion, possibly with zero results."""

    ok: Literal[True] = True
    result: SearchResult
    job_id: str
    cleanup: Optional[CleanupOutcome] = None


class SearchFailure(BaseModel):
    """A search that could not produce results."""

    ok: Literal[False] = False
    kind: FailureKind
    message: str
    job_id: Optional[str] = None
    error_type: Optional[str] = None
    cleanup: Optional[CleanupOutcome] = None


SearchOutcome = Union[SearchSuccess, SearchFailure]
