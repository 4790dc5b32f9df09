"""Request models for the Sumo Logic search MCP server."""

from typing import Optional

from pydantic import BaseModel, Field, validator

from ..time_utils import TimeParser


class SearchRequest(BaseModel):
    """Model for ``search_sumologic`` tool arguments.

    ``from_time`` and ``to_time`` are optional; missing values are filled in
    independently when the search runs.
    """

    query: str = Field(..., description="Search query string")
    from_time: Optional[str] = Field(None, description="Start time (ISO 8601)")
    to_time: Optional[str] = Field(None, description="End time (ISO 8601)")

    @validator("query")
    def validate_query(cls, v: str) -> str:
        """Validate search query."""
        if not v.strip():
            raise ValueError("Query cannot be empty")
        return v.strip()

    @validator("from_time", "to_time")
    def validate_time_format(cls, v: Optional[str]) -> Optional[str]:
        """Validate ISO 8601 time format."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if not TimeParser.is_iso_format(v):
            raise ValueError(
                f"Invalid time format '{v}'. Expected ISO 8601, e.g. "
                "'2023-12-01T10:00:00', '2023-12-01T10:00:00Z' or '2023-12-01T10:00:00+08:00'"
            )
        return v

    def time_range(self) -> dict:
        """Return the caller supplied bounds in backend key form."""
        time_range = {}
        if self.from_time is not None:
            time_range["from"] = self.from_time
        if self.to_time is not None:
            time_range["to"] = self.to_time
        return time_range
