"""Data models for the Sumo Logic search MCP server."""

from .config import SearchRequest

from .responses import (
    SearchJobState,
    SearchJobStatus,
    SearchResult,
    FailureKind,
    SearchSuccess,
    SearchFailure,
    SearchOutcome,
    CleanupOutcome
)

__all__ = [
    # Request models
    'SearchRequest',

    # Response models
    'SearchJobState',
    'SearchJobStatus',
    'SearchResult',
    'FailureKind',
    'SearchSuccess',
    'SearchFailure',
    'SearchOutcome',
    'CleanupOutcome'
]
