"""MCP tool handlers for Sumo Logic search operations."""

from .search_tools import SearchTools

__all__ = [
    "SearchTools"
]
