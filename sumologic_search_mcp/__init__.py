"""Sumo Logic Search MCP Server - run Sumo Logic log searches as an MCP tool."""

__version__ = "0.1.0"
__description__ = "Model Context Protocol server for Sumo Logic log search"

from .config import SumoSearchConfig
from .masking import mask_sensitive_info
from .sanitizer import sanitize_items
from .search import SearchOrchestrator, search
from .server import SumoSearchMCPServer

__all__ = [
    "SumoSearchConfig",
    "SumoSearchMCPServer",
    "SearchOrchestrator",
    "search",
    "mask_sensitive_info",
    "sanitize_items",
]
