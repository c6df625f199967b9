from tmdb_mcp.app.transports.base import Transport
from tmdb_mcp.app.transports.sse import SseTransport
from tmdb_mcp.app.transports.stdio import StdioTransport

__all__ = [
    "SseTransport",
    "StdioTransport",
    "Transport",
]
