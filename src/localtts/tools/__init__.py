"""MCP tool handlers. Importing this package registers every tool."""

from localtts.tools import health, playback, synthesize, voices  # noqa: F401
from localtts.tools.registry import registry

__all__ = ["registry"]
