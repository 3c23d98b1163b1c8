"""Decorator-based registry of the tools exposed to MCP clients."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ValidationError

from localtts.core.exceptions import (
    InvalidParametersError,
    SynthesisFailedError,
    TTSError,
)
from localtts.tools.base import ToolContext, ToolResult

logger = logging.getLogger(__name__)

Handler = Callable[[Any, ToolContext], Awaitable[ToolResult]]


@dataclass
class ToolMeta:
    """Metadata for a registered tool."""
    name: str
    description: str
    params_model: type[BaseModel]
    handler: Handler

    def input_schema(self) -> dict[str, Any]:
        """JSON schema for the tool arguments (camelCase field names)."""
        schema = self.params_model.model_json_schema(by_alias=True)
        schema.pop("title", None)
        schema.setdefault("properties", {})
        schema.setdefault("required", [])
        return schema


def _validation_details(error: ValidationError) -> list[dict[str, Any]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


class ToolRegistry:
    """Registry of tool handlers keyed by name, in registration order."""

    def __init__(self):
        self._tools: dict[str, ToolMeta] = {}

    def register(self, name: str, description: str, params_model: type[BaseModel]):
        """Decorator to register an async tool handler."""
        def decorator(func: Handler) -> Handler:
            self._tools[name] = ToolMeta(
                name=name,
                description=description,
                params_model=params_model,
                handler=func,
            )
            return func
        return decorator

    def get(self, name: str) -> Optional[ToolMeta]:
        return self._tools.get(name)

    def list_tools(self) -> list[ToolMeta]:
        return list(self._tools.values())

    async def execute(
        self,
        name: str,
        arguments: Optional[dict[str, Any]],
        context: ToolContext,
    ) -> ToolResult:
        """Validate arguments and run a tool. Never raises."""
        meta = self._tools.get(name)
        if meta is None:
            return ToolResult.failure(InvalidParametersError(f"Unknown tool: {name}"))

        try:
            params = meta.params_model.model_validate(arguments or {})
        except ValidationError as e:
            logger.info(f"Rejected {name} call: {e.error_count()} invalid parameter(s)")
            return ToolResult.failure(InvalidParametersError(
                "Invalid parameters", details=_validation_details(e)
            ))

        try:
            return await meta.handler(params, context)
        except TTSError as e:
            logger.warning(f"Tool '{name}' failed [{e.code}]: {e}")
            return ToolResult.failure(e)
        except Exception as e:
            logger.error(f"Tool '{name}' crashed: {e}", exc_info=True)
            error = SynthesisFailedError(f"Internal server error: {e}")
            return ToolResult.failure(error)


# Module-level registry
registry = ToolRegistry()
