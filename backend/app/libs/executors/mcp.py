"""MCP server executor."""

import asyncio
from typing import Any

from app.libs.executors.base import BaseExecutor, config_value, non_empty_string
from app.libs.mcp_registry import is_registry_reachable
from app.libs.models import ExecutionResult, Routine, ValidationResult, utc_now_iso


class MCPExecutor(BaseExecutor):
    type = "mcp"
    name = "MCP Registry"
    description = "Execute routines using MCP servers from the registry"

    async def validate_config(self, config: Any) -> ValidationResult:
        errors = []

        if not non_empty_string(config_value(config, "mcpServer")):
            errors.append("MCP server is required")

        tools = config_value(config, "mcpTools")
        if not isinstance(tools, (list, tuple)) or not [t for t in tools if non_empty_string(t)]:
            errors.append("At least one MCP tool must be selected")

        return self.validation(errors)

    async def is_available(self) -> bool:
        try:
            return await asyncio.to_thread(is_registry_reachable)
        except Exception:
            return False

    async def execute(self, routine: Routine) -> ExecutionResult:
        started_at = utc_now_iso()

        config = routine.integration.config
        server = non_empty_string(config_value(config, "mcpServer"))
        tools = config_value(config, "mcpTools")
        if not server or not tools:
            return self.create_result(False, error="Invalid MCP configuration", started_at=started_at)

        # Tool invocation over the MCP transport is not wired up; report what would run.
        output = "\n".join([
            f"MCP execution prepared for server: {server}",
            f"Tools: {', '.join(str(t) for t in tools)}",
            f"Routine blocks processed: {len(routine.blocks)}",
        ])
        return self.create_result(True, output=output, started_at=started_at)
