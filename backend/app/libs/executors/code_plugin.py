"""Code plugin executor: checks plugin source without evaluating it."""

import ast
from typing import Any, List, Optional, Tuple

from app.libs.executors.base import BaseExecutor, config_value, non_empty_string
from app.libs.models import ExecutionResult, Routine, ValidationResult, utc_now_iso

PREVIEW_CHARS = 200


def inspect_plugin(code: str) -> Tuple[Optional[str], List[str]]:
    """
    Parse plugin source.

    Returns:
        (syntax error message or None, sorted top-level imported modules)
    """
    try:
        tree = ast.parse(code)
    except SyntaxError as e:
        return f"Syntax error on line {e.lineno}: {e.msg}", []

    imports = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.add(alias.name.split(".")[0])
        elif isinstance(node, ast.ImportFrom) and node.module:
            imports.add(node.module.split(".")[0])
    return None, sorted(imports)


class CodePluginExecutor(BaseExecutor):
    type = "code-plugin"
    name = "Code Plugin"
    description = "Generate and run Python plugins in-app"

    async def validate_config(self, config: Any) -> ValidationResult:
        errors = []
        if not non_empty_string(config_value(config, "pluginCode")):
            errors.append("Plugin code is required")
        return self.validation(errors)

    async def is_available(self) -> bool:
        return True

    async def execute(self, routine: Routine) -> ExecutionResult:
        started_at = utc_now_iso()

        code = non_empty_string(config_value(routine.integration.config, "pluginCode"))
        if not code:
            return self.create_result(False, error="Plugin code not configured", started_at=started_at)

        syntax_error, imports = inspect_plugin(code)
        if syntax_error:
            return self.create_result(False, error=syntax_error, started_at=started_at)

        preview = code[:PREVIEW_CHARS] + ("..." if len(code) > PREVIEW_CHARS else "")
        lines = ["Code plugin checked (not evaluated)", ""]
        if imports:
            lines.append(f"Imports: {', '.join(imports)}")
        lines.extend(["Plugin:", preview])
        return self.create_result(True, output="\n".join(lines), started_at=started_at)
