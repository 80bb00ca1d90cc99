"""Claude CLI executor: runs the configured command in a subprocess."""

import asyncio
import logging
import os
import shlex
import shutil
import subprocess
from typing import Any, List, Optional

from app.libs.executors.base import BaseExecutor, block_kind, config_value, non_empty_string
from app.libs.models import ExecutionResult, Routine, ValidationResult, utc_now_iso

logger = logging.getLogger(__name__)

MAX_OUTPUT_CHARS = 20000


def cli_binary() -> str:
    return os.environ.get("CLAUDE_CLI_PATH", "claude")


def cli_timeout() -> float:
    try:
        return float(os.environ.get("CLI_EXECUTOR_TIMEOUT", "300"))
    except ValueError:
        return 300.0


def build_prompt(routine: Routine) -> str:
    prompt = f"Task: {routine.title}\n\n"

    for block in sorted(routine.blocks, key=lambda b: b.order):
        kind = block_kind(block)
        if kind == "heading":
            prompt += f"## {block.content}\n\n"
        elif kind == "checklist":
            prompt += f"- {block.content}\n"
        elif kind == "trigger":
            prompt += f"When: {block.content}\n"
        elif kind == "action":
            prompt += f"Do: {block.content}\n"
        else:
            prompt += f"{block.content}\n\n"

    return prompt


def build_command(command_template: str, prompt: str, binary: Optional[str] = None) -> List[str]:
    """
    Split the configured command and attach the prompt.

    The first token must name the configured CLI binary; the process always
    runs that binary, and the rest of the template only supplies arguments.
    A `{prompt}` placeholder is substituted in place; otherwise the prompt
    goes after a `-p` flag.
    """
    binary = binary or cli_binary()
    args = shlex.split(command_template)
    if not args or args[0] not in (binary, os.path.basename(binary)):
        raise ValueError(f"command must start with {os.path.basename(binary)}")

    rest = args[1:]
    if any("{prompt}" in arg for arg in rest):
        return [binary, *(arg.replace("{prompt}", prompt) for arg in rest)]
    return [binary, *rest, "-p", prompt]


class CLIExecutor(BaseExecutor):
    type = "cli"
    name = "Claude CLI"
    description = "Execute routines using Claude CLI in the background"

    async def validate_config(self, config: Any) -> ValidationResult:
        errors = []
        command = non_empty_string(config_value(config, "cliCommand"))

        if not command:
            errors.append("CLI command template is required")
        else:
            try:
                build_command(command, "")
            except ValueError as e:
                errors.append(f"Invalid CLI command: {e}")

        return self.validation(errors)

    async def is_available(self) -> bool:
        try:
            return shutil.which(cli_binary()) is not None
        except Exception:
            return False

    async def execute(self, routine: Routine) -> ExecutionResult:
        started_at = utc_now_iso()

        command = non_empty_string(config_value(routine.integration.config, "cliCommand"))
        if not command:
            return self.create_result(False, error="CLI command not configured", started_at=started_at)

        prompt = build_prompt(routine)
        try:
            args = build_command(command, prompt)
        except ValueError as e:
            return self.create_result(False, error=f"Invalid CLI command: {e}", started_at=started_at)

        logger.info("Running CLI executor for routine %s: %s", routine.id, args[0])
        try:
            result = await asyncio.to_thread(
                subprocess.run,
                args,
                capture_output=True,
                text=True,
                timeout=cli_timeout(),
            )
        except subprocess.TimeoutExpired:
            return self.create_result(False, error=f"CLI command timed out after {cli_timeout():.0f}s", started_at=started_at)
        except OSError as e:
            return self.create_result(False, error=f"Failed to start CLI command: {e}", started_at=started_at)

        stdout = (result.stdout or "")[:MAX_OUTPUT_CHARS]
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()[:MAX_OUTPUT_CHARS]
            return self.create_result(
                False,
                output=stdout or None,
                error=f"CLI exited with code {result.returncode}: {stderr}" if stderr else f"CLI exited with code {result.returncode}",
                started_at=started_at,
            )

        return self.create_result(True, output=stdout, started_at=started_at)
