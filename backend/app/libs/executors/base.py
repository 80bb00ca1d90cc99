"""Executor contract shared by all automation backends."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from app.libs.models import BlockType, ExecutionResult, Routine, ValidationResult, utc_now_iso


class BaseExecutor(ABC):
    """
    Lifecycle every automation backend implements:

    1. validate_config: pure check, never raises
    2. is_available: environment/network probe, never raises
    3. execute: side effects; failures are reported in the result, not raised
    """

    type: str = ""
    name: str = ""
    description: str = ""

    @abstractmethod
    async def validate_config(self, config: Any) -> ValidationResult:
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        ...

    @abstractmethod
    async def execute(self, routine: Routine) -> ExecutionResult:
        ...

    def create_result(
        self,
        success: bool,
        output: Optional[str] = None,
        error: Optional[str] = None,
        started_at: Optional[str] = None,
        **extra: Any,
    ) -> ExecutionResult:
        return ExecutionResult(
            success=success,
            output=output,
            error=error,
            started_at=started_at or utc_now_iso(),
            completed_at=utc_now_iso(),
            executor_type=self.type,
            **extra,
        )

    @staticmethod
    def validation(errors: List[str]) -> ValidationResult:
        return ValidationResult(valid=not errors, errors=errors)


def config_value(config: Any, key: str) -> Any:
    """
    Read a config key without trusting the container type.

    Accepts an ExecutorConfig, a plain dict (camelCase or snake_case keys)
    or anything else, in which case every key is missing.
    """
    if config is None:
        return None
    if hasattr(config, "model_dump"):
        config = config.model_dump(by_alias=True)
    if not isinstance(config, dict):
        return None
    if key in config:
        return config[key]
    snake = "".join(f"_{c.lower()}" if c.isupper() else c for c in key)
    return config.get(snake)


def non_empty_string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def block_kind(block: Any) -> str:
    kind = getattr(block, "type", "text")
    return kind.value if isinstance(kind, BlockType) else str(kind)
