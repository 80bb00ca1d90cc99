"""
Domain Models for Routine Manager

Pydantic models for categories, goals, routines, completions and the
automation integration attached to a routine. Field names are snake_case in
Python and camelCase on the wire; both spellings are accepted on input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def camel_key(key: str) -> str:
    """snake_case -> camelCase; keys without underscores are returned unchanged."""
    return to_camel(key) if "_" in key else key


class CamelModel(BaseModel):
    """Base model serialising to camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def with_updates(self, updates: Dict[str, Any], protected: tuple = ("id", "createdAt")):
        """Return a re-validated copy with `updates` (either key style) merged in."""
        data = self.to_json()
        for key, value in updates.items():
            camel = camel_key(key)
            if camel not in protected:
                data[camel] = value
        return type(self).model_validate(data)


# =============================================================================
# ENUMS
# =============================================================================


class ColorPattern(str, Enum):
    """Automatic goal coloring schemes"""
    MONOCHROME = "monochrome"
    COMPLEMENTARY = "complementary"
    RAINBOW = "rainbow"
    WARM = "warm"
    COOL = "cool"


class ResourceType(str, Enum):
    """Kinds of reference sources attached to goals and routines"""
    URL = "url"
    TEXT = "text"
    FILE = "file"


class BlockType(str, Enum):
    """Editor content block types"""
    TEXT = "text"
    HEADING = "heading"
    CHECKLIST = "checklist"
    TRIGGER = "trigger"
    ACTION = "action"


class ExecutorType(str, Enum):
    """Automation backends a routine can be bound to"""
    MCP = "mcp"
    GITHUB_ACTION = "github-action"
    CLI = "cli"
    CODE_PLUGIN = "code-plugin"


class LastResult(str, Enum):
    """Outcome of the most recent integration run"""
    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


class RoutineStatus(str, Enum):
    """Routine lifecycle values"""
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"


class CompletionStatus(str, Enum):
    """Completion record status values"""
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class ChatRole(str, Enum):
    """Chat message role values"""
    USER = "user"
    ASSISTANT = "assistant"


# =============================================================================
# ROUTINE CONTENT
# =============================================================================


class ContentBlock(CamelModel):
    """A single block in the routine editor"""
    id: str
    type: BlockType = BlockType.TEXT
    content: str = ""
    checked: Optional[bool] = None
    order: int = 0


class ResourceSource(CamelModel):
    """Reference material (web page, pasted text, file) used as AI context"""
    id: str
    title: str
    url: Optional[str] = None
    type: ResourceType = ResourceType.TEXT
    content: Optional[str] = None
    summary: Optional[str] = None
    added_at: str = Field(default_factory=utc_now_iso)


class ExecutorConfig(CamelModel):
    """Backend-specific settings; unknown keys are kept as-is"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    mcp_server: Optional[str] = None
    mcp_tools: Optional[List[str]] = None
    github_repo: Optional[str] = None
    github_workflow: Optional[str] = None
    cli_command: Optional[str] = None
    plugin_code: Optional[str] = None
    plugin_path: Optional[str] = None


class RoutineIntegration(CamelModel):
    """Automation binding of a routine"""
    enabled: bool = False
    executor_type: ExecutorType = ExecutorType.MCP
    config: ExecutorConfig = Field(default_factory=ExecutorConfig)
    schedule: Optional[str] = None  # cron expression
    last_run: Optional[str] = None
    last_result: Optional[LastResult] = None


class Routine(CamelModel):
    """A user-defined recurring task"""
    id: str
    title: str
    goal_id: Optional[str] = None
    blocks: List[ContentBlock] = []
    sources: List[ResourceSource] = []
    tasks: List[Dict[str, Any]] = []
    status: RoutineStatus = RoutineStatus.ACTIVE
    integration: RoutineIntegration = Field(default_factory=RoutineIntegration)
    schedule: Optional[Dict[str, Any]] = None
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class Category(CamelModel):
    """Top-level grouping (Work, Personal, Health)"""
    id: str
    title: str
    icon: str = "Folder"
    color_pattern: ColorPattern = ColorPattern.RAINBOW
    base_color: Optional[str] = None
    order: int = 0
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class Goal(CamelModel):
    """Container for related routines, belongs to a category"""
    id: str
    title: str
    description: str = ""
    icon: str = "🎯"
    color: str = ""
    category_id: Optional[str] = None
    sources: List[ResourceSource] = []
    order: int = 0
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class CompletionRecord(CamelModel):
    """Check-off of a routine for a scheduled date"""
    id: str
    routine_id: str
    scheduled_date: str  # YYYY-MM-DD
    completed_at: Optional[str] = None
    status: CompletionStatus = CompletionStatus.PENDING
    notes: Optional[str] = None


class StreakInfo(CamelModel):
    """Consecutive-day completion statistics for a routine"""
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: Optional[str] = None
    total_completions: int = 0


# =============================================================================
# EXECUTION
# =============================================================================


class ValidationResult(CamelModel):
    """Outcome of an executor config check"""
    valid: bool
    errors: List[str] = []


class ExecutionResult(CamelModel):
    """Outcome of one execution attempt; never mutated after creation"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    success: bool
    output: Optional[str] = None
    error: Optional[str] = None
    started_at: str
    completed_at: str
    executor_type: str
    # GitHub-specific fields
    issue_url: Optional[str] = None
    issue_number: Optional[int] = None


# =============================================================================
# MCP REGISTRY
# =============================================================================


class MCPTool(CamelModel):
    """Tool exposed by an MCP server"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    description: str = ""
    input_schema: Optional[Dict[str, Any]] = None


class MCPServerInfo(CamelModel):
    """Server record from the MCP registry"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    version: Optional[str] = None
    description: Optional[str] = None
    repository: Optional[Any] = None
    tools: List[Any] = []
    category: Optional[str] = None
    author: Optional[str] = None
    downloads: Optional[int] = None


class MCPRegistryResponse(CamelModel):
    """Paged search result from the MCP registry"""
    servers: List[Dict[str, Any]] = []
    cursor: Optional[str] = None
    total: Optional[int] = None
