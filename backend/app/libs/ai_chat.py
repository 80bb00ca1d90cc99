"""
Routine Assistant Chat

Forwards a conversation to the chat model with the routine/app context folded
into the system prompt, and extracts block suggestions and tool calls from the
reply.
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from app.libs.ai_system_prompt import get_system_prompt
from app.libs.ai_tool_registry import get_all_tools, get_tool_names
from app.libs.models import CamelModel, ChatRole

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
MAX_TOKENS = 1024

BLOCK_PATTERN = re.compile(r"\[BLOCK:(\w+)\]([\s\S]*?)\[/BLOCK\]")


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================


class ChatMessage(CamelModel):
    role: ChatRole
    content: str


class BlockContext(CamelModel):
    type: str
    content: str


class SourceContext(CamelModel):
    title: str
    content: Optional[str] = None


class RoutineContext(CamelModel):
    """Routine open in the editor"""
    title: str
    blocks: List[BlockContext]
    sources: Optional[List[SourceContext]] = None


class CategoryRef(CamelModel):
    id: str
    title: str


class GoalRef(CamelModel):
    id: str
    title: str
    category_id: Optional[str] = None


class RoutineRef(CamelModel):
    id: str
    title: str
    goal_id: Optional[str] = None


class AppContext(CamelModel):
    """What the user already has, so tool calls can reference real IDs"""
    categories: List[CategoryRef] = []
    goals: List[GoalRef] = []
    routines: List[RoutineRef] = []


class SuggestedBlock(CamelModel):
    type: str
    content: str


class ToolCall(CamelModel):
    tool_use_id: str
    name: str
    input: Dict[str, Any] = {}


class ChatReply(CamelModel):
    message: str
    tool_calls: List[ToolCall] = []


# =============================================================================
# CHAT
# =============================================================================


_client: Optional[AsyncOpenAI] = None


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        _client = AsyncOpenAI(api_key=os.environ.get("OPENAI_API_KEY"))
    return _client


def _parse_arguments(raw: Optional[str], tool_name: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(raw or "{}")
    except json.JSONDecodeError as e:
        logger.warning("Discarding malformed arguments for tool %s: %s", tool_name, e)
        return {}
    return parsed if isinstance(parsed, dict) else {}


async def chat(
    messages: List[ChatMessage],
    routine_context: Optional[RoutineContext] = None,
    app_context: Optional[AppContext] = None,
    client: Optional[AsyncOpenAI] = None,
) -> ChatReply:
    """Send the conversation to the model and return its text and tool calls.

    Args:
        messages: Conversation so far, oldest first
        routine_context: Routine being edited, if any
        app_context: Existing categories/goals/routines, if any
        client: OpenAI client override

    Returns:
        ChatReply with the assistant text (may be empty) and requested tool calls
    """
    client = client or _get_client()
    system_prompt = get_system_prompt(routine_context, app_context)

    response = await client.chat.completions.create(
        model=os.environ.get("OPENAI_MODEL", DEFAULT_MODEL),
        max_tokens=MAX_TOKENS,
        messages=[
            {"role": "system", "content": system_prompt},
            *({"role": m.role.value, "content": m.content} for m in messages),
        ],
        tools=get_all_tools(),
        tool_choice="auto",
    )

    message_obj = response.choices[0].message
    known_tools = set(get_tool_names())
    tool_calls = []
    for tc in message_obj.tool_calls or []:
        if tc.function.name not in known_tools:
            logger.warning("Ignoring call to unknown tool %s", tc.function.name)
            continue
        tool_calls.append(ToolCall(
            tool_use_id=tc.id,
            name=tc.function.name,
            input=_parse_arguments(tc.function.arguments, tc.function.name),
        ))

    return ChatReply(message=message_obj.content or "", tool_calls=tool_calls)


def parse_block_suggestions(text: str) -> List[SuggestedBlock]:
    """Extract `[BLOCK:type]...[/BLOCK]` suggestions in order of appearance."""
    return [
        SuggestedBlock(type=match.group(1), content=match.group(2).strip())
        for match in BLOCK_PATTERN.finditer(text or "")
    ]
