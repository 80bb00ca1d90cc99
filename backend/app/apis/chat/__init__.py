"""
AI Chat API

Conversational help for building routines. The assistant can suggest editor
blocks inline and request category/goal/routine creation via tool calls; the
client decides whether to apply them.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request
from pydantic import Field, ValidationError

from app.libs.ai_chat import AppContext, ChatMessage, RoutineContext, chat, parse_block_suggestions
from app.libs.ai_response_parser import extract_description, has_create_suggestion, parse_all_suggestions
from app.libs.ai_tool_registry import get_tool_action_text
from app.libs.errors import InvalidRequestError, UnexpectedError, error_response
from app.libs.models import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["AI Chat"])


def create_suggestions(message: str) -> List[Dict[str, Any]]:
    """Plain-text creation suggestions in the reply, each with a description when one follows the title"""
    if not has_create_suggestion(message):
        return []
    return [
        {**s.model_dump(), "description": extract_description(message, s.title)}
        for s in parse_all_suggestions(message)
    ]


class ChatRequest(CamelModel):
    """Conversation plus optional routine and app context"""
    messages: List[ChatMessage] = Field(..., min_length=1)
    routine_context: Optional[RoutineContext] = None
    app_context: Optional[AppContext] = None


@router.post("/chat")
async def chat_with_assistant(request: Request):
    """
    Send the conversation to the assistant

    Returns {"success": true, "data": {"message", "suggestedBlocks", "toolCalls", "createSuggestions"}}
    """
    try:
        payload = ChatRequest.model_validate(await request.json())
    except (ValueError, ValidationError):  # malformed JSON or undecodable bytes
        return error_response(InvalidRequestError("Invalid request body"))

    try:
        reply = await chat(payload.messages, payload.routine_context, payload.app_context)
    except Exception:
        logger.exception("Chat request failed")
        return error_response(UnexpectedError("Failed to process chat"))

    blocks = parse_block_suggestions(reply.message)
    return {
        "success": True,
        "data": {
            "message": reply.message,
            "suggestedBlocks": [block.to_json() for block in blocks],
            "toolCalls": [
                {**call.to_json(), "actionText": get_tool_action_text(call.name, call.input)}
                for call in reply.tool_calls
            ],
            "createSuggestions": create_suggestions(reply.message),
        },
    }
