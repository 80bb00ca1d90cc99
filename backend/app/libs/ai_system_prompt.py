"""
Routine Assistant System Prompt

Persona and output conventions for the chat assistant, plus the context
sections appended for the routine being edited and the user's app data.
"""

import json
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.libs.ai_chat import AppContext, RoutineContext

MAX_SOURCE_CHARS = 3000

BASE_PROMPT = """You are an AI assistant helping users create and manage their personal routines.

Your capabilities:
1. Suggest content for routine blocks (text, headings, checklists, triggers, actions)
2. Help organize and structure routines
3. Recommend automation strategies using different executors (MCP servers, GitHub Actions, CLI commands, code plugins)
4. Provide tips for habit formation and routine optimization
5. Create categories, goals and routines with the provided tools when the user asks for them

When suggesting blocks, format them as:
[BLOCK:type]
content here
[/BLOCK]

Where type can be: text, heading, checklist, trigger, action

Be concise and helpful. Focus on practical, actionable suggestions."""


def get_system_prompt(
    routine_context: Optional["RoutineContext"] = None,
    app_context: Optional["AppContext"] = None,
) -> str:
    """Generate the system prompt for the routine assistant.

    Args:
        routine_context: The routine currently open in the editor
        app_context: Categories, goals and routines the user already has

    Returns:
        Complete system prompt string
    """
    prompt = BASE_PROMPT

    if routine_context:
        blocks = [block.model_dump() for block in routine_context.blocks]
        prompt += (
            "\n\nCurrent routine context:\n"
            f"Title: {routine_context.title}\n"
            f"Blocks: {json.dumps(blocks, indent=2, ensure_ascii=False)}"
        )

        if routine_context.sources:
            prompt += (
                "\n\n## Reference Sources\n"
                "The user has provided the following sources for context. "
                "Use these to inform your suggestions:\n"
            )
            for index, source in enumerate(routine_context.sources, start=1):
                prompt += f"\n### Source {index}: {source.title}\n"
                if source.content:
                    prompt += source.content[:MAX_SOURCE_CHARS]
                    if len(source.content) > MAX_SOURCE_CHARS:
                        prompt += "\n[Content truncated...]"
                prompt += "\n"

    if app_context:
        prompt += "\n\n## Existing Data\nUse these IDs when calling tools.\n"
        if app_context.categories:
            prompt += "\nCategories:\n"
            for category in app_context.categories:
                prompt += f"- {category.title} (id: {category.id})\n"
        if app_context.goals:
            prompt += "\nGoals:\n"
            for goal in app_context.goals:
                suffix = f", category: {goal.category_id}" if goal.category_id else ""
                prompt += f"- {goal.title} (id: {goal.id}{suffix})\n"
        if app_context.routines:
            prompt += "\nRoutines:\n"
            for routine in app_context.routines:
                suffix = f", goal: {routine.goal_id}" if routine.goal_id else ""
                prompt += f"- {routine.title} (id: {routine.id}{suffix})\n"

    return prompt
