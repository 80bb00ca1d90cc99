"""
AI Tool Registry

Defines the tools the chat assistant may call, in OpenAI function calling
format. Tool calls are returned to the client, which performs the actual
creation through the /data endpoints.
"""

from typing import Any, Dict, List


def get_all_tools() -> List[Dict[str, Any]]:
    """Get all available AI tools in OpenAI function format."""
    return [
        {
            "type": "function",
            "function": {
                "name": "create_category",
                "description": "Create a new category for organizing goals and routines. Use this when the user asks to create a category or needs a new organizational group.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "title": {
                            "type": "string",
                            "description": "The name of the category (e.g., 'Health & Fitness', 'Work', 'Personal Development')"
                        },
                        "icon": {
                            "type": "string",
                            "description": "Icon name from Lucide icons (e.g., 'Briefcase', 'Heart', 'Star', 'Book', 'Dumbbell'). Default is 'Folder'"
                        }
                    },
                    "required": ["title"]
                }
            }
        },
        {
            "type": "function",
            "function": {
                "name": "create_goal",
                "description": "Create a new goal within a category. Use this when the user wants to add a goal or objective.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "title": {
                            "type": "string",
                            "description": "The name of the goal (e.g., 'Learn Japanese', 'Lose 10kg', 'Read 20 books')"
                        },
                        "description": {
                            "type": "string",
                            "description": "A brief description of the goal and what success looks like"
                        },
                        "categoryId": {
                            "type": "string",
                            "description": "The ID of the category to add this goal to. Required."
                        },
                        "icon": {
                            "type": "string",
                            "description": "An emoji icon for the goal (e.g., '🎯', '💪', '📚')"
                        }
                    },
                    "required": ["title", "categoryId"]
                }
            }
        },
        {
            "type": "function",
            "function": {
                "name": "create_routine",
                "description": "Create a new routine for achieving a goal. Use this when the user wants to establish a new habit or routine.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "title": {
                            "type": "string",
                            "description": "The name of the routine (e.g., 'Morning Workout', 'Daily Reading', 'Weekly Review')"
                        },
                        "goalId": {
                            "type": "string",
                            "description": "The ID of the goal this routine supports. Required."
                        }
                    },
                    "required": ["title", "goalId"]
                }
            }
        },
    ]


def get_tool_names() -> List[str]:
    return [tool["function"]["name"] for tool in get_all_tools()]


def get_tool_action_text(name: str, args: Dict[str, Any]) -> str:
    """Human-readable line describing a tool call, for UI display."""
    title = args.get("title", "")
    if name == "create_category":
        return f"Created category \"{title}\""
    if name == "create_goal":
        return f"Created goal \"{title}\""
    if name == "create_routine":
        return f"Created routine \"{title}\""
    return f"Ran {name}"
