from types import SimpleNamespace

import pytest

from app.libs.ai_chat import (
    AppContext,
    ChatMessage,
    RoutineContext,
    chat,
    parse_block_suggestions,
)
from app.libs.ai_system_prompt import get_system_prompt
from app.libs.ai_tool_registry import get_tool_action_text, get_tool_names


class FakeCompletions:
    def __init__(self, message):
        self.message = message
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return SimpleNamespace(choices=[SimpleNamespace(message=self.message)])


def fake_client(content, tool_calls=None):
    completions = FakeCompletions(SimpleNamespace(content=content, tool_calls=tool_calls))
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


@pytest.mark.asyncio
async def test_chat_sends_system_prompt_and_tools(monkeypatch):
    monkeypatch.delenv("OPENAI_MODEL", raising=False)
    client, completions = fake_client("Sounds good")

    reply = await chat([ChatMessage(role="user", content="hello")], client=client)

    assert reply.message == "Sounds good"
    assert reply.tool_calls == []
    assert completions.kwargs["model"] == "gpt-4o"
    assert completions.kwargs["max_tokens"] == 1024
    messages = completions.kwargs["messages"]
    assert messages[0]["role"] == "system"
    assert messages[1] == {"role": "user", "content": "hello"}
    assert [t["function"]["name"] for t in completions.kwargs["tools"]] == get_tool_names()


@pytest.mark.asyncio
async def test_chat_parses_tool_calls():
    client, _ = fake_client(
        None,
        tool_calls=[
            tool_call("call_1", "create_category", '{"title": "Health"}'),
            tool_call("call_2", "create_goal", "{not json"),
            tool_call("call_3", "delete_everything", "{}"),
        ],
    )

    reply = await chat([ChatMessage(role="user", content="set me up")], client=client)

    assert reply.message == ""
    assert [(c.tool_use_id, c.name, c.input) for c in reply.tool_calls] == [
        ("call_1", "create_category", {"title": "Health"}),
        ("call_2", "create_goal", {}),
    ]


def test_parse_block_suggestions_keeps_order():
    text = "[BLOCK:trigger]At 7am[/BLOCK] then [BLOCK:action]\n Meditate \n[/BLOCK]"
    blocks = parse_block_suggestions(text)
    assert [(b.type, b.content) for b in blocks] == [("trigger", "At 7am"), ("action", "Meditate")]
    assert parse_block_suggestions("no blocks here") == []


def test_system_prompt_includes_context_and_truncates_sources():
    routine = RoutineContext.model_validate({
        "title": "Reading",
        "blocks": [{"type": "checklist", "content": "20 pages"}],
        "sources": [{"title": "Guide", "content": "x" * 3500}],
    })
    app = AppContext.model_validate({"categories": [{"id": "c1", "title": "Personal"}]})

    prompt = get_system_prompt(routine, app)

    assert "Title: Reading" in prompt
    assert "20 pages" in prompt
    assert "### Source 1: Guide" in prompt
    assert "x" * 3000 + "\n[Content truncated...]" in prompt
    assert "x" * 3001 not in prompt
    assert "Personal (id: c1)" in prompt


def test_tool_action_text():
    assert get_tool_action_text("create_routine", {"title": "Stretch"}) == 'Created routine "Stretch"'
    assert get_tool_action_text("unknown_tool", {}) == "Ran unknown_tool"
