"""Tests for conversation history."""

from weaver.agent import AgentLoop
from weaver.conversation import ConversationContext
from weaver.repository import CodeChange, ConversationMessage
from weaver.utils.locks import RepositoryLocks


def test_history_drops_observations():
    context = ConversationContext()
    context.add_message("user", "read a")
    context.extend([
        ConversationMessage(role="system", content="Content of a:"),
        ConversationMessage(role="assistant", content="done"),
    ])

    assert [m.role for m in context.history()] == ["user", "assistant"]


def test_history_is_capped():
    context = ConversationContext(max_history=2)
    for i in range(5):
        context.add_message("user", str(i))

    assert [m.content for m in context.history()] == ["3", "4"]


def test_last_change():
    context = ConversationContext()
    change = CodeChange(file_path="a.py", original_code="1", modified_code="2")
    context.add_message("assistant", "changed", change)
    context.add_message("user", "thanks")

    assert context.last_change() == change

    context.clear()
    assert context.last_change() is None


def test_history_keeps_only_prompts_and_final_replies():
    """Test that raw action turns of earlier runs are not sent back."""
    context = ConversationContext()
    context.extend([
        ConversationMessage(role="user", content="what is in a.ts?"),
        ConversationMessage(role="assistant", content='{"action": "readFile", "path": "src/a.ts"}'),
        ConversationMessage(role="system", content="Content of src/a.ts:\n```\nx\n```"),
        ConversationMessage(role="assistant", content='{"action": "finish", "message": "It exports a."}'),
        ConversationMessage(role="assistant", content="It exports a."),
        ConversationMessage(role="user", content="and b.ts?"),
        ConversationMessage(role="assistant", content="Failed to get a response from the AI model: timeout"),
    ])

    assert [(m.role, m.content) for m in context.history()] == [
        ("user", "what is in a.ts?"),
        ("assistant", "It exports a."),
        ("user", "and b.ts?"),
        ("assistant", "Failed to get a response from the AI model: timeout"),
    ]


def test_history_from_agent_run(scripted_client, mock_config, store):
    client = scripted_client([
        '{"action": "readFile", "path": "src/a.ts"}',
        '{"action": "finish", "message": "a is 1"}',
    ])
    result = AgentLoop(client, mock_config, locks=RepositoryLocks()).run(store, "what is a?")
    context = ConversationContext()
    context.extend(result.transcript)

    assert [m.content for m in context.history()] == ["what is a?", "a is 1"]
