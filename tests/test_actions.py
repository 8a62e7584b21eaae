"""Tests for action parsing."""

import json

import pytest

from weaver.actions import (
    Finish,
    NaturalLanguageEdit,
    ReadFile,
    UnknownAction,
    WriteFile,
    action_to_dict,
    extract_json,
    parse_action,
)
from weaver.errors import ParseError


def test_parse_bare_json():
    action = parse_action('{"action": "readFile", "path": "src/a.ts"}')

    assert action == ReadFile(path="src/a.ts")


def test_parse_fenced_json_with_surrounding_text():
    """Test that a fenced block is preferred over the surrounding prose."""
    text = (
        "I'll look at the file first.\n"
        "```json\n"
        '{"action": "writeFile", "path": "x.py", "content": "def f():\\n    return {}\\n"}\n'
        "```\n"
        "Let me know!"
    )

    action = parse_action(text)

    assert isinstance(action, WriteFile)
    assert action.content == "def f():\n    return {}\n"


def test_parse_fence_without_language_tag():
    action = parse_action('```\n{"action": "finish", "message": "done"}\n```')

    assert action == Finish(message="done")


def test_finish_message_kept_verbatim():
    message = "  Line one\n\n**bold** `code`  "
    action = parse_action(json.dumps({"action": "finish", "message": message}))

    assert action.message == message


def test_path_prefix_is_normalized():
    action = parse_action('{"action": "readFile", "path": "./src/a.ts"}')

    assert action.path == "src/a.ts"


def test_natural_language_edit_accepts_camel_case():
    action = parse_action(json.dumps({
        "action": "naturalLanguageEdit",
        "path": "a.py",
        "instruction": "rename foo",
        "selectedContent": "def foo():",
    }))

    assert isinstance(action, NaturalLanguageEdit)
    assert action.selected_content == "def foo():"
    assert action_to_dict(action)["selectedContent"] == "def foo():"


def test_unknown_action_tag():
    action = parse_action('{"action": "deleteFile", "path": "a.py"}')

    assert isinstance(action, UnknownAction)
    assert action.action == "deleteFile"


def test_plain_prose_raises_parse_error():
    """Test that a response without JSON is rejected with the raw text kept."""
    with pytest.raises(ParseError) as exc_info:
        parse_action("Sure! Here's my plan...")

    assert exc_info.value.raw == "Sure! Here's my plan..."
    assert "Sure! Here's my plan..." in str(exc_info.value)


def test_missing_action_field_raises():
    with pytest.raises(ParseError):
        parse_action('{"path": "a.py"}')


def test_missing_required_field_raises():
    with pytest.raises(ParseError):
        parse_action('{"action": "writeFile", "path": "a.py"}')


def test_json_array_is_not_an_action():
    with pytest.raises(ParseError):
        parse_action('[{"action": "finish", "message": "x"}]')


def test_extract_json_falls_back_to_whole_text():
    assert extract_json('  {"a": 1}  ') == {"a": 1}
    assert extract_json("no json here") is None
