"""Pytest configuration and fixtures."""

import json
import tempfile
from pathlib import Path
from typing import Optional

import pytest

from weaver.config import Config
from weaver.repository import CodeFile, Repository
from weaver.tools.file_store import RepositoryFileStore
from weaver.utils.ignore import IgnoreRules


class ScriptedClient:
    """Model client that replays canned replies and records every call."""

    def __init__(self, replies: list, edit_replies: Optional[list] = None, repeat_last: bool = False):
        self.replies = list(replies)
        self.edit_replies = list(edit_replies or [])
        self.repeat_last = repeat_last
        self.calls: list[dict] = []
        self.generate_calls: list[str] = []

    def complete(self, system_prompt, history, cancel=None):
        self.calls.append({"system_prompt": system_prompt, "history": [dict(t) for t in history]})
        if self.repeat_last and len(self.replies) == 1:
            reply = self.replies[0]
        else:
            reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def generate(self, prompt, cancel=None):
        self.generate_calls.append(prompt)
        reply = self.edit_replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload=None, text: Optional[str] = None, content_type: str = "application/json"):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)
        self.headers = {"Content-Type": content_type}

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Records requests and returns queued responses (or raises queued exceptions)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[dict] = []

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.requests.append({"method": method, "url": url, "headers": headers, "timeout": timeout, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_project(temp_dir):
    """Create a test project structure."""
    (temp_dir / "src").mkdir()
    (temp_dir / "src" / "main.py").write_text("def hello():\n    return 'world'\n")
    (temp_dir / "src" / "utils.py").write_text("def add(a, b):\n    return a + b\n")

    (temp_dir / "tests").mkdir()
    (temp_dir / "tests" / "test_main.py").write_text(
        "def test_hello():\n    from src.main import hello\n    assert hello() == 'world'\n"
    )

    (temp_dir / "README.md").write_text("# Test Project\n")

    yield temp_dir


@pytest.fixture
def repository():
    """An in-memory repository with a few files."""
    return Repository(
        id="repo-1",
        name="demo",
        files=[
            CodeFile(path="src/a.ts", content="export const a = 1;\n"),
            CodeFile(path="src/b.ts", content="line1\nline2\nline3"),
            CodeFile(path="README.md", content="# Demo\n"),
        ],
    )


@pytest.fixture
def store(repository):
    return RepositoryFileStore(repository)


@pytest.fixture
def mock_config():
    """Create a configuration pointing at a fake server."""
    return Config(
        ollama_url="http://localhost:11434",
        ollama_model="qwen2.5-coder:7b",
        max_turns=5,
    )


@pytest.fixture
def ignore_rules(temp_dir):
    """Create ignore rules for temp directory."""
    return IgnoreRules(temp_dir)


@pytest.fixture
def scripted_client():
    """Factory for ScriptedClient instances."""
    return ScriptedClient


@pytest.fixture
def fake_session():
    """Factory for FakeSession instances."""
    return FakeSession


@pytest.fixture
def fake_response():
    """Factory for FakeResponse instances."""
    return FakeResponse
