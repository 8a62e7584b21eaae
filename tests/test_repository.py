"""Tests for loading a directory into a repository."""

from weaver.repository import AITask, ConversationMessage, load_repository


def test_load_repository(test_project):
    repository = load_repository(test_project)

    assert repository.name == test_project.name
    assert repository.status == "imported"
    assert repository.file_paths() == ["README.md", "src/main.py", "src/utils.py", "tests/test_main.py"]
    assert repository.get_file("src/utils.py").content == "def add(a, b):\n    return a + b\n"


def test_load_skips_ignored_and_binary_files(test_project):
    (test_project / "__pycache__").mkdir()
    (test_project / "__pycache__" / "main.cpython-311.pyc").write_bytes(b"\x00\x01")
    (test_project / "image.bin").write_bytes(b"\x89PNG\x00\x00\x00")
    (test_project / ".weaverignore").write_text("tests/\n")

    repository = load_repository(test_project)

    paths = repository.file_paths()
    assert "image.bin" not in paths
    assert not any(p.startswith("__pycache__") for p in paths)
    assert not any(p.startswith("tests/") for p in paths)
    assert "src/main.py" in paths


def test_load_skips_large_files(test_project):
    (test_project / "big.txt").write_text("x" * (1024 * 1024 + 1))

    repository = load_repository(test_project, max_file_size_mb=1)

    assert "big.txt" not in repository.file_paths()


def test_load_uses_given_name(test_project):
    assert load_repository(test_project, name="demo").name == "demo"


def test_ids_are_unique():
    first = AITask(repository_id="r", prompt="p")
    second = AITask(repository_id="r", prompt="p")

    assert first.id != second.id
    assert first.status == "completed"


def test_message_to_turn():
    message = ConversationMessage(role="assistant", content="hi")

    assert message.to_turn() == {"role": "assistant", "content": "hi"}
