"""Tests for import ignore rules."""

from pathlib import Path

import pytest

from weaver.utils.ignore import IgnoreRules


@pytest.mark.parametrize("relative", [
    ".git/config",
    "node_modules/left-pad/index.js",
    "__pycache__/module.pyc",
    ".weaver/state.json",
    "server.log",
])
def test_builtin_patterns(test_project, relative):
    assert IgnoreRules(test_project).should_ignore(test_project / relative)


def test_project_files_are_kept(test_project):
    rules = IgnoreRules(test_project)

    assert rules.sources == []
    assert not rules.should_ignore(test_project / "src" / "main.py")
    assert not rules.should_ignore(Path("README.md"))


def test_gitignore_and_weaverignore_are_combined(test_project):
    (test_project / ".gitignore").write_text("build/\n# comment\n*.tmp\n")
    (test_project / ".weaverignore").write_text("data/\n")

    rules = IgnoreRules(test_project)

    assert [p.name for p in rules.sources] == [".gitignore", ".weaverignore"]
    assert rules.should_ignore(test_project / "build" / "out.js")
    assert rules.should_ignore(test_project / "scratch.tmp")
    assert rules.should_ignore(test_project / "data" / "rows.csv")
    assert not rules.should_ignore(test_project / "src" / "utils.py")


def test_weaverignore_can_reinclude_gitignored_file(test_project):
    """Test that a negated pattern in .weaverignore wins over .gitignore."""
    (test_project / ".gitignore").write_text("*.env.example\nfixtures/\n")
    (test_project / ".weaverignore").write_text("!app.env.example\n")

    rules = IgnoreRules(test_project)

    assert not rules.should_ignore(test_project / "app.env.example")
    assert rules.should_ignore(test_project / "other.env.example")
    assert rules.should_ignore(test_project / "fixtures" / "a.json")


def test_paths_outside_project_are_ignored(test_project):
    rules = IgnoreRules(test_project / "src")

    assert rules.should_ignore(test_project / "README.md")
