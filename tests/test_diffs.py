"""Tests for the line diff engine."""

import random
import tracemalloc

import pytest

from weaver.utils.diffs import DiffLine, create_patch, diff_lines, diff_stats, reconstruct, split_lines


def test_single_line_replacement():
    """Test that a changed middle line shows as removed then added."""
    diff = diff_lines("line1\nline2\nline3", "line1\nlineX\nline3")

    assert diff == [
        DiffLine("line1"),
        DiffLine("line2", removed=True),
        DiffLine("lineX", added=True),
        DiffLine("line3"),
    ]


def test_identical_inputs_are_unchanged():
    """Test that diffing a text with itself yields only unchanged lines."""
    text = "a\nb\n\nc\n"
    diff = diff_lines(text, text)

    assert all(line.unchanged for line in diff)
    assert [line.value for line in diff] == split_lines(text)


def test_empty_original_is_all_added():
    diff = diff_lines("", "x\ny")

    assert diff == [DiffLine("x", added=True), DiffLine("y", added=True)]


def test_empty_modified_is_all_removed():
    diff = diff_lines("x\ny", "")

    assert diff == [DiffLine("x", removed=True), DiffLine("y", removed=True)]


def test_both_empty():
    assert diff_lines("", "") == []


def test_trailing_newline_is_a_real_difference():
    """Test that a trailing newline is preserved, not normalized away."""
    diff = diff_lines("a", "a\n")

    assert diff == [DiffLine("a"), DiffLine("", added=True)]


def test_carriage_returns_are_preserved():
    diff = diff_lines("a\r\nb", "a\nb")

    assert DiffLine("a\r", removed=True) in diff
    assert DiffLine("a", added=True) in diff
    assert DiffLine("b") in diff


def test_diff_is_minimal():
    """Test that only the changed lines are reported."""
    original = "\n".join(f"line{i}" for i in range(50))
    modified = original.replace("line10", "changed10").replace("line40\n", "")

    stats = diff_stats(diff_lines(original, modified))

    assert stats == {"added": 1, "removed": 2, "unchanged": 48}


@pytest.mark.parametrize(
    "original,modified",
    [
        ("a\nb\nc\nd", "a\nc\nd\ne"),
        ("", "only\nnew\n"),
        ("x\n", ""),
        ("same\n", "same\n"),
        ("a\nb\na\nb\na", "b\na\nb\nb"),
        ("\n\n\n", "\n"),
        ("def f():\n    return 1\n", "def f():\n    x = 2\n    return x\n"),
    ],
)
def test_reconstructs_both_sides(original, modified):
    """Test that the edit script rebuilds the original and the modified text."""
    diff = diff_lines(original, modified)

    assert reconstruct(diff, "modified") == modified
    assert reconstruct(diff, "original") == original


def test_block_changes_list_removals_first():
    diff = diff_lines("keep\nold1\nold2\nkeep2", "keep\nnew1\nnew2\nkeep2")

    assert diff == [
        DiffLine("keep"),
        DiffLine("old1", removed=True),
        DiffLine("old2", removed=True),
        DiffLine("new1", added=True),
        DiffLine("new2", added=True),
        DiffLine("keep2"),
    ]


def test_large_rewrite_uses_little_memory():
    """Test that a full rewrite of a large file diffs without quadratic memory."""
    original = "\n".join(f"old{i}" for i in range(3000))
    modified = "\n".join(f"new{i}" for i in range(3000))

    tracemalloc.start()
    try:
        diff = diff_lines(original, modified)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    assert peak < 20 * 1024 * 1024
    assert diff_stats(diff) == {"added": 3000, "removed": 3000, "unchanged": 0}
    assert reconstruct(diff, "modified") == modified


def test_large_scattered_edits_stay_minimal():
    lines = [f"line{i}" for i in range(2000)]
    original = "\n".join(lines)
    modified = "\n".join(f"changed{i}" if i % 3 == 0 else line for i, line in enumerate(lines))

    tracemalloc.start()
    try:
        diff = diff_lines(original, modified)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    assert peak < 20 * 1024 * 1024
    assert diff_stats(diff) == {"added": 667, "removed": 667, "unchanged": 1333}
    assert reconstruct(diff, "original") == original
    assert reconstruct(diff, "modified") == modified


def _lcs_length(a, b):
    row = [0] * (len(b) + 1)
    for x in a:
        prev = 0
        for j, y in enumerate(b):
            prev, row[j + 1] = row[j + 1], prev + 1 if x == y else max(row[j + 1], row[j])
    return row[-1]


@pytest.mark.parametrize("seed", range(40))
def test_random_edits_are_minimal(seed):
    """Test that the number of unchanged lines equals the longest common subsequence."""
    rng = random.Random(seed)
    original = [rng.choice("abcde") for _ in range(rng.randint(0, 30))]
    modified = [rng.choice("abcde") for _ in range(rng.randint(0, 30))]

    diff = diff_lines("\n".join(original), "\n".join(modified))

    assert diff_stats(diff)["unchanged"] == _lcs_length(split_lines("\n".join(original)), split_lines("\n".join(modified)))
    assert reconstruct(diff, "original") == "\n".join(original)
    assert reconstruct(diff, "modified") == "\n".join(modified)


def test_create_patch_has_headers_and_hunks():
    patch = create_patch("a\nb\n", "a\nc\n", "src/x.py")

    assert "--- a/src/x.py" in patch
    assert "+++ b/src/x.py" in patch
    assert "-b" in patch
    assert "+c" in patch
