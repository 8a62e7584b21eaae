"""Line-level diffs for displaying and logging suggested changes."""

import difflib
from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class DiffLine:
    """One line of an edit script, in display order."""

    value: str
    added: bool = False
    removed: bool = False

    @property
    def unchanged(self) -> bool:
        return not (self.added or self.removed)


def split_lines(text: str) -> list[str]:
    """Split text into lines on "\\n" only.

    The empty string has no lines. Any other text keeps every line exactly,
    including a trailing empty line when the text ends with a newline and any
    "\\r" characters, so that joining with "\\n" gives the text back.
    """
    if text == "":
        return []
    return text.split("\n")


def _first_point(v: list[int], offset: int, k: int, n: int, m: int) -> int:
    """x of the furthest point on diagonal k one edit beyond the previous round.

    v holds -1 for diagonals with no path yet. Moves that leave the n x m edit
    graph are not taken. Returns -1 if diagonal k cannot be reached.
    """
    down = v[offset + k + 1]
    right = v[offset + k - 1] + 1 if v[offset + k - 1] >= 0 else -1
    down_ok = down >= 0 and down - k <= m
    right_ok = 0 <= right <= n
    if down_ok and (not right_ok or right - 1 < down):
        return down
    if right_ok:
        return right
    return -1


def _middle_snake(a: list[str], b: list[str], a_lo: int, a_hi: int, b_lo: int, b_hi: int) -> tuple[int, int, int, int]:
    """Find the middle snake of a shortest edit path between two slices.

    Runs Myers' forward and reverse searches together until they overlap. Only
    two V arrays of size O(n+m) are kept, whatever the edit distance.

    Returns:
        (x0, y0, x1, y1): start and end of the snake, relative to a_lo and b_lo
    """
    n, m = a_hi - a_lo, b_hi - b_lo
    delta = n - m
    odd = delta % 2 != 0
    max_d = (n + m + 1) // 2
    offset = max_d + 1
    forward = [-1] * (2 * max_d + 3)
    reverse = [-1] * (2 * max_d + 3)
    forward[offset + 1] = 0
    reverse[offset + 1] = 0

    for d in range(max_d + 1):
        for k in range(-d, d + 1, 2):
            x = _first_point(forward, offset, k, n, m)
            forward[offset + k] = x
            if x < 0:
                continue
            y = x - k
            x0, y0 = x, y
            while x < n and y < m and a[a_lo + x] == b[b_lo + y]:
                x += 1
                y += 1
            forward[offset + k] = x

            c = delta - k
            if odd and -(d - 1) <= c <= d - 1 and reverse[offset + c] >= 0 and x + reverse[offset + c] >= n:
                return x0, y0, x, y

        # Reverse search walks from the end, in coordinates mirrored through (n, m)
        for c in range(-d, d + 1, 2):
            x = _first_point(reverse, offset, c, n, m)
            reverse[offset + c] = x
            if x < 0:
                continue
            y = x - c
            x0, y0 = x, y
            while x < n and y < m and a[a_hi - x - 1] == b[b_hi - y - 1]:
                x += 1
                y += 1
            reverse[offset + c] = x

            k = delta - c
            if not odd and -d <= k <= d and forward[offset + k] >= 0 and forward[offset + k] + x >= n:
                return n - x, m - y, n - x0, m - y0

    raise AssertionError("no middle snake found")


def _edit_script(a: list[str], b: list[str]) -> list[DiffLine]:
    """Linear-space Myers diff, divided at middle snakes with an explicit stack."""
    script: list[DiffLine] = []
    # Entries are ("diff", a_lo, a_hi, b_lo, b_hi) or ("same", a_lo, a_hi)
    stack: list[tuple] = [("diff", 0, len(a), 0, len(b))]

    while stack:
        item = stack.pop()
        if item[0] == "same":
            script.extend(DiffLine(a[i]) for i in range(item[1], item[2]))
            continue

        _, a_lo, a_hi, b_lo, b_hi = item

        prefix_end = a_lo
        while a_lo < a_hi and b_lo < b_hi and a[a_lo] == b[b_lo]:
            a_lo += 1
            b_lo += 1
        suffix_start = a_hi
        while a_hi > a_lo and b_hi > b_lo and a[a_hi - 1] == b[b_hi - 1]:
            a_hi -= 1
            b_hi -= 1
        script.extend(DiffLine(a[i]) for i in range(prefix_end, a_lo))

        if a_lo == a_hi or b_lo == b_hi or set(a[a_lo:a_hi]).isdisjoint(b[b_lo:b_hi]):
            script.extend(DiffLine(a[i], removed=True) for i in range(a_lo, a_hi))
            script.extend(DiffLine(b[j], added=True) for j in range(b_lo, b_hi))
        else:
            x0, y0, x1, y1 = _middle_snake(a, b, a_lo, a_hi, b_lo, b_hi)
            # Popped in reverse: head, snake, tail
            stack.append(("same", a_hi, suffix_start))
            stack.append(("diff", a_lo + x1, a_hi, b_lo + y1, b_hi))
            stack.append(("same", a_lo + x0, a_lo + x1))
            stack.append(("diff", a_lo, a_lo + x0, b_lo, b_lo + y0))
            continue

        script.extend(DiffLine(a[i]) for i in range(a_hi, suffix_start))

    return script


def _group_changes(script: list[DiffLine]) -> list[DiffLine]:
    """Within each run of changed lines, list removals before additions."""
    grouped: list[DiffLine] = []
    removed: list[DiffLine] = []
    added: list[DiffLine] = []
    for line in script:
        if line.removed:
            removed.append(line)
        elif line.added:
            added.append(line)
        else:
            grouped.extend(removed)
            grouped.extend(added)
            removed, added = [], []
            grouped.append(line)
    grouped.extend(removed)
    grouped.extend(added)
    return grouped


def diff_lines(original: str, modified: str) -> list[DiffLine]:
    """Compute a minimal line edit script from original to modified.

    Every original line appears once, as unchanged or removed. Every modified
    line appears once, as unchanged or added. Within a changed block removals
    come before additions. Memory stays linear in the number of lines.

    Args:
        original: Original text
        modified: Modified text

    Returns:
        List of DiffLine entries in display order
    """
    return _group_changes(_edit_script(split_lines(original), split_lines(modified)))


def reconstruct(diff: list[DiffLine], side: Literal["original", "modified"]) -> str:
    """Rebuild one side of a diff.

    Args:
        diff: Edit script from diff_lines
        side: "original" keeps lines not added, "modified" keeps lines not removed

    Returns:
        Text of the requested side
    """
    if side == "original":
        lines = [line.value for line in diff if not line.added]
    else:
        lines = [line.value for line in diff if not line.removed]
    return "\n".join(lines)


def diff_stats(diff: list[DiffLine]) -> dict[str, int]:
    """Count added, removed and unchanged lines."""
    added = sum(1 for line in diff if line.added)
    removed = sum(1 for line in diff if line.removed)
    return {
        "added": added,
        "removed": removed,
        "unchanged": len(diff) - added - removed,
    }


def create_patch(original: str, modified: str, filename: str = "file") -> str:
    """Create a unified diff patch.

    Args:
        original: Original file content
        modified: Modified file content
        filename: Filename to use in patch header

    Returns:
        Unified diff string
    """
    original_lines = original.splitlines(keepends=True)
    modified_lines = modified.splitlines(keepends=True)

    diff = difflib.unified_diff(
        original_lines,
        modified_lines,
        fromfile=f"a/{filename}",
        tofile=f"b/{filename}",
    )

    return "".join(diff)
