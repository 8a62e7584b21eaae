"""Ignore rules for importing a local directory, using pathspec."""

from pathlib import Path

import pathspec

from weaver.constants import BUILTIN_IGNORES, IGNORE_FILES


def _read_patterns(path: Path) -> list[str]:
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
    except (IOError, UnicodeDecodeError):
        return []  # Unreadable ignore file behaves like a missing one
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


class IgnoreRules:
    """Decides which files of a project are left out of an import.

    Patterns come from BUILTIN_IGNORES, then each file in IGNORE_FILES. Later
    patterns override earlier ones, so a "!pattern" in .weaverignore brings
    back a file that .gitignore excludes.
    """

    def __init__(self, project_root: Path):
        self.project_root = project_root
        self.sources: list[Path] = [
            project_root / name for name in IGNORE_FILES if (project_root / name).is_file()
        ]

        patterns = list(BUILTIN_IGNORES)
        for source in self.sources:
            patterns.extend(_read_patterns(source))
        self.spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)

    def should_ignore(self, path: Path) -> bool:
        """Check a path against the combined patterns.

        Args:
            path: Absolute path, or a path relative to the project root

        Returns:
            True if the file is excluded; paths outside the project always are
        """
        if path.is_absolute():
            try:
                path = path.relative_to(self.project_root)
            except ValueError:
                return True
        return self.spec.match_file(path.as_posix())
