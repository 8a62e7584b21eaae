"""In-memory file access for the agent loop."""

from typing import Optional

from weaver.repository import Repository


def normalize_path(path: str) -> str:
    """Strip surrounding whitespace and any leading "./" segments."""
    path = path.strip()
    while path.startswith("./"):
        path = path[2:]
    return path


class RepositoryFileStore:
    """Reads and writes files of one in-memory Repository.

    Only files that already exist in the repository can be written. The store
    never creates files and never touches the real filesystem.
    """

    def __init__(self, repository: Repository):
        self.repository = repository

    @property
    def repository_id(self) -> str:
        return self.repository.id

    def list_files(self) -> list[str]:
        """List known paths in import order."""
        return self.repository.file_paths()

    def has_file(self, path: str) -> bool:
        return self.repository.get_file(normalize_path(path)) is not None

    def read(self, path: str) -> tuple[bool, Optional[str], Optional[str]]:
        """Read a file.

        Args:
            path: Path, optionally prefixed with "./"

        Returns:
            Tuple of (success, content, error)
        """
        code_file = self.repository.get_file(normalize_path(path))
        if code_file is None:
            return False, None, f"File not found: {path}"
        return True, code_file.content, None

    def write(self, path: str, content: str) -> tuple[bool, Optional[str]]:
        """Replace the content of an existing file.

        Args:
            path: Path, optionally prefixed with "./"
            content: New content

        Returns:
            Tuple of (success, error)
        """
        code_file = self.repository.get_file(normalize_path(path))
        if code_file is None:
            return False, f"File not found: {path}"
        code_file.content = content
        return True, None
