"""Persistent workspace state: imported repositories and the task log."""

import json
from pathlib import Path
from typing import Optional

from weaver.constants import DEFAULT_TASK_LOG_LIMIT, WORKSPACE_DIR
from weaver.repository import AITask, Repository
from weaver.tools.task_log import TaskLog


class WorkspaceStore:
    """JSON-backed store under <project>/.weaver/state.json.

    Mirrors what a browser session keeps in local storage: the list of
    repositories (with file contents) and the task history.
    """

    def __init__(self, project_root: Path, task_log_limit: int = DEFAULT_TASK_LOG_LIMIT):
        """Initialize workspace store.

        Args:
            project_root: Directory whose .weaver/ folder holds the state file
            task_log_limit: Maximum number of tasks kept
        """
        self.project_root = project_root
        self.state_path = project_root / WORKSPACE_DIR / "state.json"
        self.repositories: list[Repository] = []
        self.task_log = TaskLog(limit=task_log_limit)

    def load(self) -> bool:
        """Load state from disk.

        Returns:
            True if a state file was read, False if none exists or it is invalid
        """
        if not self.state_path.exists():
            return False

        try:
            with open(self.state_path, encoding="utf-8") as f:
                data = json.load(f)
            repositories = [Repository(**r) for r in data.get("repositories", [])]
            task_log = TaskLog.from_list(data.get("tasks", []), limit=self.task_log.limit)
        except (json.JSONDecodeError, IOError, TypeError, ValueError):
            return False

        self.repositories = repositories
        self.task_log = task_log
        return True

    def save(self) -> None:
        """Write state to disk atomically (temp file + rename)."""
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "repositories": [r.model_dump() for r in self.repositories],
            "tasks": self.task_log.to_list(),
        }
        temp_path = self.state_path.with_suffix(".json.tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        temp_path.replace(self.state_path)

    def get_repository(self, repository_id: str) -> Optional[Repository]:
        for repo in self.repositories:
            if repo.id == repository_id:
                return repo
        return None

    def find_by_name(self, name: str) -> Optional[Repository]:
        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None

    def add_repository(self, repository: Repository) -> None:
        """Add a repository, replacing any existing one with the same id."""
        for i, repo in enumerate(self.repositories):
            if repo.id == repository.id:
                self.repositories[i] = repository
                return
        self.repositories.append(repository)

    def remove_repository(self, repository_id: str) -> bool:
        before = len(self.repositories)
        self.repositories = [r for r in self.repositories if r.id != repository_id]
        return len(self.repositories) < before

    def update_file_content(self, repository_id: str, path: str, content: str) -> bool:
        """Replace the content of one file.

        Returns:
            True if the repository and file were found
        """
        repo = self.get_repository(repository_id)
        if repo is None:
            return False
        code_file = repo.get_file(path)
        if code_file is None:
            return False
        code_file.content = content
        return True

    def add_task(self, task: AITask) -> None:
        self.task_log.add(task)
