"""Bounded, most-recent-first log of completed AI tasks."""

from typing import Optional

from weaver.constants import DEFAULT_TASK_LOG_LIMIT
from weaver.repository import AITask


class TaskLog:
    """Append-only task history capped at a fixed size (oldest evicted)."""

    def __init__(self, limit: int = DEFAULT_TASK_LOG_LIMIT, tasks: Optional[list[AITask]] = None):
        if limit <= 0:
            raise ValueError("limit must be positive")
        self.limit = limit
        self._tasks: list[AITask] = list(tasks or [])[:limit]

    @property
    def tasks(self) -> list[AITask]:
        """Tasks, newest first."""
        return list(self._tasks)

    def add(self, task: AITask) -> None:
        self._tasks.insert(0, task)
        del self._tasks[self.limit:]

    def for_repository(self, repository_id: str) -> list[AITask]:
        return [t for t in self._tasks if t.repository_id == repository_id]

    def __len__(self) -> int:
        return len(self._tasks)

    def to_list(self) -> list[dict]:
        return [t.model_dump() for t in self._tasks]

    @classmethod
    def from_list(cls, data: list[dict], limit: int = DEFAULT_TASK_LOG_LIMIT) -> "TaskLog":
        return cls(limit=limit, tasks=[AITask(**item) for item in data])
