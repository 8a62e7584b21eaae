"""Per-repository run locks."""

import threading
from contextlib import contextmanager
from typing import Iterator

from weaver.errors import RepositoryBusyError


class RepositoryLocks:
    """Allows at most one agent run per repository at a time."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    @contextmanager
    def hold(self, repository_id: str) -> Iterator[None]:
        """Hold the repository for the duration of the block.

        Raises:
            RepositoryBusyError: Another run already holds it
        """
        with self._guard:
            lock = self._locks.setdefault(repository_id, threading.Lock())

        if not lock.acquire(blocking=False):
            raise RepositoryBusyError(f"An agent run is already in progress for repository {repository_id}")
        try:
            yield
        finally:
            lock.release()

    def is_held(self, repository_id: str) -> bool:
        with self._guard:
            lock = self._locks.get(repository_id)
        return lock is not None and lock.locked()


# Shared by every AgentLoop in the process unless one is injected
default_locks = RepositoryLocks()
