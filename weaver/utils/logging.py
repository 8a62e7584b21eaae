"""Session logging utilities."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from weaver.constants import WORKSPACE_DIR


class SessionLogger:
    """Handles logging for a Weaver session."""

    def __init__(self, project_root: Path, run_id: Optional[str] = None):
        """Initialize session logger.

        Args:
            project_root: Project root directory
            run_id: Optional run ID (generated if not provided)
        """
        self.project_root = project_root
        self.run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S_%f")

        self.log_dir = project_root / WORKSPACE_DIR / "runs" / self.run_id
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.transcript_path = self.log_dir / "transcript.ndjson"
        self.tasks_path = self.log_dir / "tasks.json"
        self.diffs_dir = self.log_dir / "diffs"

        self.diffs_dir.mkdir(exist_ok=True)

    def log_message(self, role: str, content: str, **extra) -> None:
        """Log a conversation message.

        Args:
            role: Message role (user, assistant, system)
            content: Message content
            **extra: Additional fields (e.g. turn, action)
        """
        entry = {
            "ts": datetime.now().isoformat(),
            "role": role,
            "content": content,
        }
        entry.update(extra)

        with open(self.transcript_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")

    def save_diff(self, filename: str, diff_content: str) -> Path:
        """Save a diff to disk.

        Args:
            filename: File path the diff applies to
            diff_content: Diff content

        Returns:
            Path of the written diff file
        """
        safe_name = "".join(c if c.isalnum() or c in "-_." else "_" for c in filename)
        timestamp = datetime.now().strftime("%H%M%S_%f")
        diff_path = self.diffs_dir / f"{timestamp}_{safe_name}.diff"
        with open(diff_path, "w", encoding="utf-8") as f:
            f.write(diff_content)
        return diff_path

    def save_tasks(self, tasks: list[dict]) -> None:
        """Save a snapshot of the task log."""
        with open(self.tasks_path, "w", encoding="utf-8") as f:
            json.dump(tasks, f, indent=2)

    def get_log_path(self) -> str:
        """Get the path to the log directory.

        Returns:
            Absolute path to log directory
        """
        return str(self.log_dir.absolute())
