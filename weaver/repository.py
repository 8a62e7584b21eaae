"""Repository, conversation and task data models."""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

from weaver.constants import TEXT_EXTENSIONS
from weaver.utils.ignore import IgnoreRules


def new_id() -> str:
    """Generate a unique identifier."""
    return uuid.uuid4().hex


def utc_now() -> str:
    """Current time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class CodeFile(BaseModel):
    """A single file held in memory."""

    path: str = Field(description="Path relative to the repository root, unique within it")
    content: str = Field(description="Full text content")


class Repository(BaseModel):
    """An imported repository and its files, in import order."""

    id: str = Field(default_factory=new_id)
    name: str
    url: str = ""
    description: str = ""
    language: str = ""
    status: Literal["importing", "imported", "failed"] = "imported"
    imported_at: str = Field(default_factory=utc_now)
    files: list[CodeFile] = Field(default_factory=list)

    def file_paths(self) -> list[str]:
        """Paths of all files, in import order."""
        return [f.path for f in self.files]

    def get_file(self, path: str) -> Optional[CodeFile]:
        """Find a file by exact path."""
        for f in self.files:
            if f.path == path:
                return f
        return None


class CodeChange(BaseModel):
    """A change to one file, shown to the user as a diff card."""

    file_path: str
    original_code: str
    modified_code: str


class ConversationMessage(BaseModel):
    """One message in a conversation transcript."""

    id: str = Field(default_factory=new_id)
    role: Literal["user", "assistant", "system"]
    content: str
    attached_change: Optional[CodeChange] = None

    model_config = {"frozen": True}

    def to_turn(self) -> dict[str, str]:
        """Role/content dict for the model client."""
        return {"role": self.role, "content": self.content}


class AITask(BaseModel):
    """Audit record of a completed file write."""

    id: str = Field(default_factory=new_id)
    repository_id: str
    prompt: str
    status: Literal["pending", "in-progress", "completed", "failed"] = "completed"
    created_at: str = Field(default_factory=utc_now)
    completed_at: Optional[str] = None
    original_code: Optional[str] = None
    modified_code: Optional[str] = None
    lines_added: int = 0
    lines_removed: int = 0


def _is_likely_text(path: Path) -> bool:
    if path.suffix.lower() in TEXT_EXTENSIONS:
        return True

    try:
        with open(path, "rb") as f:
            chunk = f.read(512)
    except (IOError, OSError):
        return False

    if len(chunk) == 0:
        return True
    if b"\x00" in chunk:
        return False
    printable_ratio = sum(1 for b in chunk if 32 <= b < 127 or b in (9, 10, 13)) / len(chunk)
    return printable_ratio > 0.7


def load_repository(
    project_root: Path,
    ignore_rules: Optional[IgnoreRules] = None,
    max_file_size_mb: int = 2,
    name: Optional[str] = None,
) -> Repository:
    """Load a local directory into an in-memory Repository.

    Args:
        project_root: Directory to load
        ignore_rules: Ignore rules to apply (built from project_root if omitted)
        max_file_size_mb: Files larger than this are skipped
        name: Repository name (defaults to the directory name)

    Returns:
        Repository with one CodeFile per readable text file
    """
    project_root = project_root.resolve()
    rules = ignore_rules or IgnoreRules(project_root)
    max_bytes = max_file_size_mb * 1024 * 1024
    files = []

    for path in sorted(project_root.rglob("*")):
        if path.is_dir():
            continue

        if rules.should_ignore(path):
            continue

        try:
            if path.stat().st_size > max_bytes:
                continue
        except OSError:
            continue

        if not _is_likely_text(path):
            continue

        try:
            content = path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError):
            continue

        rel_path = path.relative_to(project_root).as_posix()
        files.append(CodeFile(path=rel_path, content=content))

    return Repository(
        id=new_id(),
        name=name or project_root.name,
        url=project_root.as_uri(),
        files=files,
    )
