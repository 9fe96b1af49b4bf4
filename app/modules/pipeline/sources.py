"""Task sources."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from infrastructure.logging import get_module_logger
from modules.pipeline.models import Task

logger = get_module_logger()

DEFAULT_MEDIA_EXTENSIONS = (".mp4", ".mov", ".mkv", ".avi", ".webm", ".m4v")


class DirectoryTaskSource:
    """Lists media files below an inbox directory as tasks.

    The task id is the path relative to the inbox (POSIX separators), so it
    stays stable across restarts. Files are returned sorted by that id.

    Args:
        path: Inbox directory
        extensions: File suffixes to include (case-insensitive)
        recursive: Also scan subdirectories
    """

    def __init__(
        self,
        path: str | os.PathLike,
        extensions: Optional[Iterable[str]] = None,
        recursive: bool = True,
    ):
        self.path = Path(path)
        self.extensions = tuple(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in (extensions or DEFAULT_MEDIA_EXTENSIONS)
        )
        self.recursive = recursive

    def list_candidate_tasks(self) -> List[Task]:
        """List media files in the inbox.

        Raises:
            FileNotFoundError: If the inbox directory does not exist
        """
        if not self.path.is_dir():
            raise FileNotFoundError(f"Inbox directory not found: {self.path}")

        pattern = "**/*" if self.recursive else "*"
        tasks = []
        for file_path in self.path.glob(pattern):
            if not file_path.is_file() or file_path.name.startswith("."):
                continue
            if file_path.suffix.lower() not in self.extensions:
                continue
            stat = file_path.stat()
            tasks.append(
                Task(
                    task_id=file_path.relative_to(self.path).as_posix(),
                    name=file_path.name,
                    created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    metadata={"path": str(file_path), "size_bytes": stat.st_size},
                )
            )
        tasks.sort(key=lambda t: t.task_id)
        logger.debug("directory_tasks_listed", path=str(self.path), count=len(tasks))
        return tasks
