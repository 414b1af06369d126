"""Base conventions shared by every project, such as the ``clean`` task."""

from __future__ import annotations

import logging
from pathlib import Path
import shutil
from typing import TYPE_CHECKING

from .tasks import Task


if TYPE_CHECKING:
    from .project import Project


logger = logging.getLogger(__name__)

CLEAN_TASK = "clean"


class Delete(Task):
    """Delete files and directories."""

    group = "Build"
    description = "Deletes the build directory."

    def __init__(self, name: str, project: Project) -> None:
        super().__init__(name, project)
        self.targets: list[Path] = []

    def run(self) -> None:
        for target in self.targets:
            if target.is_dir():
                shutil.rmtree(target)
            elif target.exists():
                target.unlink()
            else:
                continue
            logger.info("Deleted %s", target)


class BasePlugin:
    """Register the ``clean`` task."""

    def apply(self, project: Project) -> None:
        if CLEAN_TASK not in project.tasks:
            project.tasks.register(CLEAN_TASK, Delete, targets=[project.build_dir])


__all__ = ["CLEAN_TASK", "BasePlugin", "Delete"]
