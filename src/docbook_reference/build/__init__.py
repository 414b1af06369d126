"""Minimal build host: projects, tasks and a task graph with ready hooks."""

from __future__ import annotations

from .base import CLEAN_TASK, BasePlugin, Delete
from .project import Plugin, Project
from .tasks import Task, TaskContainer, TaskGraph, TaskState


__all__ = [
    "CLEAN_TASK",
    "BasePlugin",
    "Delete",
    "Plugin",
    "Project",
    "Task",
    "TaskContainer",
    "TaskGraph",
    "TaskState",
]
