"""Build project holding tasks, directories and the task graph."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, TypeVar

from .tasks import Task, TaskContainer, TaskGraph


class Plugin(Protocol):
    """Object contributing tasks and conventions to a project."""

    def apply(self, project: Project) -> None: ...


PluginT = TypeVar("PluginT", bound=Plugin)


class Project:
    """Documented project: identity, directories, tasks and task graph."""

    def __init__(
        self,
        name: str,
        *,
        project_dir: str | Path | None = None,
        version: str = "unspecified",
        build_dir: str | Path | None = None,
        root_project: Project | None = None,
    ) -> None:
        self.name = name
        self.version = version
        self.project_dir = Path(project_dir or Path.cwd()).resolve()
        self.build_dir = self.file(build_dir if build_dir is not None else "build")
        self.root_project = root_project or self
        self.tasks = TaskContainer(self)
        self.task_graph = TaskGraph()
        self._plugins: dict[type, Plugin] = {}

    def __repr__(self) -> str:
        return f"<Project {self.name!r} {self.project_dir}>"

    def file(self, path: str | Path) -> Path:
        """Resolve ``path`` relative to the project directory."""
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.project_dir / candidate
        return candidate.resolve()

    def apply(self, plugin: type[PluginT] | PluginT) -> PluginT:
        """Apply ``plugin`` once, returning the applied instance."""
        plugin_type = plugin if isinstance(plugin, type) else type(plugin)
        existing = self._plugins.get(plugin_type)
        if existing is not None:
            return existing  # type: ignore[return-value]
        instance = plugin() if isinstance(plugin, type) else plugin
        self._plugins[plugin_type] = instance
        instance.apply(self)
        return instance

    def has_plugin(self, plugin_type: type) -> bool:
        return plugin_type in self._plugins

    def run(self, *task_names: str) -> list[Task]:
        """Populate the task graph with ``task_names`` and execute it."""
        targets = [self.tasks[name] for name in task_names]
        tasks = self.task_graph.populate(targets)
        self.task_graph.execute()
        return tasks


__all__ = ["Plugin", "Project"]
