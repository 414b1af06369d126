"""Tasks, task containers and the task execution graph."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from enum import Enum
import logging
from typing import TYPE_CHECKING, TypeVar

from ..exceptions import ConfigurationError, TaskExecutionError


if TYPE_CHECKING:
    from .project import Project


logger = logging.getLogger(__name__)

TaskT = TypeVar("TaskT", bound="Task")


class TaskState(str, Enum):
    """Lifecycle of a task within one build."""

    UNCONFIGURED = "UNCONFIGURED"
    CONFIGURED = "CONFIGURED"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"


class Task:
    """Named unit of work registered on a project."""

    description: str | None = None
    group: str | None = None

    def __init__(self, name: str, project: Project) -> None:
        self.name = name
        self.project = project
        self.state = TaskState.UNCONFIGURED
        self._dependencies: list[Task | str] = []
        self._actions: list[Callable[[Task], None]] = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} {self.state.value}>"

    @property
    def dependencies(self) -> list[Task]:
        """Return the tasks this task depends on, resolving names lazily."""
        return [
            self.project.tasks[item] if isinstance(item, str) else item
            for item in self._dependencies
        ]

    def depends_on(self, *tasks: Task | str) -> Task:
        """Declare dependencies that must run before this task."""
        self._dependencies.extend(tasks)
        return self

    def do_last(self, action: Callable[[Task], None]) -> Task:
        """Append an action executed after :meth:`run`."""
        self._actions.append(action)
        return self

    def run(self) -> None:
        """Primary task action; the default task does nothing on its own."""

    def execute(self) -> None:
        """Run the task action and any additional actions, tracking the state."""
        self.state = TaskState.RUNNING
        try:
            self.run()
            for action in self._actions:
                action(self)
        except BaseException:
            self.state = TaskState.FAILED
            raise
        self.state = TaskState.DONE


class TaskContainer:
    """Registry of the tasks of a project."""

    def __init__(self, project: Project) -> None:
        self._project = project
        self._tasks: dict[str, Task] = {}

    def register(
        self,
        name: str,
        task_type: type[TaskT] = Task,  # type: ignore[assignment]
        **attributes: object,
    ) -> TaskT:
        """Create a task of ``task_type`` and assign ``attributes`` on it."""
        if name in self._tasks:
            raise ConfigurationError(
                f"Cannot add task '{name}' as a task with that name already exists."
            )
        task = task_type(name, self._project)
        for key, value in attributes.items():
            setattr(task, key, value)
        self._tasks[name] = task
        return task

    def get(self, name: str) -> Task | None:
        return self._tasks.get(name)

    def names(self) -> list[str]:
        return list(self._tasks)

    def __getitem__(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            available = ", ".join(sorted(self._tasks)) or "<none>"
            raise ConfigurationError(
                f"Task '{name}' not found in project '{self._project.name}'. "
                f"Available tasks: {available}."
            ) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)


class TaskGraph:
    """Ordered set of tasks selected for execution."""

    def __init__(self) -> None:
        self._ready_hooks: list[Callable[[TaskGraph], None]] = []
        self._tasks: list[Task] = []
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def all_tasks(self) -> list[Task]:
        return list(self._tasks)

    def has_task(self, task: Task | str) -> bool:
        name = task if isinstance(task, str) else task.name
        return any(candidate.name == name for candidate in self._tasks)

    def when_ready(self, hook: Callable[[TaskGraph], None]) -> None:
        """Register ``hook`` to run once the graph has been populated."""
        if self._ready:
            hook(self)
            return
        self._ready_hooks.append(hook)

    def populate(self, targets: Iterable[Task]) -> list[Task]:
        """Order ``targets`` and their dependencies, then fire the ready hooks."""
        if self._ready:
            raise ConfigurationError("The task graph has already been populated.")

        ordered: list[Task] = []
        visiting: list[Task] = []

        def visit(task: Task) -> None:
            if task in ordered:
                return
            if task in visiting:
                cycle = " -> ".join(item.name for item in [*visiting, task])
                raise ConfigurationError(f"Circular dependency between tasks: {cycle}")
            visiting.append(task)
            for dependency in task.dependencies:
                visit(dependency)
            visiting.pop()
            ordered.append(task)

        for target in targets:
            visit(target)

        self._tasks = ordered
        self._ready = True
        for hook in self._ready_hooks:
            hook(self)
        self._ready_hooks.clear()
        for task in ordered:
            task.state = TaskState.CONFIGURED
        return list(ordered)

    def execute(self) -> None:
        """Execute the populated tasks in order, stopping at the first failure."""
        if not self._ready:
            raise ConfigurationError("The task graph has not been populated.")
        for task in self._tasks:
            logger.info("> Task :%s", task.name)
            try:
                task.execute()
            except Exception as exc:
                logger.debug("Task '%s' failed", task.name, exc_info=exc)
                raise TaskExecutionError(task.name, exc) from exc


__all__ = ["Task", "TaskContainer", "TaskGraph", "TaskState"]
