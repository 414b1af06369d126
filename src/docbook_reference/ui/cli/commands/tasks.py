"""Implementation of the ``tasks`` command."""

from __future__ import annotations

from pathlib import Path

from rich import box
from rich.table import Table

from .._options import ConfigOption, ProjectDirOption
from ..state import get_cli_state
from .build import load_project


def list_tasks(
    project_dir: ProjectDirOption = Path("."),
    config: ConfigOption = None,
) -> None:
    """List the tasks registered on the project."""
    project = load_project(project_dir, config)
    table = Table(
        title=f"Tasks of project '{project.name}'",
        box=box.SQUARE,
        show_edge=True,
        header_style="bold cyan",
    )
    table.add_column("Task", style="magenta")
    table.add_column("Group", style="green")
    table.add_column("Description")
    table.add_column("Depends on")

    for task in project.tasks:
        dependencies = ", ".join(dependency.name for dependency in task.dependencies)
        table.add_row(task.name, task.group or "-", task.description or "-", dependencies or "-")

    get_cli_state().console.print(table)


__all__ = ["list_tasks"]
