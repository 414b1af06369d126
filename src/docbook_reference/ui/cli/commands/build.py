"""Implementation of the ``build`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from rich.text import Text
import typer

from ....build import Project
from ....config import ReferenceConfig, load_config
from ....exceptions import DocbookReferenceError, exception_hint
from ....plugin import AGGREGATE_TASK, create_reference_project
from .._options import (
    ConfigOption,
    NameOption,
    OutputDirOption,
    PdfFilenameOption,
    ProjectDirOption,
    ProjectVersionOption,
    SourceDirOption,
    TaskArgument,
)
from ..state import debug_enabled, emit_error, get_cli_state


def apply_cli_overrides(
    config: ReferenceConfig,
    *,
    name: str | None = None,
    project_version: str | None = None,
    source_dir: Path | None = None,
    output_dir: Path | None = None,
    pdf_filename: str | None = None,
) -> ReferenceConfig:
    """Return a copy of ``config`` with the command-line values applied."""
    project = config.project.model_copy(
        update={
            key: value
            for key, value in {"name": name, "version": project_version}.items()
            if value is not None
        }
    )
    reference = config.reference.model_copy(
        update={
            key: value
            for key, value in {
                "source_dir": source_dir,
                "output_dir": output_dir,
                "pdf_filename": pdf_filename,
            }.items()
            if value is not None
        }
    )
    return config.model_copy(update={"project": project, "reference": reference})


def load_project(
    project_dir: Path,
    config_file: Path | None = None,
    **overrides: Any,
) -> Project:
    """Load configuration for ``project_dir`` and create the configured project."""
    config = apply_cli_overrides(load_config(project_dir, config_file), **overrides)
    return create_reference_project(config, project_dir)


def build(
    tasks: TaskArgument = None,
    project_dir: ProjectDirOption = Path("."),
    config: ConfigOption = None,
    name: NameOption = None,
    project_version: ProjectVersionOption = None,
    source_dir: SourceDirOption = None,
    output_dir: OutputDirOption = None,
    pdf_filename: PdfFilenameOption = None,
) -> None:
    """Generate the reference documentation."""
    state = get_cli_state()
    try:
        project = load_project(
            project_dir,
            config,
            name=name,
            project_version=project_version,
            source_dir=source_dir,
            output_dir=output_dir,
            pdf_filename=pdf_filename,
        )
        executed = project.run(*(tasks or [AGGREGATE_TASK]))
    except DocbookReferenceError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        hint = exception_hint(exc)
        if hint and hint != str(exc) and state.verbosity == 0:
            state.err_console.print(Text(hint, style="dim"))
        raise typer.Exit(code=1) from exc

    names = ", ".join(task.name for task in executed)
    state.console.print(f"[green]BUILD SUCCESSFUL[/green] ({names})")


__all__ = ["apply_cli_overrides", "build", "load_project"]
