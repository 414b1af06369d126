"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


PROJECT_PANEL = "Project"
OUTPUT_PANEL = "Output"

TaskArgument = Annotated[
    list[str] | None,
    typer.Argument(
        metavar="TASK...",
        help="Tasks to execute (defaults to 'reference').",
        show_default=False,
    ),
]

ProjectDirOption = Annotated[
    Path,
    typer.Option(
        "--project-dir",
        "-p",
        help="Project directory; relative paths are resolved against it.",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
        rich_help_panel=PROJECT_PANEL,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML configuration file (defaults to docbook-reference.yml in the project).",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=PROJECT_PANEL,
    ),
]

NameOption = Annotated[
    str | None,
    typer.Option(
        "--name",
        help="Root project name, used for the default PDF file name.",
        rich_help_panel=PROJECT_PANEL,
    ),
]

ProjectVersionOption = Annotated[
    str | None,
    typer.Option(
        "--project-version",
        help="Version substituted for ${version} in the entry-point file.",
        rich_help_panel=PROJECT_PANEL,
    ),
]

SourceDirOption = Annotated[
    Path | None,
    typer.Option(
        "--source-dir",
        "-s",
        help="DocBook source directory inherited by every format task.",
        file_okay=False,
        dir_okay=True,
        rich_help_panel=PROJECT_PANEL,
    ),
]

OutputDirOption = Annotated[
    Path | None,
    typer.Option(
        "--output-dir",
        "-o",
        help="Output root receiving reference-work, docbook-resources and reference/.",
        file_okay=False,
        dir_okay=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

PdfFilenameOption = Annotated[
    str | None,
    typer.Option(
        "--pdf-filename",
        help="File name of the generated PDF.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]


__all__ = [
    "ConfigOption",
    "NameOption",
    "OutputDirOption",
    "PdfFilenameOption",
    "ProjectDirOption",
    "ProjectVersionOption",
    "SourceDirOption",
    "TaskArgument",
]
