"""Register the reference documentation tasks on a project."""

from __future__ import annotations

import logging
from pathlib import Path

from slugify import slugify

from .build import BasePlugin, Project, Task, TaskGraph
from .config import ReferenceConfig, ReferenceSettings
from .exceptions import ConfigurationError
from .tasks import (
    DocbookReferenceTask,
    HtmlMultiDocbookReferenceTask,
    HtmlSingleDocbookReferenceTask,
    PdfDocbookReferenceTask,
)


logger = logging.getLogger(__name__)

AGGREGATE_TASK = "reference"
HTML_MULTI_TASK = "reference-html-multi"
HTML_SINGLE_TASK = "reference-html-single"
PDF_TASK = "reference-pdf"

FORMAT_TASKS: dict[str, type[DocbookReferenceTask]] = {
    HTML_MULTI_TASK: HtmlMultiDocbookReferenceTask,
    HTML_SINGLE_TASK: HtmlSingleDocbookReferenceTask,
    PDF_TASK: PdfDocbookReferenceTask,
}


def default_pdf_filename(project: Project) -> str:
    """Return ``<root project slug>-reference.pdf``."""
    return f"{slugify(project.root_project.name)}-reference.pdf"


class ReferenceTask(Task):
    """Aggregate task building every reference format."""

    group = "Documentation"
    description = "Generates HTML and PDF reference documentation."

    def __init__(self, name: str, project: Project) -> None:
        super().__init__(name, project)
        self.settings = ReferenceSettings()

    @property
    def source_dir(self) -> Path | None:
        return self.settings.source_dir

    @source_dir.setter
    def source_dir(self, value: str | Path | None) -> None:
        self.settings.source_dir = None if value is None else self.project.file(value)

    @property
    def output_dir(self) -> Path | None:
        return self.settings.output_dir

    @output_dir.setter
    def output_dir(self, value: str | Path | None) -> None:
        self.settings.output_dir = None if value is None else self.project.file(value)

    @property
    def pdf_filename(self) -> str | None:
        return self.settings.pdf_filename

    @pdf_filename.setter
    def pdf_filename(self, value: str | None) -> None:
        self.settings.pdf_filename = value


class DocbookReferencePlugin:
    """Add the HTML, PDF and aggregate reference tasks to a project."""

    def apply(self, project: Project) -> None:
        project.apply(BasePlugin)

        for name, task_type in FORMAT_TASKS.items():
            project.tasks.register(name, task_type)

        aggregate = project.tasks.register(AGGREGATE_TASK, ReferenceTask)
        aggregate.settings = ReferenceSettings(
            output_dir=project.build_dir,
            pdf_filename=default_pdf_filename(project),
        )
        aggregate.depends_on(*FORMAT_TASKS)

        project.task_graph.when_ready(lambda graph: self._resolve_tasks(project, graph))

    @staticmethod
    def _resolve_tasks(project: Project, graph: TaskGraph) -> None:
        aggregate = project.tasks[AGGREGATE_TASK]
        assert isinstance(aggregate, ReferenceTask)
        settings = aggregate.settings
        pdf_filename = settings.pdf_filename or default_pdf_filename(project)
        for task in project.tasks:
            if isinstance(task, DocbookReferenceTask):
                task.resolve(settings, pdf_filename=pdf_filename)


def configure_project(project: Project, config: ReferenceConfig) -> Project:
    """Apply the aggregate settings and per-task overrides of ``config``."""
    aggregate = project.tasks[AGGREGATE_TASK]
    assert isinstance(aggregate, ReferenceTask)

    reference = config.reference
    if reference.source_dir is not None:
        aggregate.source_dir = reference.source_dir
    if reference.output_dir is not None:
        aggregate.output_dir = reference.output_dir
    if reference.pdf_filename is not None:
        aggregate.pdf_filename = reference.pdf_filename
    aggregate.settings.syntax_highlighting = reference.syntax_highlighting
    aggregate.settings.variables = dict(reference.variables)

    for name, overrides in config.tasks.items():
        task = project.tasks[name]
        if not isinstance(task, DocbookReferenceTask):
            raise ConfigurationError(f"Task '{name}' does not accept reference overrides.")
        for key, value in overrides.model_dump(exclude_none=True).items():
            setattr(task, key, value)

    pdf_task = project.tasks[PDF_TASK]
    if isinstance(pdf_task, PdfDocbookReferenceTask) and config.fop.command:
        pdf_task.fop_command = config.fop.command
    return project


def create_reference_project(config: ReferenceConfig, project_dir: str | Path) -> Project:
    """Create a project for ``project_dir`` with the reference tasks configured."""
    root = Path(project_dir).resolve()
    project = Project(
        config.project.name or root.name,
        project_dir=root,
        version=config.project.version,
        build_dir=config.project.build_dir,
    )
    project.apply(DocbookReferencePlugin)
    configure_project(project, config)
    logger.debug("Configured project %s (version %s)", project.name, project.version)
    return project


__all__ = [
    "AGGREGATE_TASK",
    "FORMAT_TASKS",
    "HTML_MULTI_TASK",
    "HTML_SINGLE_TASK",
    "PDF_TASK",
    "DocbookReferencePlugin",
    "ReferenceTask",
    "configure_project",
    "create_reference_project",
    "default_pdf_filename",
]
