"""DocBook format tasks: single-page HTML, multi-page HTML and PDF.

Each task keeps its user-facing settings in a mutable :class:`PendingJob` until
the task graph is ready. At that point the plugin resolves the pending settings
against the aggregate task into an immutable :class:`DocumentJob`, which the
task consumes when it executes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import partial
import logging
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from .build import Task
from .exceptions import ConfigurationError, SourceDirectoryError
from .pipeline.catalog import CatalogManager, create_catalog_manager
from .pipeline.filtering import DEFAULT_SOURCE_FILE_NAME, WORK_DIR_NAME, filter_sources
from .pipeline.finishers import (
    FopFormatter,
    Formatter,
    copy_images_and_css,
    finish_pdf,
    multi_page_parameters,
    pdf_parameters,
)
from .pipeline.resources import RESOURCES_DIR_NAME, ResourceBundle, unpack_resources
from .pipeline.transform import TransformParameters, TransformRunner


if TYPE_CHECKING:
    from .build import Project
    from .config import ReferenceSettings


logger = logging.getLogger(__name__)

REFERENCE_DIR_NAME = "reference"


@dataclass(slots=True)
class PendingJob:
    """Task settings that may still change before the graph is ready."""

    source_dir: Path | None = None
    output_dir: Path | None = None
    stylesheet: str | None = None
    source_file_name: str = DEFAULT_SOURCE_FILE_NAME


@dataclass(frozen=True, slots=True)
class DocumentJob:
    """Fully resolved settings of one format task."""

    source_dir: Path | None
    output_dir: Path
    source_file_name: str
    stylesheet: str
    extension: str
    xdir: str
    version: str = "unspecified"
    variables: Mapping[str, str] = field(default_factory=dict)
    syntax_highlighting: bool = True
    pdf_filename: str = "reference.pdf"

    @property
    def work_dir(self) -> Path:
        return self.output_dir / WORK_DIR_NAME

    @property
    def resources_dir(self) -> Path:
        return self.output_dir / RESOURCES_DIR_NAME

    @property
    def target_dir(self) -> Path:
        return self.output_dir / REFERENCE_DIR_NAME / self.xdir


class DocbookReferenceTask(Task):
    """Base class of the tasks turning DocBook sources into one output format."""

    default_stylesheet: str = ""
    extension: str = ""
    xdir: str = ""

    def __init__(self, name: str, project: Project) -> None:
        super().__init__(name, project)
        self.pending = PendingJob(stylesheet=self.default_stylesheet)
        self.job: DocumentJob | None = None
        self.catalog_manager: CatalogManager | None = None
        self.titlepage_template: Path | None = None
        self.resource_bundle: ResourceBundle | None = None

    def _pending_value(self, name: str) -> object:
        source = self.job if self.job is not None else self.pending
        return getattr(source, name)

    def _set_pending(self, name: str, value: object) -> None:
        if self.job is not None:
            raise ConfigurationError(
                f"Cannot change '{name}' of task '{self.name}' once the task graph is ready."
            )
        setattr(self.pending, name, value)

    def _as_path(self, value: str | Path | None) -> Path | None:
        return None if value is None else self.project.file(value)

    @property
    def source_dir(self) -> Path | None:
        return self._pending_value("source_dir")  # type: ignore[return-value]

    @source_dir.setter
    def source_dir(self, value: str | Path | None) -> None:
        self._set_pending("source_dir", self._as_path(value))

    @property
    def output_dir(self) -> Path | None:
        return self._pending_value("output_dir")  # type: ignore[return-value]

    @output_dir.setter
    def output_dir(self, value: str | Path | None) -> None:
        self._set_pending("output_dir", self._as_path(value))

    @property
    def stylesheet(self) -> str | None:
        return self._pending_value("stylesheet")  # type: ignore[return-value]

    @stylesheet.setter
    def stylesheet(self, value: str | None) -> None:
        self._set_pending("stylesheet", value)

    @property
    def source_file_name(self) -> str:
        return self._pending_value("source_file_name")  # type: ignore[return-value]

    @source_file_name.setter
    def source_file_name(self, value: str) -> None:
        self._set_pending("source_file_name", value)

    def resolve(self, settings: ReferenceSettings, *, pdf_filename: str) -> DocumentJob:
        """Freeze the pending settings, inheriting unset directories from ``settings``."""
        if self.job is not None:
            return self.job

        pending = self.pending
        if pending.source_dir is None and settings.source_dir is not None:
            pending.source_dir = self.project.file(settings.source_dir)
        if pending.output_dir is None and settings.output_dir is not None:
            pending.output_dir = self.project.file(settings.output_dir)
        if pending.output_dir is None:
            pending.output_dir = self.project.build_dir
        if not pending.stylesheet:
            raise ConfigurationError(f"Task '{self.name}' has no stylesheet configured.")

        variables = {"name": self.project.root_project.name, **settings.variables}
        self.job = DocumentJob(
            source_dir=pending.source_dir,
            output_dir=pending.output_dir,
            source_file_name=pending.source_file_name,
            stylesheet=pending.stylesheet,
            extension=self.extension,
            xdir=self.xdir,
            version=self.project.version,
            variables=MappingProxyType(variables),
            syntax_highlighting=settings.syntax_highlighting,
            pdf_filename=pdf_filename,
        )
        logger.debug("Resolved task '%s': %s", self.name, self.job)
        return self.job

    def run(self) -> None:
        job = self.job
        if job is None:
            raise ConfigurationError(f"Task '{self.name}' was executed before it was resolved.")
        if job.source_dir is None:
            raise SourceDirectoryError(
                f"No DocBook source directory configured for task '{self.name}'."
            )

        catalog_manager = self.catalog_manager or create_catalog_manager()
        filter_sources(
            job.source_dir,
            job.work_dir,
            source_file_name=job.source_file_name,
            variables={**job.variables, "version": job.version},
            titlepage_template=self.titlepage_template,
            catalog_manager=catalog_manager,
        )
        resources_dir = unpack_resources(job.output_dir, bundle=self.resource_bundle)

        runner = TransformRunner(
            resources_dir,
            catalog_manager=catalog_manager,
            syntax_highlighting=job.syntax_highlighting,
        )
        output_file = runner.run(
            job.work_dir,
            job.source_file_name,
            job.stylesheet,
            job.target_dir,
            job.extension,
            pre_transform=partial(self.pre_transform, job, resources_dir),
            post_transform=partial(self.post_transform, job, resources_dir),
        )
        logger.info("Generated %s", output_file)

    def pre_transform(
        self,
        job: DocumentJob,
        resources_dir: Path,
        parameters: TransformParameters,
        source_file: Path,
        output_file: Path,
    ) -> None:
        """Adjust transform parameters before the stylesheet runs."""

    def post_transform(self, job: DocumentJob, resources_dir: Path, output_file: Path) -> None:
        """Finish the output once the stylesheet has run."""


class _HtmlDocbookReferenceTask(DocbookReferenceTask):
    extension = "html"

    def post_transform(self, job: DocumentJob, resources_dir: Path, output_file: Path) -> None:
        assert job.source_dir is not None
        copy_images_and_css(job.source_dir, resources_dir, output_file.parent)


class HtmlSingleDocbookReferenceTask(_HtmlDocbookReferenceTask):
    description = "Generates single-page HTML reference documentation."
    default_stylesheet = "html-single-custom.xsl"
    xdir = "htmlsingle"


class HtmlMultiDocbookReferenceTask(_HtmlDocbookReferenceTask):
    description = "Generates multi-page HTML reference documentation."
    default_stylesheet = "html-custom.xsl"
    xdir = "html"

    def pre_transform(
        self,
        job: DocumentJob,
        resources_dir: Path,
        parameters: TransformParameters,
        source_file: Path,
        output_file: Path,
    ) -> None:
        multi_page_parameters(parameters, source_file, output_file)


class PdfDocbookReferenceTask(DocbookReferenceTask):
    description = "Generates PDF reference documentation."
    default_stylesheet = "pdf-custom.xsl"
    extension = "fo"
    xdir = "pdf"

    def __init__(self, name: str, project: Project) -> None:
        super().__init__(name, project)
        self.formatter: Formatter | None = None
        self.fop_command: str | None = None

    def pre_transform(
        self,
        job: DocumentJob,
        resources_dir: Path,
        parameters: TransformParameters,
        source_file: Path,
        output_file: Path,
    ) -> None:
        pdf_parameters(resources_dir)(parameters, source_file, output_file)

    def post_transform(self, job: DocumentJob, resources_dir: Path, output_file: Path) -> None:
        formatter = self.formatter or FopFormatter(command=self.fop_command)
        pdf_file = finish_pdf(output_file, job.pdf_filename, formatter)
        logger.info("Rendered %s", pdf_file)


__all__ = [
    "REFERENCE_DIR_NAME",
    "DocbookReferenceTask",
    "DocumentJob",
    "HtmlMultiDocbookReferenceTask",
    "HtmlSingleDocbookReferenceTask",
    "PdfDocbookReferenceTask",
    "PendingJob",
]
