"""MkDocs plugin building the reference documentation alongside the site."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from mkdocs.config import config_options
from mkdocs.config.defaults import MkDocsConfig
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin

from ..build import Project
from ..config import ProjectConfig, ReferenceConfig, ReferenceSettings
from ..exceptions import DocbookReferenceError
from ..plugin import AGGREGATE_TASK, create_reference_project


class DocbookReferenceMkdocsPlugin(BasePlugin):
    """Run the reference tasks once MkDocs has written the site."""

    config_scheme = (
        ("enabled", config_options.Type(bool, default=True)),
        ("source_dir", config_options.Type((str, type(None)), default=None)),
        ("output_dir", config_options.Type((str, type(None)), default=None)),
        ("pdf_filename", config_options.Type((str, type(None)), default=None)),
        ("version", config_options.Type((str, type(None)), default=None)),
        ("tasks", config_options.Type(list, default=[AGGREGATE_TASK])),
    )

    def __init__(self) -> None:
        self._enabled = True
        self._is_serve = False
        self._project: Project | None = None

    @property
    def project(self) -> Project | None:
        return self._project

    def on_startup(self, command: str, dirty: bool) -> None:
        self._is_serve = command == "serve"

    def on_config(self, config: MkDocsConfig) -> MkDocsConfig:
        self._enabled = bool(self.config.get("enabled", True))
        if not self._enabled:
            return config

        project_dir = Path(config.config_file_path or ".").parent.resolve()
        site_dir = Path(config.site_dir).resolve()
        self._project = self._create_project(
            project_dir,
            site_dir=site_dir,
            site_name=config.site_name,
        )
        return config

    def on_post_build(self, config: MkDocsConfig) -> None:
        if not self._enabled or self._is_serve:
            return
        if self._project is None:
            raise PluginError("DocBook reference plugin is not initialised correctly.")

        tasks = self.config.get("tasks") or [AGGREGATE_TASK]
        try:
            self._project.run(*(str(task) for task in tasks))
        except DocbookReferenceError as exc:
            raise PluginError(str(exc)) from exc

    def _create_project(self, project_dir: Path, *, site_dir: Path, site_name: Any) -> Project:
        options = self.config
        version = options.get("version")
        reference = ReferenceSettings(
            source_dir=options.get("source_dir"),
            output_dir=options.get("output_dir") or site_dir,
            pdf_filename=options.get("pdf_filename"),
        )
        config = ReferenceConfig(
            project=ProjectConfig(
                name=str(site_name) if site_name else None,
                version=str(version) if version is not None else "unspecified",
            ),
            reference=reference,
        )
        try:
            return create_reference_project(config, project_dir)
        except DocbookReferenceError as exc:
            raise PluginError(str(exc)) from exc


__all__ = ["DocbookReferenceMkdocsPlugin"]
