"""Copy DocBook sources into the work directory, expanding the entry point."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from pathlib import Path
import shutil
from typing import Any

from ..exceptions import SourceDirectoryError
from .catalog import CatalogManager
from .expand import expand_file
from .titlepage import generate_titlepages


logger = logging.getLogger(__name__)

WORK_DIR_NAME = "reference-work"
TITLEPAGE_DIR_NAME = "titlepage"
DEFAULT_SOURCE_FILE_NAME = "index.xml"


def _ignore_named(name: str) -> Callable[[str, list[str]], set[str]]:
    def _ignore(directory: str, entries: list[str]) -> set[str]:
        return {entry for entry in entries if entry == name and Path(directory, entry).is_file()}

    return _ignore


def filter_sources(
    source_dir: Path,
    work_dir: Path,
    *,
    source_file_name: str = DEFAULT_SOURCE_FILE_NAME,
    variables: Mapping[str, Any] | None = None,
    titlepage_template: Path | None = None,
    catalog_manager: CatalogManager | None = None,
) -> Path:
    """Populate ``work_dir`` with a filtered copy of ``source_dir`` and return it.

    Every file is copied verbatim except the entry points (files named
    ``source_file_name`` at any depth), which are copied with their ``${...}``
    variables expanded. Title-page templates found in ``titlepage/`` are turned
    into stylesheet fragments under ``xsl/titlepage``.
    """
    if not source_dir.is_dir():
        raise SourceDirectoryError(f"DocBook source directory does not exist: {source_dir}")

    work_dir.mkdir(parents=True, exist_ok=True)
    logger.debug("Copying DocBook sources from %s to %s", source_dir, work_dir)
    shutil.copytree(
        source_dir,
        work_dir,
        dirs_exist_ok=True,
        ignore=_ignore_named(source_file_name),
    )

    context = dict(variables or {})
    for entry in sorted(source_dir.rglob(source_file_name)):
        if not entry.is_file():
            continue
        destination = work_dir / entry.relative_to(source_dir)
        expand_file(entry, destination, context)
        logger.debug("Expanded template variables in %s", destination)

    titlepage_dir = source_dir / TITLEPAGE_DIR_NAME
    if titlepage_dir.is_dir():
        generate_titlepages(
            titlepage_dir,
            work_dir,
            template=titlepage_template,
            catalog_manager=catalog_manager,
        )

    return work_dir


__all__ = [
    "DEFAULT_SOURCE_FILE_NAME",
    "TITLEPAGE_DIR_NAME",
    "WORK_DIR_NAME",
    "filter_sources",
]
