"""Unpack the bundled DocBook resources (stylesheets, images, CSS, highlighting)."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from importlib import resources
import logging
from pathlib import Path, PurePosixPath
import shutil
from threading import RLock
import zipfile

from ..exceptions import ResourceBundleError


logger = logging.getLogger(__name__)

_DATA_PACKAGE = "docbook_reference.data"
RESOURCES_ARCHIVE = "docbook-resources.zip"
RESOURCES_DIR_NAME = "docbook-resources"
MARKER_DIR = "xsl"

_LOCK: RLock = RLock()


@dataclass(slots=True)
class UnpackResult:
    """Outcome of a bundle unpack."""

    target: Path
    extracted: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)

    @property
    def unpacked(self) -> bool:
        return bool(self.extracted)


def _member_target(target_dir: Path, name: str) -> Path:
    member = PurePosixPath(name)
    if member.is_absolute() or ".." in member.parts:
        raise ResourceBundleError(f"Refusing to unpack '{name}' outside of {target_dir}")
    return target_dir.joinpath(*member.parts)


class ResourceBundle:
    """Handle on the DocBook resource archive shipped as package data."""

    def __init__(self, archive: Path | None = None) -> None:
        self._archive = archive

    @contextmanager
    def archive_path(self) -> Iterator[Path]:
        """Yield a filesystem path to the archive, raising when it is missing."""
        if self._archive is not None:
            if not self._archive.is_file():
                raise ResourceBundleError(
                    f"DocBook resource archive not found: {self._archive}"
                )
            yield self._archive
            return

        resource = resources.files(_DATA_PACKAGE) / RESOURCES_ARCHIVE
        if not resource.is_file():
            raise ResourceBundleError(
                f"DocBook resource archive {RESOURCES_ARCHIVE} is missing from {_DATA_PACKAGE}"
            )
        with resources.as_file(resource) as path:
            yield path

    def unpack(self, target_dir: Path) -> UnpackResult:
        """Extract the archive into ``target_dir`` unless it was unpacked before.

        Existing files are never overwritten. When the ``xsl`` marker directory
        already exists nothing is extracted at all.
        """
        result = UnpackResult(target=target_dir)
        with self.archive_path() as archive, _LOCK:
            if (target_dir / MARKER_DIR).is_dir():
                logger.debug("DocBook resources already present in %s", target_dir)
                return result

            logger.info("Unpacking DocBook resources into %s", target_dir)
            try:
                with zipfile.ZipFile(archive) as bundle:
                    for info in bundle.infolist():
                        destination = _member_target(target_dir, info.filename)
                        if info.is_dir():
                            destination.mkdir(parents=True, exist_ok=True)
                            continue
                        if destination.exists():
                            result.skipped.append(destination)
                            continue
                        destination.parent.mkdir(parents=True, exist_ok=True)
                        with bundle.open(info) as source, destination.open("wb") as handle:
                            shutil.copyfileobj(source, handle)
                        result.extracted.append(destination)
            except zipfile.BadZipFile as exc:
                raise ResourceBundleError(
                    f"DocBook resource archive {archive} is corrupt: {exc}"
                ) from exc

        logger.debug(
            "Extracted %d resource file(s), kept %d existing file(s)",
            len(result.extracted),
            len(result.skipped),
        )
        return result


def unpack_resources(output_dir: Path, *, bundle: ResourceBundle | None = None) -> Path:
    """Unpack the resources under ``output_dir/docbook-resources`` and return it."""
    target = output_dir / RESOURCES_DIR_NAME
    (bundle or ResourceBundle()).unpack(target)
    return target


__all__ = [
    "MARKER_DIR",
    "RESOURCES_ARCHIVE",
    "RESOURCES_DIR_NAME",
    "ResourceBundle",
    "UnpackResult",
    "unpack_resources",
]
