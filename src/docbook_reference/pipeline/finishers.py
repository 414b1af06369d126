"""Format-specific transform hooks and post-processing of generated output."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import re
import shutil
import subprocess
from typing import Literal, Protocol

from ..console import verbose_logging
from ..exceptions import FormatterUnavailableError, FormattingError, TransformError
from .transform import PreTransformHook, TransformParameters


logger = logging.getLogger(__name__)

FOP_ENV_VAR = "DOCBOOK_FOP"
FOP_EXECUTABLE = "fop"
IMAGES_DIR_NAME = "images"
CSS_DIR_NAME = "css"

_ERROR_LINE_RE = re.compile(r"SEVERE|ERROR|Exception")

FopSource = Literal["configured", "environment", "system"]


def copy_images_and_css(source_dir: Path, resources_dir: Path, target_dir: Path) -> None:
    """Copy document images, shared images and shared CSS next to HTML output."""
    copies = [
        (source_dir / IMAGES_DIR_NAME, target_dir / IMAGES_DIR_NAME),
        (resources_dir / IMAGES_DIR_NAME, target_dir / IMAGES_DIR_NAME),
        (resources_dir / CSS_DIR_NAME, target_dir / CSS_DIR_NAME),
    ]
    for origin, destination in copies:
        if not origin.is_dir():
            logger.debug("Skipping missing folder %s", origin)
            continue
        shutil.copytree(origin, destination, dirs_exist_ok=True)
        logger.debug("Copied %s to %s", origin, destination)


def multi_page_parameters(
    parameters: TransformParameters,
    source_file: Path,
    output_file: Path,
) -> None:
    """Point chunked HTML output at the output file's folder."""
    parameters["root.filename"] = output_file.stem
    parameters["base.dir"] = f"{output_file.parent}{os.sep}"


def pdf_parameters(resources_dir: Path) -> PreTransformHook:
    """Return a hook enabling admonition graphics from the shared resources."""

    def _hook(parameters: TransformParameters, source_file: Path, output_file: Path) -> None:
        parameters["admon.graphics"] = "1"
        parameters["admon.graphics.path"] = f"{resources_dir.as_posix()}/images/admon/"

    return _hook


@dataclass(slots=True)
class FopSelection:
    """Resolved FOP executable and where it came from."""

    path: Path
    source: FopSource


def select_fop_binary(
    command: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> FopSelection:
    """Return the FOP executable: configured command, ``$DOCBOOK_FOP``, then ``PATH``."""
    env = os.environ if environ is None else environ
    candidates: list[tuple[str, FopSource]] = []
    if command:
        candidates.append((str(command), "configured"))
    if env.get(FOP_ENV_VAR):
        candidates.append((env[FOP_ENV_VAR], "environment"))
    candidates.append((FOP_EXECUTABLE, "system"))

    for candidate, source in candidates:
        resolved = shutil.which(candidate)
        if resolved is not None:
            return FopSelection(path=Path(resolved), source=source)
        logger.debug("FOP candidate '%s' (%s) is not executable", candidate, source)

    raise FormatterUnavailableError(
        "Apache FOP is not available (configure fop.command, set "
        f"{FOP_ENV_VAR} or install '{FOP_EXECUTABLE}' on PATH)."
    )


def is_error_line(line: str) -> bool:
    return bool(_ERROR_LINE_RE.search(line))


def stream_formatter_output(
    command: Sequence[str],
    *,
    verbose: bool,
    cwd: Path | None = None,
) -> int:
    """Run ``command`` and forward each output line to the logger."""
    with subprocess.Popen(
        list(command),
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
        encoding="utf-8",
        errors="replace",
    ) as process:
        for line in _lines(process):
            if verbose:
                logger.info("%s", line)
            elif is_error_line(line):
                logger.error("%s", line)
            else:
                logger.debug("%s", line)
        return process.wait()


def _lines(process: subprocess.Popen[str]) -> Iterator[str]:
    if process.stdout is None:
        return
    for raw in process.stdout:
        line = raw.rstrip()
        if line:
            yield line


class Formatter(Protocol):
    """Anything able to turn a formatting-object file into a PDF."""

    def render(self, fo_file: Path, pdf_file: Path) -> None: ...


@dataclass(slots=True)
class FopFormatter:
    """Render XSL-FO to PDF with the Apache FOP command line."""

    command: str | Path | None = None
    verbose: bool | None = None
    extra_args: list[str] = field(default_factory=list)

    def render(self, fo_file: Path, pdf_file: Path) -> None:
        selection = select_fop_binary(self.command)
        logger.info("Rendering %s with FOP (%s)", pdf_file.name, selection.source)
        # FOP runs from the FO folder, so hand it absolute paths.
        fo_file = fo_file.resolve()
        pdf_file = pdf_file.resolve()
        invocation = [
            str(selection.path),
            *self.extra_args,
            "-fo",
            str(fo_file),
            "-pdf",
            str(pdf_file),
        ]
        verbose = verbose_logging(logger) if self.verbose is None else self.verbose
        try:
            returncode = stream_formatter_output(invocation, verbose=verbose, cwd=fo_file.parent)
        except OSError as exc:
            raise FormattingError(f"Unable to run FOP ({selection.path}): {exc}") from exc
        if returncode != 0:
            raise FormattingError(f"FOP exited with status {returncode} while rendering {fo_file}")


def finish_pdf(fo_file: Path, pdf_filename: str, formatter: Formatter) -> Path:
    """Render ``fo_file`` to ``pdf_filename`` beside it and remove the FO file.

    Raises :class:`TransformError` when the transform left no FO file behind.
    """
    if not fo_file.is_file():
        raise TransformError(
            f"The stylesheet produced no formatting objects ({fo_file} was not written)."
        )
    pdf_file = fo_file.parent / pdf_filename
    formatter.render(fo_file, pdf_file)
    try:
        fo_file.unlink()
    except OSError as exc:
        logger.warning("Failed to delete '%s' intermediate file: %s", fo_file.name, exc)
    return pdf_file


__all__ = [
    "FOP_ENV_VAR",
    "FopFormatter",
    "FopSelection",
    "Formatter",
    "copy_images_and_css",
    "finish_pdf",
    "is_error_line",
    "multi_page_parameters",
    "pdf_parameters",
    "select_fop_binary",
    "stream_formatter_output",
]
