"""Run DocBook XSLT stylesheets over the filtered sources.

The runner is the only place that knows how catalog lookups plug into lxml: the
catalog handle produced by :func:`create_catalog_manager` is turned into an
``etree.Resolver`` attached to every parser used for stylesheets, sources,
XIncludes and ``document()`` calls.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, MutableMapping
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any

from lxml import etree

from ..console import capture_console, verbose_logging
from ..exceptions import StylesheetNotFoundError, TransformError
from .catalog import Catalog, CatalogManager, create_catalog_manager, url_to_path


logger = logging.getLogger(__name__)

STYLESHEET_DIR_NAME = "xsl"
HIGHLIGHTING_CONFIG = Path("highlighting") / "xslthl-config.xml"

TransformParameters = MutableMapping[str, str]
PreTransformHook = Callable[[TransformParameters, Path, Path], None]
PostTransformHook = Callable[[Path], None]

_ACCESS_CONTROL = etree.XSLTAccessControl(
    read_file=True,
    write_file=True,
    create_dir=True,
    read_network=True,
    write_network=False,
)


class CatalogResolver(etree.Resolver):
    """Resolve external identifiers and URIs through OASIS catalogs."""

    def __init__(self, catalog: Catalog) -> None:
        super().__init__()
        self._catalog = catalog

    def resolve(self, system_url: str | None, public_id: str | None, context: Any) -> Any:
        target = self._catalog.resolve(system_url, public_id)
        if target is None:
            return None
        logger.debug("Catalog resolved %s to %s", system_url or public_id, target)
        return self.resolve_filename(url_to_path(target), context)


def catalog_parser(manager: CatalogManager) -> etree.XMLParser:
    """Return a parser resolving DTDs, imports and includes through ``manager``."""
    parser = etree.XMLParser(load_dtd=True, resolve_entities=True, no_network=False)
    parser.resolvers.add(CatalogResolver(Catalog.from_manager(manager)))
    return parser


def error_lines(error_log: Iterable[Any] | None) -> list[str]:
    """Return printable lines for an lxml error log."""
    if error_log is None:
        return []
    lines = []
    for entry in error_log:
        location = f"{entry.filename}:{entry.line}: " if entry.line else ""
        lines.append(f"{location}{entry.message}".strip())
    return [line for line in lines if line]


def resolve_stylesheet(work_dir: Path, resources_dir: Path, name: str) -> Path:
    """Return the local stylesheet override or the shared resource stylesheet."""
    candidates = [
        work_dir / STYLESHEET_DIR_NAME / name,
        resources_dir / STYLESHEET_DIR_NAME / name,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    searched = ", ".join(str(candidate) for candidate in candidates)
    raise StylesheetNotFoundError(f"Stylesheet '{name}' not found (searched: {searched})")


def output_file_for(source_file: Path, output_dir: Path, extension: str) -> Path:
    """Return the output path named after the source stem plus ``extension``."""
    return output_dir / f"{source_file.stem}.{extension.lstrip('.')}"


def _has_content(result: etree._XSLTResultTree) -> bool:
    return result.getroot() is not None or bool(bytes(result).strip())


class TransformRunner:
    """Apply one stylesheet to a filtered work directory."""

    def __init__(
        self,
        resources_dir: Path,
        *,
        catalog_manager: CatalogManager | None = None,
        syntax_highlighting: bool = True,
        verbose: bool | None = None,
    ) -> None:
        self.resources_dir = resources_dir
        self.catalog_manager = catalog_manager or create_catalog_manager()
        self.syntax_highlighting = syntax_highlighting
        self.verbose = verbose

    def universal_parameters(self) -> dict[str, str]:
        """Return the parameters shared by every output format."""
        if not self.syntax_highlighting:
            return {}
        config = (self.resources_dir / HIGHLIGHTING_CONFIG).resolve()
        return {
            "highlight.source": "1",
            "highlight.xslthl.config": config.as_uri(),
        }

    def run(
        self,
        work_dir: Path,
        source_file_name: str,
        stylesheet: str,
        output_dir: Path,
        extension: str,
        *,
        pre_transform: PreTransformHook | None = None,
        post_transform: PostTransformHook | None = None,
    ) -> Path:
        """Transform ``work_dir/source_file_name`` and return the output file."""
        source_file = work_dir / source_file_name
        stylesheet_file = resolve_stylesheet(work_dir, self.resources_dir, stylesheet)
        output_file = output_file_for(source_file, output_dir, extension)
        output_dir.mkdir(parents=True, exist_ok=True)

        parameters: TransformParameters = self.universal_parameters()
        if pre_transform is not None:
            pre_transform(parameters, source_file, output_file)
        frozen: Mapping[str, str] = MappingProxyType(dict(parameters))

        transform, document = self._prepare(stylesheet_file, source_file)
        logger.info("Transforming %s with %s", source_file, stylesheet_file.name)
        verbose = verbose_logging(logger) if self.verbose is None else self.verbose
        with capture_console(logger, verbose=verbose):
            try:
                result = transform(
                    document,
                    **{name: etree.XSLT.strparam(value) for name, value in frozen.items()},
                )
            except etree.XSLTApplyError as exc:
                raise TransformError(
                    f"Transformation of {source_file} with {stylesheet_file} failed: {exc}",
                    log=error_lines(transform.error_log),
                ) from exc
            finally:
                for line in error_lines(transform.error_log):
                    logger.info("%s", line)

        if _has_content(result):
            # bytes() falls back to UTF-8 when xsl:output names no encoding.
            with output_file.open("wb") as handle:
                handle.write(bytes(result))
            logger.debug("Wrote %s", output_file)
        else:
            logger.debug("Transform of %s produced no main output", source_file)

        if post_transform is not None:
            post_transform(output_file)
        return output_file

    def _prepare(
        self,
        stylesheet_file: Path,
        source_file: Path,
    ) -> tuple[etree.XSLT, etree._ElementTree]:
        parser = catalog_parser(self.catalog_manager)
        try:
            transform = etree.XSLT(
                etree.parse(str(stylesheet_file), parser),
                access_control=_ACCESS_CONTROL,
            )
        except (OSError, etree.XMLSyntaxError, etree.XSLTParseError) as exc:
            raise TransformError(
                f"Unable to load stylesheet {stylesheet_file}: {exc}",
                log=error_lines(getattr(exc, "error_log", None)),
            ) from exc

        try:
            document = etree.parse(str(source_file), parser)
            document.xinclude()
        except (OSError, etree.XMLSyntaxError, etree.XIncludeError) as exc:
            raise TransformError(
                f"Unable to parse DocBook source {source_file}: {exc}",
                log=error_lines(getattr(exc, "error_log", None)),
            ) from exc
        return transform, document


__all__ = [
    "CatalogResolver",
    "HIGHLIGHTING_CONFIG",
    "PostTransformHook",
    "PreTransformHook",
    "STYLESHEET_DIR_NAME",
    "TransformParameters",
    "TransformRunner",
    "catalog_parser",
    "error_lines",
    "output_file_for",
    "resolve_stylesheet",
]
