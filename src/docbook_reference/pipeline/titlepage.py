"""Generate DocBook title-page stylesheet fragments from ``titlepage/*.xml`` specs."""

from __future__ import annotations

from importlib import resources
import logging
from pathlib import Path

from lxml import etree

from ..exceptions import TransformError
from .catalog import CatalogManager, create_catalog_manager
from .transform import catalog_parser, error_lines


logger = logging.getLogger(__name__)

_DATA_PACKAGE = "docbook_reference.data"
_TEMPLATE_NAME = "template/titlepage.xsl"

XHTML_NAMESPACE = "http://www.w3.org/1999/xhtml"
EXSL_NAMESPACE = "http://exslt.org/common"
TITLEPAGE_OUTPUT_DIR = Path("xsl") / "titlepage"

_STYLESHEET_TAG = "<xsl:stylesheet"
_EXSL_DECLARATION = f'xmlns:exsl="{EXSL_NAMESPACE}" '


def builtin_template() -> Path:
    """Return the path of the bundled title-page template stylesheet."""
    resource = resources.files(_DATA_PACKAGE).joinpath(_TEMPLATE_NAME)
    return Path(str(resource))


def load_titlepage_transform(
    template: Path | None = None,
    *,
    catalog_manager: CatalogManager | None = None,
) -> etree.XSLT:
    """Compile the title-page template, resolving its imports through the catalog."""
    template_path = template or builtin_template()
    parser = catalog_parser(catalog_manager or create_catalog_manager())
    try:
        document = etree.parse(str(template_path), parser)
        return etree.XSLT(document)
    except (OSError, etree.XMLSyntaxError, etree.XSLTParseError) as exc:
        raise TransformError(
            f"Unable to load title-page template {template_path}: {exc}",
            log=error_lines(getattr(exc, "error_log", None)),
        ) from exc


def patch_exsl_namespace(text: str) -> str:
    """Declare the EXSLT common namespace on the first ``xsl:stylesheet`` tag.

    The declaration is inserted right after ``<xsl:stylesheet``. Text whose
    opening tag already declares ``xmlns:exsl`` is returned unchanged.
    """
    index = text.find(_STYLESHEET_TAG)
    if index < 0:
        return text
    start = index + len(_STYLESHEET_TAG)
    end = text.find(">", start)
    opening_tag = text[start:end] if end >= 0 else text[start:]
    if "xmlns:exsl" in opening_tag:
        return text
    return f"{text[:start]} {_EXSL_DECLARATION}{text[start:]}"


def generate_titlepage(source: Path, output_dir: Path, transform: etree.XSLT) -> Path:
    """Transform one title-page definition into ``output_dir/<stem>.xsl``."""
    parser = etree.XMLParser(remove_blank_text=False)
    try:
        document = etree.parse(str(source), parser)
        result = transform(document, ns=etree.XSLT.strparam(XHTML_NAMESPACE))
    except (OSError, etree.XMLSyntaxError, etree.XSLTApplyError) as exc:
        raise TransformError(
            f"Unable to generate title page from {source}: {exc}",
            log=error_lines(transform.error_log),
        ) from exc

    output_dir.mkdir(parents=True, exist_ok=True)
    destination = output_dir / f"{source.stem}.xsl"
    destination.write_text(patch_exsl_namespace(str(result)), encoding="utf-8")
    logger.debug("Generated title page stylesheet %s", destination)
    return destination


def generate_titlepages(
    titlepage_dir: Path,
    work_dir: Path,
    *,
    template: Path | None = None,
    catalog_manager: CatalogManager | None = None,
) -> list[Path]:
    """Generate a fragment for every top-level ``*.xml`` file in ``titlepage_dir``."""
    sources = sorted(path for path in titlepage_dir.glob("*.xml") if path.is_file())
    if not sources:
        return []

    transform = load_titlepage_transform(template, catalog_manager=catalog_manager)
    output_dir = work_dir / TITLEPAGE_OUTPUT_DIR
    return [generate_titlepage(source, output_dir, transform) for source in sources]


__all__ = [
    "EXSL_NAMESPACE",
    "TITLEPAGE_OUTPUT_DIR",
    "XHTML_NAMESPACE",
    "builtin_template",
    "generate_titlepage",
    "generate_titlepages",
    "load_titlepage_transform",
    "patch_exsl_namespace",
]
