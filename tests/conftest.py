from __future__ import annotations

from collections.abc import Iterator
import logging
from pathlib import Path

import pytest

from docbook_reference.console import LOGGER_NAMESPACE
from docbook_reference.pipeline.catalog import CatalogManager


HTML_SINGLE_XSL = """\
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:output method="html" encoding="UTF-8"/>
  <xsl:param name="highlight.source"/>
  <xsl:template match="/">
    <html>
      <body>
        <h1><xsl:value-of select="/book/title"/></h1>
        <p class="highlight"><xsl:value-of select="$highlight.source"/></p>
        <xsl:for-each select="/book/chapter">
          <h2><xsl:value-of select="title"/></h2>
        </xsl:for-each>
      </body>
    </html>
  </xsl:template>
</xsl:stylesheet>
"""

HTML_MULTI_XSL = """\
<xsl:stylesheet version="1.0"
                xmlns:xsl="http://www.w3.org/1999/XSL/Transform"
                xmlns:exsl="http://exslt.org/common"
                extension-element-prefixes="exsl">
  <xsl:param name="base.dir"/>
  <xsl:param name="root.filename"/>
  <xsl:template match="/">
    <exsl:document href="{$base.dir}{$root.filename}.html" method="html">
      <html><body><h1><xsl:value-of select="/book/title"/></h1></body></html>
    </exsl:document>
    <xsl:for-each select="/book/chapter">
      <exsl:document href="{$base.dir}{@id}.html" method="html">
        <html><body><h2><xsl:value-of select="title"/></h2></body></html>
      </exsl:document>
    </xsl:for-each>
  </xsl:template>
</xsl:stylesheet>
"""

PDF_XSL = """\
<xsl:stylesheet version="1.0"
                xmlns:xsl="http://www.w3.org/1999/XSL/Transform"
                xmlns:fo="http://www.w3.org/1999/XSL/Format">
  <xsl:output method="xml" indent="no"/>
  <xsl:param name="admon.graphics"/>
  <xsl:param name="admon.graphics.path"/>
  <xsl:template match="/">
    <fo:root>
      <fo:block admon-graphics="{$admon.graphics}" admon-path="{$admon.graphics.path}">
        <xsl:value-of select="/book/title"/>
      </fo:block>
    </fo:root>
  </xsl:template>
</xsl:stylesheet>
"""

INDEX_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<book>
  <title>Reference Guide</title>
  <subtitle>Version ${version}</subtitle>
  <chapter id="overview"><title>Overview</title></chapter>
  <chapter id="usage"><title>Usage</title></chapter>
</book>
"""


def write_stylesheets(xsl_dir: Path) -> Path:
    xsl_dir.mkdir(parents=True, exist_ok=True)
    (xsl_dir / "html-single-custom.xsl").write_text(HTML_SINGLE_XSL, encoding="utf-8")
    (xsl_dir / "html-custom.xsl").write_text(HTML_MULTI_XSL, encoding="utf-8")
    (xsl_dir / "pdf-custom.xsl").write_text(PDF_XSL, encoding="utf-8")
    return xsl_dir


class FakeFormatter:
    """Formatter writing a placeholder PDF and remembering the FO it received."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []
        self.fo_content = ""

    def render(self, fo_file: Path, pdf_file: Path) -> None:
        self.calls.append((fo_file, pdf_file))
        self.fo_content = fo_file.read_text(encoding="utf-8")
        pdf_file.write_bytes(b"%PDF-1.4\n%fake\n")


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    logger = logging.getLogger(LOGGER_NAMESPACE)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COLUMNS", "240")


@pytest.fixture
def empty_catalog() -> CatalogManager:
    return CatalogManager(catalog_files=[])


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    root = tmp_path / "src" / "reference"
    root.mkdir(parents=True)
    (root / "index.xml").write_text(INDEX_XML, encoding="utf-8")
    (root / "images").mkdir()
    (root / "images" / "diagram.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")
    write_stylesheets(root / "xsl")
    return root


@pytest.fixture
def fake_formatter() -> FakeFormatter:
    return FakeFormatter()


@pytest.fixture
def install_stylesheets():
    return write_stylesheets
