from __future__ import annotations

from pathlib import Path

from lxml import etree
import pytest

from docbook_reference.exceptions import TransformError
from docbook_reference.pipeline.titlepage import (
    EXSL_NAMESPACE,
    XHTML_NAMESPACE,
    builtin_template,
    generate_titlepages,
    patch_exsl_namespace,
)


TEMPLATE = """\
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:param name="ns"/>
  <xsl:template match="/">
    <xsl:element name="xsl:stylesheet" namespace="http://www.w3.org/1999/XSL/Transform">
      <xsl:attribute name="version">1.0</xsl:attribute>
      <xsl:element name="xsl:template" namespace="http://www.w3.org/1999/XSL/Transform">
        <xsl:attribute name="name">
          <xsl:value-of select="concat(local-name(/*), '.titlepage')"/>
        </xsl:attribute>
        <xsl:element name="exsl:document" namespace="http://exslt.org/common">
          <xsl:attribute name="href">titlepage.html</xsl:attribute>
          <xsl:value-of select="$ns"/>
        </xsl:element>
      </xsl:element>
    </xsl:element>
  </xsl:template>
</xsl:stylesheet>
"""


def test_patch_inserts_declaration_after_tag() -> None:
    text = '<xsl:stylesheet xmlns:xsl="http://www.w3.org/1999/XSL/Transform" version="1.0">'

    assert patch_exsl_namespace(text) == (
        '<xsl:stylesheet xmlns:exsl="http://exslt.org/common"  '
        'xmlns:xsl="http://www.w3.org/1999/XSL/Transform" version="1.0">'
    )


def test_patch_only_touches_first_stylesheet_tag() -> None:
    text = "<xsl:stylesheet version='1.0'><!-- xsl:stylesheet --></xsl:stylesheet>"

    patched = patch_exsl_namespace(text)

    assert patched.count("xmlns:exsl") == 1
    assert patched.endswith("<!-- xsl:stylesheet --></xsl:stylesheet>")


def test_patch_skips_existing_declaration() -> None:
    text = '<xsl:stylesheet xmlns:exsl="http://exslt.org/common" version="1.0"/>'

    assert patch_exsl_namespace(text) == text


def test_generated_fragments_are_well_formed(tmp_path: Path, empty_catalog) -> None:
    titlepage_dir = tmp_path / "titlepage"
    titlepage_dir.mkdir()
    (titlepage_dir / "book.xml").write_text("<book/>", encoding="utf-8")
    (titlepage_dir / "article.xml").write_text("<article/>", encoding="utf-8")
    (titlepage_dir / "notes.txt").write_text("ignored", encoding="utf-8")
    nested = titlepage_dir / "nested"
    nested.mkdir()
    (nested / "part.xml").write_text("<part/>", encoding="utf-8")
    template = tmp_path / "template.xsl"
    template.write_text(TEMPLATE, encoding="utf-8")
    work_dir = tmp_path / "work"

    outputs = generate_titlepages(
        titlepage_dir, work_dir, template=template, catalog_manager=empty_catalog
    )

    assert [path.name for path in outputs] == ["article.xsl", "book.xsl"]
    for output in outputs:
        assert output.parent == work_dir / "xsl" / "titlepage"
        root = etree.parse(str(output)).getroot()
        assert root.nsmap.get("exsl") == EXSL_NAMESPACE
        assert XHTML_NAMESPACE in output.read_text(encoding="utf-8")


def test_generation_overwrites_previous_output(tmp_path: Path, empty_catalog) -> None:
    titlepage_dir = tmp_path / "titlepage"
    titlepage_dir.mkdir()
    (titlepage_dir / "book.xml").write_text("<book/>", encoding="utf-8")
    template = tmp_path / "template.xsl"
    template.write_text(TEMPLATE, encoding="utf-8")
    stale = tmp_path / "work" / "xsl" / "titlepage" / "book.xsl"
    stale.parent.mkdir(parents=True)
    stale.write_text("stale", encoding="utf-8")

    generate_titlepages(titlepage_dir, tmp_path / "work", template=template, catalog_manager=empty_catalog)

    assert "stale" not in stale.read_text(encoding="utf-8")


def test_invalid_template_raises_transform_error(tmp_path: Path, empty_catalog) -> None:
    titlepage_dir = tmp_path / "titlepage"
    titlepage_dir.mkdir()
    (titlepage_dir / "book.xml").write_text("<book/>", encoding="utf-8")
    template = tmp_path / "broken.xsl"
    template.write_text("<xsl:stylesheet", encoding="utf-8")

    with pytest.raises(TransformError):
        generate_titlepages(
            titlepage_dir, tmp_path / "work", template=template, catalog_manager=empty_catalog
        )


def test_builtin_template_is_packaged() -> None:
    template = builtin_template()

    assert template.is_file()
    assert "template/titlepage.xsl" in template.read_text(encoding="utf-8")
