from __future__ import annotations

import logging
import os
from pathlib import Path
import sys

import pytest

from docbook_reference.exceptions import (
    FormatterUnavailableError,
    FormattingError,
    TransformError,
)
from docbook_reference.pipeline import finishers
from docbook_reference.pipeline.finishers import (
    FopFormatter,
    FopSelection,
    copy_images_and_css,
    finish_pdf,
    is_error_line,
    multi_page_parameters,
    pdf_parameters,
    select_fop_binary,
    stream_formatter_output,
)


def test_copy_images_and_css(tmp_path: Path) -> None:
    source = tmp_path / "source"
    (source / "images").mkdir(parents=True)
    (source / "images" / "diagram.png").write_bytes(b"png")
    resources = tmp_path / "resources"
    (resources / "images" / "admon").mkdir(parents=True)
    (resources / "images" / "admon" / "note.svg").write_text("<svg/>", encoding="utf-8")
    (resources / "css").mkdir()
    (resources / "css" / "manual.css").write_text("body {}", encoding="utf-8")
    target = tmp_path / "target"

    copy_images_and_css(source, resources, target)

    assert (target / "images" / "diagram.png").read_bytes() == b"png"
    assert (target / "images" / "admon" / "note.svg").exists()
    assert (target / "css" / "manual.css").exists()


def test_copy_skips_missing_folders(tmp_path: Path) -> None:
    target = tmp_path / "target"

    copy_images_and_css(tmp_path / "source", tmp_path / "resources", target)

    assert not target.exists()


def test_multi_page_parameters(tmp_path: Path) -> None:
    parameters: dict[str, str] = {}
    output = tmp_path / "reference" / "html" / "index.html"

    multi_page_parameters(parameters, tmp_path / "index.xml", output)

    assert parameters == {
        "root.filename": "index",
        "base.dir": f"{output.parent}{os.sep}",
    }


def test_pdf_parameters(tmp_path: Path) -> None:
    parameters: dict[str, str] = {"highlight.source": "1"}
    resources = tmp_path / "docbook-resources"

    pdf_parameters(resources)(parameters, tmp_path / "index.xml", tmp_path / "index.fo")

    assert parameters["admon.graphics"] == "1"
    assert parameters["admon.graphics.path"] == f"{resources.as_posix()}/images/admon/"
    assert parameters["highlight.source"] == "1"


def test_select_fop_prefers_configured_command(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(finishers.shutil, "which", lambda name: f"/opt/bin/{name}")

    selection = select_fop_binary("my-fop", environ={"DOCBOOK_FOP": "env-fop"})

    assert selection == FopSelection(path=Path("/opt/bin/my-fop"), source="configured")


def test_select_fop_falls_back_to_environment_then_path(monkeypatch: pytest.MonkeyPatch) -> None:
    available = {"env-fop": "/usr/local/bin/env-fop", "fop": "/usr/bin/fop"}
    monkeypatch.setattr(finishers.shutil, "which", available.get)

    assert select_fop_binary(environ={"DOCBOOK_FOP": "env-fop"}).source == "environment"
    fallback = select_fop_binary("missing", environ={})
    assert fallback == FopSelection(path=Path("/usr/bin/fop"), source="system")


def test_select_fop_reports_missing_binary(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(finishers.shutil, "which", lambda name: None)

    with pytest.raises(FormatterUnavailableError, match="DOCBOOK_FOP"):
        select_fop_binary(environ={})


def test_error_line_detection() -> None:
    assert is_error_line("SEVERE: Couldn't find hyphenation pattern")
    assert is_error_line("[ERROR] FOP - Image not found")
    assert is_error_line("java.io.FileNotFoundException: missing.svg")
    assert not is_error_line("INFO: Rendered page #12.")


def test_stream_output_hides_chatter_when_quiet(caplog: pytest.LogCaptureFixture) -> None:
    command = [sys.executable, "-c", "print('Rendered page 1'); print('SEVERE boom')"]

    with caplog.at_level(logging.DEBUG, logger="docbook_reference"):
        returncode = stream_formatter_output(command, verbose=False)

    assert returncode == 0
    levels = {record.getMessage(): record.levelno for record in caplog.records}
    assert levels["Rendered page 1"] == logging.DEBUG
    assert levels["SEVERE boom"] == logging.ERROR


def test_stream_output_shows_everything_when_verbose(caplog: pytest.LogCaptureFixture) -> None:
    command = [sys.executable, "-c", "import sys; print('chatter'); sys.exit(3)"]

    with caplog.at_level(logging.DEBUG, logger="docbook_reference"):
        returncode = stream_formatter_output(command, verbose=True)

    assert returncode == 3
    assert [(r.getMessage(), r.levelno) for r in caplog.records] == [("chatter", logging.INFO)]


def test_fop_formatter_builds_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(
        finishers,
        "select_fop_binary",
        lambda command: FopSelection(path=Path("/usr/bin/fop"), source="system"),
    )

    def _fake_stream(command, *, verbose, cwd=None):
        captured.update(command=command, verbose=verbose, cwd=cwd)
        return 0

    monkeypatch.setattr(finishers, "stream_formatter_output", _fake_stream)
    fo_file = tmp_path / "index.fo"

    FopFormatter(verbose=False).render(fo_file, tmp_path / "guide.pdf")

    assert captured["command"] == [
        "/usr/bin/fop",
        "-fo",
        str(fo_file.resolve()),
        "-pdf",
        str((tmp_path / "guide.pdf").resolve()),
    ]
    assert captured["cwd"] == tmp_path.resolve()


def test_fop_failure_raises(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(
        finishers,
        "select_fop_binary",
        lambda command: FopSelection(path=Path("/usr/bin/fop"), source="system"),
    )
    monkeypatch.setattr(finishers, "stream_formatter_output", lambda *args, **kwargs: 1)

    with pytest.raises(FormattingError, match="status 1"):
        FopFormatter().render(tmp_path / "index.fo", tmp_path / "guide.pdf")


def test_finish_pdf_renders_and_removes_fo(tmp_path: Path, fake_formatter) -> None:
    fo_file = tmp_path / "pdf" / "index.fo"
    fo_file.parent.mkdir()
    fo_file.write_text("<fo:root/>", encoding="utf-8")

    pdf_file = finish_pdf(fo_file, "spring-reference.pdf", fake_formatter)

    assert pdf_file == tmp_path / "pdf" / "spring-reference.pdf"
    assert pdf_file.read_bytes().startswith(b"%PDF")
    assert not fo_file.exists()


def test_failed_fo_deletion_only_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    class _Consuming:
        def render(self, fo_file: Path, pdf_file: Path) -> None:
            pdf_file.write_bytes(b"%PDF")
            fo_file.unlink()

    fo_file = tmp_path / "index.fo"
    fo_file.write_text("<fo:root/>", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="docbook_reference"):
        pdf_file = finish_pdf(fo_file, "guide.pdf", _Consuming())

    assert pdf_file.exists()
    assert any("index.fo" in record.getMessage() for record in caplog.records)


def test_fop_formatter_resolves_relative_paths(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(
        finishers,
        "select_fop_binary",
        lambda command: FopSelection(path=Path("/usr/bin/fop"), source="system"),
    )

    def _fake_stream(command, *, verbose, cwd=None):
        captured.update(command=command, cwd=cwd)
        return 0

    monkeypatch.setattr(finishers, "stream_formatter_output", _fake_stream)
    monkeypatch.chdir(tmp_path)
    root = Path.cwd()

    FopFormatter(verbose=False).render(
        Path("build/reference/pdf/index.fo"), Path("build/reference/pdf/guide.pdf")
    )

    assert captured["command"] == [
        "/usr/bin/fop",
        "-fo",
        str(root / "build" / "reference" / "pdf" / "index.fo"),
        "-pdf",
        str(root / "build" / "reference" / "pdf" / "guide.pdf"),
    ]
    assert captured["cwd"] == root / "build" / "reference" / "pdf"


@pytest.mark.skipif(sys.platform == "win32", reason="shebang scripts are POSIX only")
def test_finish_pdf_with_relative_fo_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    fop = tmp_path / "bin" / "fop"
    fop.parent.mkdir()
    fop.write_text(
        f"#!{sys.executable}\n"
        "import pathlib, sys\n"
        "fo, pdf = pathlib.Path(sys.argv[2]), pathlib.Path(sys.argv[4])\n"
        "if not fo.is_file():\n"
        "    print(f'SEVERE missing {fo}')\n"
        "    sys.exit(1)\n"
        "pdf.write_bytes(b'%PDF-1.4')\n",
        encoding="utf-8",
    )
    fop.chmod(0o755)
    project = tmp_path / "project"
    fo_dir = project / "build" / "reference" / "pdf"
    fo_dir.mkdir(parents=True)
    (fo_dir / "index.fo").write_text("<fo:root/>", encoding="utf-8")
    monkeypatch.chdir(project)

    pdf_file = finish_pdf(
        Path("build/reference/pdf/index.fo"), "guide.pdf", FopFormatter(command=fop)
    )

    assert pdf_file == Path("build/reference/pdf/guide.pdf")
    assert (fo_dir / "guide.pdf").read_bytes() == b"%PDF-1.4"
    assert not (fo_dir / "index.fo").exists()


def test_finish_pdf_requires_fo_output(tmp_path: Path, fake_formatter) -> None:
    with pytest.raises(TransformError, match="no formatting objects"):
        finish_pdf(tmp_path / "index.fo", "guide.pdf", fake_formatter)

    assert fake_formatter.calls == []
