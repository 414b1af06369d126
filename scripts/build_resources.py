"""Rebuild the packaged DocBook resource archive from resources/docbook-resources."""

from __future__ import annotations

import argparse
from pathlib import Path
import zipfile


ROOT = Path(__file__).resolve().parents[1]
SOURCE = ROOT / "resources" / "docbook-resources"
TARGET = ROOT / "src" / "docbook_reference" / "data" / "docbook-resources.zip"

# Fixed timestamp so rebuilding unchanged sources yields an identical archive.
_EPOCH = (1980, 1, 1, 0, 0, 0)


def build_archive(source: Path, target: Path) -> list[str]:
    members: list[str] = []
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(source.rglob("*")):
            if not path.is_file():
                continue
            name = path.relative_to(source).as_posix()
            info = zipfile.ZipInfo(name, date_time=_EPOCH)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            archive.writestr(info, path.read_bytes())
            members.append(name)
    return members


def main() -> None:
    parser = argparse.ArgumentParser(description="Rebuild the DocBook resource archive.")
    parser.add_argument("--source", type=Path, default=SOURCE, help="Resource folder to pack.")
    parser.add_argument("--output", type=Path, default=TARGET, help="Archive to write.")
    args = parser.parse_args()

    if not args.source.is_dir():
        raise SystemExit(f"Resource folder not found: {args.source}")

    members = build_archive(args.source, args.output)
    print(f"Wrote {len(members)} file(s) to {args.output}")


if __name__ == "__main__":
    main()
