"""Helpers resolving ``${name}`` placeholders in DocBook entry-point files."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
import re
from typing import Any


logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\$\{\s*([A-Za-z_][\w.-]*)\s*\}")
_MISSING = object()


def _lookup(context: Mapping[str, Any], path: str) -> Any:
    if path in context:
        return context[path]
    current: Any = context
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current.get(part)
    return current


def expand_variables(
    text: str,
    variables: Mapping[str, Any],
    *,
    source: str | None = None,
) -> str:
    """Replace ``${path.to.value}`` placeholders in ``text`` using ``variables``.

    Unknown placeholders are left untouched.
    """

    def _replacement(match: re.Match[str]) -> str:
        raw_path = match.group(1)
        value = _lookup(variables, raw_path)
        if value is _MISSING or value is None:
            location = f" in {source}" if source else ""
            logger.debug("Unresolved placeholder '${%s}'%s; leaving it as-is.", raw_path, location)
            return match.group(0)
        return str(value)

    return _PLACEHOLDER_RE.sub(_replacement, text)


def expand_file(
    source: Path,
    destination: Path,
    variables: Mapping[str, Any],
    *,
    encoding: str = "utf-8",
) -> Path:
    """Copy ``source`` to ``destination`` with placeholders expanded.

    Line endings are preserved.
    """
    with source.open("r", encoding=encoding, newline="") as handle:
        text = handle.read()
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("w", encoding=encoding, newline="") as handle:
        handle.write(expand_variables(text, variables, source=str(source)))
    return destination


__all__ = ["expand_file", "expand_variables"]
