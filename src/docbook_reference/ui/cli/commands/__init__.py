"""CLI command implementations."""

from __future__ import annotations

from .build import build
from .tasks import list_tasks


__all__ = ["build", "list_tasks"]
