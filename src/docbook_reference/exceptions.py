"""Exception hierarchy for the reference documentation pipeline."""

from __future__ import annotations


class DocbookReferenceError(RuntimeError):
    """Base exception for reference documentation failures."""


class ConfigurationError(DocbookReferenceError):
    """Raised when project or task settings are invalid or incomplete."""


class ResourceBundleError(DocbookReferenceError):
    """Raised when the bundled DocBook resources cannot be located or unpacked."""


class CatalogError(DocbookReferenceError):
    """Raised when the bundled XML catalog is missing."""


class SourceDirectoryError(DocbookReferenceError):
    """Raised when the DocBook source directory does not exist."""


class StylesheetNotFoundError(DocbookReferenceError):
    """Raised when a stylesheet is found neither locally nor in the shared resources."""


class TransformError(DocbookReferenceError):
    """Raised when an XSLT transformation fails."""

    def __init__(self, message: str, *, log: list[str] | None = None) -> None:
        super().__init__(message)
        self.log = list(log or [])


class FormattingError(DocbookReferenceError):
    """Raised when the formatting-object renderer fails to produce a PDF."""


class FormatterUnavailableError(FormattingError):
    """Raised when no formatting-object renderer executable can be found."""


class TaskExecutionError(DocbookReferenceError):
    """Raised by the task graph when a task action fails."""

    def __init__(self, task_name: str, cause: BaseException) -> None:
        super().__init__(f"Execution failed for task '{task_name}': {cause}")
        self.task_name = task_name


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "CatalogError",
    "ConfigurationError",
    "DocbookReferenceError",
    "FormatterUnavailableError",
    "FormattingError",
    "ResourceBundleError",
    "SourceDirectoryError",
    "StylesheetNotFoundError",
    "TaskExecutionError",
    "TransformError",
    "exception_hint",
    "exception_messages",
]
