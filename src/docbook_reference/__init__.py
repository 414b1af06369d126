"""Build HTML and PDF reference documentation from DocBook sources.

The package registers reference tasks on a small build project: sources are
filtered into a work directory, the bundled DocBook resources are unpacked,
the DocBook XSL stylesheets run through lxml, and the output is finished per
format (images and CSS for HTML, Apache FOP rendering for PDF).
"""

from __future__ import annotations

from .build import Project, Task, TaskState
from .config import ReferenceConfig, ReferenceSettings, load_config
from .exceptions import DocbookReferenceError
from .plugin import (
    AGGREGATE_TASK,
    DocbookReferencePlugin,
    ReferenceTask,
    configure_project,
    create_reference_project,
)
from .tasks import (
    DocbookReferenceTask,
    DocumentJob,
    HtmlMultiDocbookReferenceTask,
    HtmlSingleDocbookReferenceTask,
    PdfDocbookReferenceTask,
    PendingJob,
)
from .version import get_version


__version__ = get_version()

__all__ = [
    "AGGREGATE_TASK",
    "DocbookReferenceError",
    "DocbookReferencePlugin",
    "DocbookReferenceTask",
    "DocumentJob",
    "HtmlMultiDocbookReferenceTask",
    "HtmlSingleDocbookReferenceTask",
    "PdfDocbookReferenceTask",
    "PendingJob",
    "Project",
    "ReferenceConfig",
    "ReferenceSettings",
    "ReferenceTask",
    "Task",
    "TaskState",
    "__version__",
    "configure_project",
    "create_reference_project",
    "get_version",
    "load_config",
]
