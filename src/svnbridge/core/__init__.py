"""
Core infrastructure shared by the svnbridge adapters.

The package stays dependency-free apart from the standard library. It holds the
domain model handed to host applications and the logging helpers.
"""

from .logging import configure_logging, get_logger, log_progress
from .models import (
    AnnotatedLine,
    Annotate,
    AnnotateBuilder,
    Entries,
    Entry,
    Info,
    Kind,
    PathChange,
    Revision,
    RevisionQueryOptions,
    Revisions,
)

__all__ = [
    "Annotate",
    "AnnotateBuilder",
    "AnnotatedLine",
    "Entries",
    "Entry",
    "Info",
    "Kind",
    "PathChange",
    "Revision",
    "RevisionQueryOptions",
    "Revisions",
    "configure_logging",
    "get_logger",
    "log_progress",
]
