"""
Error taxonomy and structured logging helpers for the migration.

The exception classes defined here are the only errors raised across
package boundaries:

``InvalidInputError``
    A pipeline entry point received malformed arguments.  Fatal to the call.
``NetworkError``
    A download, upload or submission failed in transport or returned a
    non-2xx status.  Recovered per image, surfaced per post.
``FormatError``
    A response or block could not be understood.  The offending unit is
    skipped.
``ConfigError``
    Configuration is missing or malformed.  Aborts the run before any work.

The :func:`report_error` and :func:`report_ok` helpers append one JSON
object per line under ``reports/migration`` so that the outcome of every
post can be reviewed or parsed after a run.  The ``ERRORS`` dictionary maps
event codes to human readable messages; unknown codes fall back to the code
itself.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class MigrationError(Exception):
    """Base class for all errors raised by the migrator."""


class InvalidInputError(MigrationError):
    """Malformed argument passed to a pipeline entry point."""


class NetworkError(MigrationError):
    """Transport failure or non-2xx response from a remote endpoint."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details

    def __str__(self) -> str:
        message = super().__str__()
        if self.details:
            return f"{message}, details: {json.dumps(self.details, ensure_ascii=False, default=str)}"
        return message


class FormatError(MigrationError):
    """Unparseable response or unsupported structure."""


class ConfigError(MigrationError):
    """Missing or malformed configuration."""


# Mapping of event codes used throughout the migration to descriptive messages.
ERRORS: Dict[str, str] = {
    "POST_IMPORTED": "Post imported into Strapi",
    "POST_DRY_RUN": "Post converted (dry run, nothing submitted)",
    "POST_IMPORT_FAILED": "Failed to import post into Strapi",
    "IMAGE_REHOST_FAILED": "Failed to rehost image",
}

_REPORT_DIR = os.path.join("reports", "migration")
_ERROR_LOG = "errors.jsonl"
_OK_LOG = "success.jsonl"


def _write_jsonl(filename: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``filename``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(os.path.join(_REPORT_DIR, filename), "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def report_error(code: str, post: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
    """Log an error event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    post:
        Dictionary describing the post.  Only ``id``, ``slug`` and ``title``
        are referenced if present.
    exc:
        Optional exception that triggered the error.  Its string form is
        included in the entry, as is the status code of a
        :class:`NetworkError`.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "id": post.get("id"),
        "slug": post.get("slug"),
        "title": post.get("title"),
    }
    if exc is not None:
        entry["error"] = str(exc)
        if isinstance(exc, NetworkError) and exc.status_code is not None:
            entry["status"] = exc.status_code
    logger.error("%s - %s", message, post.get("slug") or post.get("id") or "")
    _write_jsonl(_ERROR_LOG, entry)


def report_ok(code: str, post: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Log a successful event for ``post``.

    ``extra`` is merged into the entry.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "id": post.get("id"),
        "slug": post.get("slug"),
        "title": post.get("title"),
    }
    if extra:
        entry.update(extra)
    logger.info("%s - %s", message, post.get("slug") or post.get("id") or "")
    _write_jsonl(_OK_LOG, entry)
