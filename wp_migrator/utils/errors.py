"""
Error kinds and structured event reports for the migration.

Every failure raised by the transfer engine is a :class:`MigrationError`
subclass carrying a closed :class:`ErrorKind` and a human readable,
remediation-oriented message.  Callers branch on ``exc.kind`` rather than
on message text.

The module also keeps the JSON Lines reports written during a run:

``report_error``
    Record a failed event for a content item.  An optional exception can be
    supplied and will be serialized to the log.

``report_ok``
    Record a successful event for a content item.  Additional key/value
    information can be attached to the entry via the ``extra`` parameter.

The ``EVENTS`` dictionary maps event codes to human readable messages.
Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import enum
import json
import logging
import os
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    CONNECTIVITY = "connectivity"
    HTTP_STATUS = "http_status"
    AUTHENTICATION = "authentication"
    INVALID_URL = "invalid_url"
    STAGE = "stage"


class MigrationError(Exception):
    """Base class for every error surfaced by the migration engine."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConnectivityError(MigrationError):
    """No response was received at all (network, CORS, mixed content)."""

    kind = ErrorKind.CONNECTIVITY


class HttpStatusError(MigrationError):
    """A response arrived with a non-2xx status."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        reason: str = "",
        server_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.server_message = server_message

    @classmethod
    def from_response(cls, resp: requests.Response, prefix: Optional[str] = None) -> "HttpStatusError":
        """Build the error from a failed response.

        The body's JSON ``message`` wins over the generic
        ``HTTP error! status: <code>`` text.  ``prefix`` names the failed
        operation, as in ``"<prefix>: <message>"``.
        """
        server_message = server_message_from(resp)
        message = server_message or f"HTTP error! status: {resp.status_code}"
        if prefix:
            message = f"{prefix}: {message}"
        return cls(
            message,
            status_code=resp.status_code,
            reason=resp.reason or "",
            server_message=server_message,
        )


class ApiUnreachableError(HttpStatusError):
    """The REST root answered with a non-2xx status."""


class AuthenticationError(MigrationError):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidUrlError(MigrationError):
    """A URL could not be used for a request (no scheme, malformed host)."""

    kind = ErrorKind.INVALID_URL


class InvalidMediaUrlError(InvalidUrlError):
    pass


class StageError(MigrationError):
    """Wraps the failure of one transfer stage with a stage-identifying prefix."""

    kind = ErrorKind.STAGE
    stage = ""
    prefix = ""

    def __init__(self, cause: BaseException, *, prefix: Optional[str] = None) -> None:
        detail = getattr(cause, "message", None) or str(cause)
        super().__init__(f"{prefix or self.prefix}: {detail}")
        self.cause = cause

    @property
    def cause_kind(self) -> Optional[ErrorKind]:
        return getattr(self.cause, "kind", None)


class MediaTransferError(StageError):
    stage = "media"
    prefix = "Media transfer failed"


class TaxonomyError(StageError):
    stage = "taxonomy"
    prefix = "Taxonomy (category/tag) transfer failed"


class CreationError(StageError):
    stage = "creation"
    prefix = "Post creation failed"


def server_message_from(resp: requests.Response) -> Optional[str]:
    """Return the ``message`` field of a JSON error body, if there is one."""
    try:
        data = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


###############################################################################
# JSON Lines reports
###############################################################################

EVENTS: Dict[str, str] = {
    "MEDIA_TRANSFER": "Failed to transfer featured media",
    "TAXONOMY_TRANSFER": "Failed to transfer categories/tags",
    "CREATE_CONTENT": "Failed to create content on destination",
    "FETCH_DETAILS": "Failed to fetch full details from source",
    "TRANSFER_FAILED": "Transfer failed",
    "TRANSFERRED": "Content transferred successfully",
}

STAGE_EVENT_CODES: Dict[str, str] = {
    "media": "MEDIA_TRANSFER",
    "taxonomy": "TAXONOMY_TRANSFER",
    "creation": "CREATE_CONTENT",
}

DEFAULT_REPORT_DIR = os.path.join("reports", "migration")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def _entry(code: str, item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "code": code,
        "message": EVENTS.get(code, code),
        "id": item.get("id"),
        "title": item.get("title"),
    }


def event_code_for(exc: BaseException) -> str:
    if isinstance(exc, StageError):
        return STAGE_EVENT_CODES.get(exc.stage, "TRANSFER_FAILED")
    return "TRANSFER_FAILED"


def report_error(
    code: str,
    item: Dict[str, Any],
    exc: Optional[BaseException] = None,
    *,
    report_dir: str = DEFAULT_REPORT_DIR,
) -> None:
    """Log an error event for ``item``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`EVENTS` its value will be used as the message.
    item:
        Dictionary describing the content item.  Only the ``id`` and
        ``title`` keys are referenced.
    exc:
        Optional exception instance that triggered the error.  Its message
        and, for :class:`MigrationError`, its kind are included.
    report_dir:
        Directory holding ``errors.jsonl``.
    """
    entry = _entry(code, item)
    if exc is not None:
        entry["error"] = getattr(exc, "message", None) or str(exc)
        kind = getattr(exc, "kind", None)
        if kind is not None:
            entry["kind"] = kind.value
    logger.error("%s - %s", entry["message"], item.get("id"))
    _write_jsonl(os.path.join(report_dir, "errors.jsonl"), entry)


def report_ok(
    code: str,
    item: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    *,
    report_dir: str = DEFAULT_REPORT_DIR,
) -> None:
    """Log a successful event for ``item``, merging ``extra`` into the entry."""
    entry = _entry(code, item)
    if extra:
        entry.update(extra)
    logger.info("%s - %s", entry["message"], item.get("id"))
    _write_jsonl(os.path.join(report_dir, "success.jsonl"), entry)
