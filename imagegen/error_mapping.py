"""Normalize heterogeneous provider error bodies into one ErrorResponse.

Provider error bodies come in a small closed set of shapes. A body is
classified into exactly one variant, then a fixed precedence chain picks the
message:

    1. string ``detail``                    -> used verbatim
    2. list ``detail`` (validation entries) -> ``msg`` values joined with "; "
    3. string ``message``                   -> used verbatim
    4. the transport error's own message
    5. the caller's default ("Generation failed" / "Upload failed")

Status codes are propagated when numeric and default to 500.
"""
import json
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from imagegen.models.image_models import ErrorResponse

GENERATION_FAILED = "Generation failed"
UPLOAD_FAILED = "Upload failed"
DEFAULT_STATUS = 500
DETAIL_SEPARATOR = "; "


@dataclass(frozen=True)
class DetailMessage:
    detail: str


@dataclass(frozen=True)
class DetailList:
    entries: List[Any]


@dataclass(frozen=True)
class MessageField:
    message: str


@dataclass(frozen=True)
class UnrecognizedBody:
    raw: Any = None


ErrorBody = Union[DetailMessage, DetailList, MessageField, UnrecognizedBody]


def _decode(body: Any) -> Any:
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


def classify_error_body(body: Any) -> ErrorBody:
    """Match `body` against the known error shapes, first match wins."""
    body = _decode(body)
    if not isinstance(body, dict):
        return UnrecognizedBody(body)

    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return DetailMessage(detail)
    if isinstance(detail, list) and detail:
        return DetailList(list(detail))

    message = body.get("message")
    if isinstance(message, str) and message:
        return MessageField(message)

    return UnrecognizedBody(body)


def _entry_message(entry: Any) -> str:
    if isinstance(entry, dict) and entry.get("msg") is not None:
        return str(entry["msg"])
    try:
        return json.dumps(entry, separators=(",", ":"), sort_keys=True)
    except (TypeError, ValueError):
        return str(entry)


def message_for(body: ErrorBody) -> Optional[str]:
    """Message carried by a classified body, or None if it carries none."""
    if isinstance(body, DetailMessage):
        return body.detail
    if isinstance(body, DetailList):
        return DETAIL_SEPARATOR.join(_entry_message(entry) for entry in body.entries)
    if isinstance(body, MessageField):
        return body.message
    return None


def normalize_status(status: Any) -> int:
    if isinstance(status, bool):
        return DEFAULT_STATUS
    if isinstance(status, int):
        return status
    if isinstance(status, str) and status.strip().isdigit():
        return int(status.strip())
    return DEFAULT_STATUS


def normalize_error(
    status: Any = None,
    body: Any = None,
    error: Optional[BaseException] = None,
    default: str = GENERATION_FAILED,
) -> ErrorResponse:
    """Map a status code, error body and transport error to an ErrorResponse."""
    message = message_for(classify_error_body(body))
    if not message and error is not None:
        message = str(error).strip() or None
    return ErrorResponse(error=message or default, status_code=normalize_status(status))
