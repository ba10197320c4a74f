"""Typed envelopes for the inbound Socket Mode stream.

WHY: The dispatch loop needs to know exactly what kind of thing it is
holding before it acts on it. Raw Socket Mode requests are loosely typed
dicts; a payload that does not look like its declared type must be
skipped rather than half-processed.

HOW: Each envelope kind is a small frozen dataclass tagged with an
EnvelopeKind. classify_request() turns a slack_sdk SocketModeRequest into
one of them. Slack payloads that are read field-by-field (messages, files,
slash commands) are validated with pydantic models; anything that fails
validation becomes an Unrecognized envelope.

RULES:
- Only ApiEvent and SlashCommandEvent carry an acknowledgement handle
- Unknown request types and invalid payloads map to Unrecognized
- Pydantic models ignore extra Slack fields
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

# Socket Mode request types we know how to handle
REQUEST_EVENTS_API = "events_api"
REQUEST_SLASH_COMMANDS = "slash_commands"

# Events API inner event type carrying user messages
EVENT_TYPE_MESSAGE = "message"


class EnvelopeKind(str, enum.Enum):
    """Discriminator for every envelope the dispatch loop can receive."""

    CONNECTING = "connecting"
    CONNECTION_ERROR = "connection_error"
    CONNECTED = "connected"
    API_EVENT = "api_event"
    SLASH_COMMAND = "slash_command"
    UNRECOGNIZED = "unrecognized"


# ---------------------------------------------------------------------------
# Slack payload models
# ---------------------------------------------------------------------------


class FileReference(BaseModel):
    """A file attached to a message.

    RULES:
    - name is user-controlled and must be sanitized before touching disk
    - url_private_download is only filled in after files.info resolution
    """

    id: str = Field(description="Slack file ID (F...).")
    name: str = Field(default="", description="Declared filename, untrusted.")
    url_private_download: Optional[str] = Field(
        default=None,
        description="Time-limited private download URL.",
    )


class MessageEvent(BaseModel):
    """Events API `message` event, reduced to the fields the bot reads."""

    type: str = Field(default=EVENT_TYPE_MESSAGE)
    channel: str = Field(description="Channel the message was posted in.")
    user: Optional[str] = Field(default=None, description="Author user ID.")
    bot_id: Optional[str] = Field(default=None, description="Author bot ID, if any.")
    subtype: Optional[str] = Field(default=None)
    ts: Optional[str] = Field(default=None)
    files: List[FileReference] = Field(default_factory=list)


class SlashCommand(BaseModel):
    """Slash command invocation payload."""

    command: str
    channel_id: str
    text: str = ""
    user_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Connecting:
    kind: ClassVar[EnvelopeKind] = EnvelopeKind.CONNECTING


@dataclass(frozen=True)
class ConnectionFailed:
    error: str = ""
    kind: ClassVar[EnvelopeKind] = EnvelopeKind.CONNECTION_ERROR


@dataclass(frozen=True)
class Connected:
    kind: ClassVar[EnvelopeKind] = EnvelopeKind.CONNECTED


@dataclass(frozen=True)
class ApiEvent:
    """An Events API callback; the inner event is kept as a raw dict."""

    envelope_id: str
    event_type: str
    event: Dict[str, Any] = field(default_factory=dict)
    kind: ClassVar[EnvelopeKind] = EnvelopeKind.API_EVENT


@dataclass(frozen=True)
class SlashCommandEvent:
    envelope_id: str
    command: SlashCommand
    kind: ClassVar[EnvelopeKind] = EnvelopeKind.SLASH_COMMAND


@dataclass(frozen=True)
class Unrecognized:
    """A request whose type or payload did not match anything we handle."""

    request_type: str
    reason: str
    kind: ClassVar[EnvelopeKind] = EnvelopeKind.UNRECOGNIZED


Envelope = Union[
    Connecting,
    ConnectionFailed,
    Connected,
    ApiEvent,
    SlashCommandEvent,
    Unrecognized,
]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_request(request: Any) -> Envelope:
    """Turn a Socket Mode request into a typed envelope.

    WHY: The Socket Mode client hands over requests whose payload shape
    depends on request.type. Checking that shape once, here, lets the
    dispatch loop trust every field it reads.

    HOW: Looks at request.type and validates request.payload against the
    shape that type promises.

    RULES:
    - events_api needs a dict payload with a dict "event" that has a "type"
    - slash_commands must validate as SlashCommand
    - A missing envelope_id makes the request Unrecognized (it cannot be acked)
    - Everything else is Unrecognized
    """
    request_type = str(getattr(request, "type", "") or "")
    envelope_id = getattr(request, "envelope_id", "") or ""
    payload = getattr(request, "payload", None)

    if request_type not in (REQUEST_EVENTS_API, REQUEST_SLASH_COMMANDS):
        return Unrecognized(request_type, "unsupported request type")

    if not envelope_id:
        return Unrecognized(request_type, "missing envelope_id")

    if not isinstance(payload, dict):
        return Unrecognized(request_type, "payload is not an object")

    if request_type == REQUEST_EVENTS_API:
        event = payload.get("event")
        if not isinstance(event, dict) or not event.get("type"):
            return Unrecognized(request_type, "payload has no typed inner event")
        return ApiEvent(envelope_id=envelope_id, event_type=str(event["type"]), event=event)

    try:
        command = SlashCommand.model_validate(payload)
    except ValidationError as exc:
        return Unrecognized(
            request_type,
            "invalid slash command payload ({} errors)".format(exc.error_count()),
        )
    return SlashCommandEvent(envelope_id=envelope_id, command=command)


def parse_message_event(event: Dict[str, Any]) -> Optional[MessageEvent]:
    """Validate an inner `message` event, returning None if it is malformed."""
    try:
        return MessageEvent.model_validate(event)
    except ValidationError:
        return None
