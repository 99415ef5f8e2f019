"""Transport and Events API models.

Everything the session surfaces and the dispatcher switches on is a closed set of
frozen dataclasses. Decoding turns raw Socket Mode payloads into those variants, and
an unknown inner event type is a regular ``Unrecognized`` value rather than an error.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from slack_sdk.socket_mode.request import SocketModeRequest

from slackhello.errors import EnvelopeDecodeError

EVENTS_API_REQUEST = "events_api"


class SessionState(StrEnum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CONNECTION_ERROR = "connection_error"
    TERMINATED = "terminated"


# Transport events, produced by the session and consumed once by the dispatcher.


@dataclass(frozen=True)
class Connecting:
    pass


@dataclass(frozen=True)
class ConnectionFailed:
    reason: str = ""


@dataclass(frozen=True)
class Connected:
    pass


@dataclass(frozen=True)
class Hello:
    num_connections: int | None = None


@dataclass(frozen=True)
class EventsAPI:
    request: SocketModeRequest


@dataclass(frozen=True)
class Other:
    type: str
    payload: Any = None


type TransportEvent = Connecting | ConnectionFailed | Connected | Hello | EventsAPI | Other


# Inner events carried by callback envelopes.


@dataclass(frozen=True)
class AppMention:
    channel: str
    timestamp: str
    author_id: str = ""
    user: str = ""
    text: str = ""


@dataclass(frozen=True)
class Message:
    channel: str
    timestamp: str
    author_id: str = ""
    text: str = ""
    subtype: str = "message"


@dataclass(frozen=True)
class MemberJoinedChannel:
    user_id: str
    channel_id: str


@dataclass(frozen=True)
class Unrecognized:
    type: str
    raw: Mapping[str, Any] = field(default_factory=dict)


type InnerEvent = AppMention | Message | MemberJoinedChannel | Unrecognized


class EnvelopeType(StrEnum):
    CALLBACK = "event_callback"
    URL_VERIFICATION = "url_verification"
    APP_RATE_LIMITED = "app_rate_limited"


@dataclass(frozen=True)
class EventsAPIEnvelope:
    """One decoded Events API payload plus the handle needed to acknowledge it."""

    type: EnvelopeType
    envelope_id: str
    inner: InnerEvent | None = None
    team_id: str = ""
    event_id: str = ""


@dataclass(frozen=True)
class ReplyAction:
    channel: str
    text: str
    thread_ts: str | None = None


def _require_str(data: Mapping[str, Any], key: str, kind: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise EnvelopeDecodeError(f"{kind} event is missing {key!r}")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def decode_inner_event(data: Any) -> InnerEvent:
    """Decode the ``event`` object of a callback envelope."""

    if not isinstance(data, Mapping):
        raise EnvelopeDecodeError("inner event is not an object")
    event_type = data.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise EnvelopeDecodeError("inner event has no type")

    match event_type:
        case "app_mention":
            return AppMention(
                channel=_require_str(data, "channel", event_type),
                timestamp=_require_str(data, "ts", event_type),
                author_id=_optional_str(data, "bot_id"),
                user=_optional_str(data, "user"),
                text=_optional_str(data, "text"),
            )
        case "message":
            # Plain user messages carry no subtype on the wire.
            return Message(
                channel=_require_str(data, "channel", event_type),
                timestamp=_require_str(data, "ts", event_type),
                author_id=_optional_str(data, "bot_id"),
                text=_optional_str(data, "text"),
                subtype=_optional_str(data, "subtype") or "message",
            )
        case "member_joined_channel":
            return MemberJoinedChannel(
                user_id=_require_str(data, "user", event_type),
                channel_id=_require_str(data, "channel", event_type),
            )
        case _:
            return Unrecognized(type=event_type, raw=dict(data))


def decode_envelope(request: SocketModeRequest) -> EventsAPIEnvelope:
    """Decode the payload of an ``events_api`` Socket Mode request."""

    payload = request.payload
    if not isinstance(payload, Mapping):
        raise EnvelopeDecodeError("events_api payload is not an object")
    raw_type = payload.get("type")
    try:
        envelope_type = EnvelopeType(raw_type)
    except ValueError:
        raise EnvelopeDecodeError(f"unsupported envelope type {raw_type!r}") from None

    inner = None
    if envelope_type is EnvelopeType.CALLBACK:
        inner = decode_inner_event(payload.get("event"))
    return EventsAPIEnvelope(
        type=envelope_type,
        envelope_id=request.envelope_id,
        inner=inner,
        team_id=_optional_str(payload, "team_id"),
        event_id=_optional_str(payload, "event_id"),
    )
