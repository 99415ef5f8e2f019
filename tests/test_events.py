from __future__ import annotations

import pytest
from slack_sdk.socket_mode.request import SocketModeRequest

from slackhello.errors import EnvelopeDecodeError
from slackhello.events import (
    AppMention,
    EnvelopeType,
    MemberJoinedChannel,
    Message,
    Unrecognized,
    decode_envelope,
    decode_inner_event,
)


def _request(payload: object) -> SocketModeRequest:
    return SocketModeRequest(type="events_api", envelope_id="env-1", payload=payload)  # type: ignore[arg-type]


def test_decode_callback_envelope_with_mention() -> None:
    envelope = decode_envelope(
        _request(
            {
                "type": "event_callback",
                "team_id": "T1",
                "event_id": "Ev1",
                "event": {
                    "type": "app_mention",
                    "channel": "C1",
                    "ts": "100.1",
                    "user": "U1",
                    "text": "<@B1> hello",
                },
            }
        )
    )

    assert envelope.type is EnvelopeType.CALLBACK
    assert envelope.envelope_id == "env-1"
    assert envelope.team_id == "T1"
    assert envelope.event_id == "Ev1"
    assert envelope.inner == AppMention(channel="C1", timestamp="100.1", author_id="", user="U1", text="<@B1> hello")


def test_plain_message_decodes_with_message_subtype() -> None:
    inner = decode_inner_event({"type": "message", "channel": "C2", "ts": "200.5", "text": "hi there"})
    assert inner == Message(channel="C2", timestamp="200.5", author_id="", text="hi there", subtype="message")


def test_bot_message_keeps_bot_id_and_subtype() -> None:
    inner = decode_inner_event(
        {"type": "message", "subtype": "bot_message", "bot_id": "B9", "channel": "C2", "ts": "1.0", "text": "x"}
    )
    assert isinstance(inner, Message)
    assert inner.author_id == "B9"
    assert inner.subtype == "bot_message"


def test_member_joined_channel() -> None:
    inner = decode_inner_event({"type": "member_joined_channel", "user": "U9", "channel": "C3", "team": "T1"})
    assert inner == MemberJoinedChannel(user_id="U9", channel_id="C3")


def test_unknown_inner_type_is_unrecognized_not_an_error() -> None:
    raw = {"type": "reaction_added", "reaction": "tada"}
    inner = decode_inner_event(raw)
    assert inner == Unrecognized(type="reaction_added", raw=raw)


def test_non_callback_envelope_has_no_inner_event() -> None:
    envelope = decode_envelope(_request({"type": "app_rate_limited", "team_id": "T1"}))
    assert envelope.type is EnvelopeType.APP_RATE_LIMITED
    assert envelope.inner is None


@pytest.mark.parametrize(
    "payload",
    [
        "not json object",
        {},
        {"type": "something_new"},
        {"type": "event_callback"},
        {"type": "event_callback", "event": []},
        {"type": "event_callback", "event": {"channel": "C1"}},
        {"type": "event_callback", "event": {"type": "app_mention", "ts": "1.0"}},
        {"type": "event_callback", "event": {"type": "message", "channel": "C1"}},
        {"type": "event_callback", "event": {"type": "member_joined_channel", "user": "U1"}},
    ],
)
def test_malformed_payloads_raise_decode_error(payload: object) -> None:
    with pytest.raises(EnvelopeDecodeError):
        decode_envelope(_request(payload))
