"""Event dispatcher: decode, acknowledge and answer Socket Mode events."""

from __future__ import annotations

from collections.abc import AsyncIterable
from typing import Protocol

from loguru import logger

from slackhello.errors import EnvelopeDecodeError, ReplyDeliveryError
from slackhello.events import (
    AppMention,
    Connected,
    ConnectionFailed,
    Connecting,
    EnvelopeType,
    EventsAPI,
    EventsAPIEnvelope,
    Hello,
    InnerEvent,
    MemberJoinedChannel,
    Message,
    Other,
    ReplyAction,
    TransportEvent,
    Unrecognized,
    decode_envelope,
)

MENTION_REPLY = "Yes, hello."
PLAIN_MESSAGE_SUBTYPE = "message"


class SessionProtocol(Protocol):
    """What the dispatcher needs from the realtime session."""

    async def ack(self, envelope_id: str) -> None: ...

    async def post_message(self, channel: str, thread_ts: str | None, text: str) -> str: ...


def route(inner: InnerEvent) -> ReplyAction | None:
    """Pick the reply for one inner event, if any."""

    match inner:
        case AppMention(author_id=""):
            return ReplyAction(channel=inner.channel, text=MENTION_REPLY, thread_ts=inner.timestamp)
        case Message(author_id="", subtype=subtype) if subtype == PLAIN_MESSAGE_SUBTYPE:
            return ReplyAction(channel=inner.channel, text=f"message: {inner.text}", thread_ts=inner.timestamp)
        case AppMention() | Message():
            # Bot-authored events and edit/delete/join notices get no reply.
            return None
        case MemberJoinedChannel(user_id=user, channel_id=channel):
            logger.info("dispatcher.member_joined user={user} channel={channel}", user=user, channel=channel)
            return None
        case Unrecognized(type=event_type):
            logger.info("dispatcher.inner.ignored type={type}", type=event_type)
            return None


class EventDispatcher:
    """Single sequential consumer of the session's event sequence."""

    def __init__(self, session: SessionProtocol) -> None:
        self.session = session

    async def run(self, events: AsyncIterable[TransportEvent]) -> None:
        async for event in events:
            try:
                await self.handle(event)
            except Exception:
                logger.exception("dispatcher.event.error event={event}", event=repr(event))
        logger.info("dispatcher.stopped")

    async def handle(self, event: TransportEvent) -> None:
        match event:
            case Connecting():
                logger.info("dispatcher.connecting")
            case ConnectionFailed(reason=reason):
                logger.info("dispatcher.connection_failed retrying=later reason={reason}", reason=reason)
            case Connected():
                logger.info("dispatcher.connected")
            case Hello(num_connections=num_connections):
                logger.debug("dispatcher.hello num_connections={num_connections}", num_connections=num_connections)
            case EventsAPI(request=request):
                try:
                    envelope = decode_envelope(request)
                except EnvelopeDecodeError as exc:
                    logger.warning(
                        "dispatcher.envelope.ignored envelope_id={envelope_id} error={error}",
                        envelope_id=request.envelope_id,
                        error=str(exc),
                    )
                    return
                await self.handle_envelope(envelope)
            case Other(type=event_type):
                logger.error("dispatcher.unexpected_event type={type}", type=event_type)

    async def handle_envelope(self, envelope: EventsAPIEnvelope) -> None:
        logger.info(
            "dispatcher.event.received envelope_id={envelope_id} type={type} event_id={event_id}",
            envelope_id=envelope.envelope_id,
            type=envelope.type,
            event_id=envelope.event_id,
        )
        if envelope.type is not EnvelopeType.CALLBACK or envelope.inner is None:
            logger.info("dispatcher.envelope.unsupported type={type}", type=envelope.type)
            return

        # Callback envelopes are acked exactly once, before routing.
        try:
            await self.session.ack(envelope.envelope_id)
        except Exception as exc:
            logger.error(
                "dispatcher.ack.failed envelope_id={envelope_id} error={error}",
                envelope_id=envelope.envelope_id,
                error=repr(exc),
            )

        action = route(envelope.inner)
        if action is None:
            return
        await self.reply(action)

    async def reply(self, action: ReplyAction) -> None:
        try:
            await self.session.post_message(action.channel, action.thread_ts, action.text)
        except ReplyDeliveryError as exc:
            logger.error(
                "dispatcher.reply.failed channel={channel} error={error}", channel=action.channel, error=exc.detail
            )
            return
        logger.info(
            "dispatcher.reply.sent channel={channel} thread_ts={thread_ts}",
            channel=action.channel,
            thread_ts=action.thread_ts,
        )
