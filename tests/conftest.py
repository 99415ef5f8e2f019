from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from loguru import logger
from slack_sdk.socket_mode.request import SocketModeRequest

from slackhello.errors import ReplyDeliveryError


class FakeSession:
    """Records acks and posts instead of talking to Slack."""

    def __init__(self, *, fail_post: bool = False) -> None:
        self.fail_post = fail_post
        self.acks: list[str] = []
        self.posts: list[tuple[str, str | None, str]] = []

    async def ack(self, envelope_id: str) -> None:
        self.acks.append(envelope_id)

    async def post_message(self, channel: str, thread_ts: str | None, text: str) -> str:
        self.posts.append((channel, thread_ts, text))
        if self.fail_post:
            raise ReplyDeliveryError(channel, "channel_not_found")
        return "999.1"


def _callback_request(event: dict[str, Any], envelope_id: str = "env-1") -> SocketModeRequest:
    return SocketModeRequest(
        type="events_api",
        envelope_id=envelope_id,
        payload={"type": "event_callback", "team_id": "T1", "event_id": "Ev1", "event": event},
    )


@pytest.fixture
def callback_request() -> Callable[..., SocketModeRequest]:
    return _callback_request


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def failing_session() -> FakeSession:
    return FakeSession(fail_post=True)


@pytest.fixture
def log_records() -> Iterator[list[dict[str, Any]]]:
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG", format="{message}")
    yield records
    logger.remove(handler_id)
