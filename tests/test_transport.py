from __future__ import annotations

from typing import Any

import aiohttp
import pytest
from slack_sdk.errors import SlackApiError

from slackhello.errors import ReplyDeliveryError
from slackhello.transport import TransportClient


class DummyWebClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def chat_postMessage(self, **kwargs: Any) -> dict[str, Any]:  # noqa: N802
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"ok": True, "ts": "300.1"}


@pytest.mark.asyncio
async def test_post_message_threads_reply() -> None:
    web = DummyWebClient()
    client = TransportClient(web)  # type: ignore[arg-type]

    ts = await client.post_message("C1", "100.1", "Yes, hello.")

    assert ts == "300.1"
    assert web.calls == [{"channel": "C1", "text": "Yes, hello.", "thread_ts": "100.1"}]


@pytest.mark.asyncio
async def test_post_message_without_thread_omits_thread_ts() -> None:
    web = DummyWebClient()
    client = TransportClient(web)  # type: ignore[arg-type]

    await client.post_message("C1", None, "top level")

    assert web.calls == [{"channel": "C1", "text": "top level"}]


@pytest.mark.asyncio
async def test_api_error_is_wrapped() -> None:
    error = SlackApiError("The request to the Slack API failed.", {"ok": False, "error": "not_in_channel"})
    client = TransportClient(DummyWebClient(error))  # type: ignore[arg-type]

    with pytest.raises(ReplyDeliveryError) as excinfo:
        await client.post_message("C1", None, "hi")

    assert excinfo.value.channel == "C1"
    assert excinfo.value.detail == "not_in_channel"
    assert excinfo.value.__cause__ is error


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("reset"), TimeoutError()])
async def test_network_errors_are_wrapped(error: Exception) -> None:
    client = TransportClient(DummyWebClient(error))  # type: ignore[arg-type]

    with pytest.raises(ReplyDeliveryError, match="failed posting message to C1"):
        await client.post_message("C1", "1.0", "hi")


def test_from_token_builds_async_web_client() -> None:
    client = TransportClient.from_token("xoxb-test")
    assert client.web_client.token == "xoxb-test"
