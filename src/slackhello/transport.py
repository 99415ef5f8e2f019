"""Outbound Slack Web API calls made with the bot token."""

from __future__ import annotations

import aiohttp
from loguru import logger
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from slackhello.errors import ReplyDeliveryError


class TransportClient:
    """Thin wrapper around ``AsyncWebClient`` for posting replies."""

    def __init__(self, web_client: AsyncWebClient) -> None:
        self.web_client = web_client

    @classmethod
    def from_token(cls, bot_token: str) -> TransportClient:
        return cls(AsyncWebClient(token=bot_token))

    async def post_message(self, channel: str, thread_ts: str | None, text: str) -> str:
        """Post ``text`` to ``channel``, threaded under ``thread_ts`` when given.

        Returns the timestamp of the posted message.
        """

        kwargs: dict[str, str] = {"channel": channel, "text": text}
        if thread_ts:
            kwargs["thread_ts"] = thread_ts
        try:
            response = await self.web_client.chat_postMessage(**kwargs)
        except SlackApiError as exc:
            raise ReplyDeliveryError(channel, str(exc.response.get("error", exc))) from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise ReplyDeliveryError(channel, repr(exc)) from exc
        ts = str(response.get("ts") or "")
        logger.debug("transport.post.ok channel={channel} ts={ts}", channel=channel, ts=ts)
        return ts
