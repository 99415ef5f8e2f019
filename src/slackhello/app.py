"""Application wiring: one session task feeding one dispatcher task."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from loguru import logger

from slackhello.config import Settings
from slackhello.dispatcher import EventDispatcher
from slackhello.session import RealtimeSession


@dataclass
class Application:
    session: RealtimeSession
    dispatcher: EventDispatcher

    async def run(self) -> None:
        """Run until the session terminates.

        The dispatcher consumes on its own task, so a slow reply only delays later
        events and never the connection lifecycle.
        """

        dispatcher_task = asyncio.create_task(
            self.dispatcher.run(self.session.events()), name="slackhello.dispatcher"
        )
        logger.info("app.start")
        try:
            await self.session.start()
        finally:
            # The session closes its event sequence on exit; let the dispatcher drain it.
            await dispatcher_task
            logger.info("app.stopped")


def build_application(settings: Settings) -> Application:
    """Build the session and dispatcher. Call from inside a running event loop."""

    session = RealtimeSession.from_settings(settings)
    return Application(session=session, dispatcher=EventDispatcher(session))
