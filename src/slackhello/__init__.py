"""slackhello - a Socket Mode bot that answers mentions and messages in thread."""

from slackhello.app import Application, build_application
from slackhello.config import Settings, load_settings
from slackhello.dispatcher import EventDispatcher
from slackhello.session import RealtimeSession
from slackhello.transport import TransportClient

__version__ = "0.1.0"

__all__ = [
    "Application",
    "EventDispatcher",
    "RealtimeSession",
    "Settings",
    "TransportClient",
    "build_application",
    "load_settings",
]
