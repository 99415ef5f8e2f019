"""Application-level exception types for slackhello."""

from __future__ import annotations


class SlackHelloError(Exception):
    """Base exception for slackhello."""


class ConfigurationError(SlackHelloError):
    """Base exception for configuration and startup validation errors."""


class MissingCredentialError(ConfigurationError):
    """Raised when a required Slack token is absent or empty."""


class InvalidCredentialError(ConfigurationError):
    """Raised when a Slack token does not carry its expected prefix."""


class SessionStartError(SlackHelloError):
    """Raised when the Socket Mode connection cannot be opened at all."""


class EnvelopeDecodeError(SlackHelloError):
    """Raised when an Events API payload does not match a known shape."""


class ReplyDeliveryError(SlackHelloError):
    """Raised when a chat.postMessage call fails."""

    def __init__(self, channel: str, detail: str) -> None:
        super().__init__(f"failed posting message to {channel}: {detail}")
        self.channel = channel
        self.detail = detail
