"""
Error taxonomy for the session core.

- InputError: malformed or empty client message. Answered with `error`,
  the session stays alive.
- GatewayError: a recognition / generation / synthesis call failed or
  timed out. Converted to a single `error` message and a return to Idle.

Cancellation is not an error: it travels as asyncio.CancelledError and
is reported to the client only as `interrupted`.
"""

from __future__ import annotations


class VivaError(Exception):
    """Base class for errors raised by the session core."""


class InputError(VivaError):
    """A client message failed validation."""


class GatewayError(VivaError):
    """An external gateway call failed or timed out."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage} failed: {message}")
        self.stage = stage
        self.message = message

    @property
    def user_message(self) -> str:
        """Human-readable text for the client `error` message."""
        labels = {
            "recognition": "I couldn't hear that clearly",
            "generation": "I couldn't come up with a reply",
            "synthesis": "I couldn't speak my reply",
        }
        prefix = labels.get(self.stage, "Something went wrong")
        return f"{prefix} ({self.message}). Please try again."
