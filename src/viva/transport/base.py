"""
Channel — the bidirectional message pipe between a client and its session.

The session actor only ever calls send(); inbound messages are pushed
into VoiceSession.handle_message() by whoever owns the receive loop.
A channel holds no session state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Channel(ABC):
    """Outbound half of a client connection."""

    @abstractmethod
    async def send(self, message: dict) -> bool:
        """
        Deliver one structured message to the client.

        Must not raise on a dead connection: returns False and marks the
        channel closed instead, so a disconnect never tears down the actor.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...
