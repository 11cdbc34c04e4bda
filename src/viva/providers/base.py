"""
Gateway base classes — the three black-box services a session calls.

Recognition turns audio into text, generation turns a bounded history
into a reply, synthesis turns reply text into audio. Implementations
raise on failure; the session actor converts failures and timeouts
into GatewayError at the stage boundary.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator


class RecognitionGateway(ABC):
    """Speech-to-text: (audio bytes) -> transcript | None."""

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def transcribe(self, audio: bytes) -> str | None:
        """Return the transcript, or None/"" when nothing was said."""
        ...

    async def health_check(self) -> dict:
        return {"provider": self.__class__.__name__, "status": "unknown"}


class GenerationGateway(ABC):
    """Reply generation: (bounded history, max tokens, temperature) -> text."""

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def generate(
        self,
        messages: list[dict],
        max_tokens: int = 150,
        temperature: float = 0.7,
    ) -> str:
        ...

    async def health_check(self) -> dict:
        return {"provider": self.__class__.__name__, "status": "unknown"}


class SynthesisGateway(ABC):
    """Text-to-speech: (text, speaker) -> audio bytes or an audio stream."""

    # Gateways that can yield audio before synthesis finishes set this.
    supports_streaming: bool = False
    audio_format: str = "mp3"
    sample_rate: int = 24000

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def synthesize(self, text: str, speaker: str) -> bytes:
        """Synthesize the whole text into one audio unit."""
        ...

    async def synthesize_stream(self, text: str, speaker: str) -> AsyncIterator[bytes]:
        """Yield audio as it is produced. Defaults to one complete unit."""
        yield await self.synthesize(text, speaker)

    async def health_check(self) -> dict:
        return {"provider": self.__class__.__name__, "status": "unknown"}
