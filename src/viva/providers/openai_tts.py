"""
OpenAI TTS Gateway — alternative synthesis backend.

Aura voice ids are mapped onto OpenAI voices by gender so a persona keeps
a consistent voice character when the backend changes.
"""

from __future__ import annotations

import logging
import time
from typing import AsyncIterator

from openai import AsyncOpenAI

import viva.core.config as config_module
from viva.core.metrics import metrics
from viva.providers.base import SynthesisGateway
from viva.voices import VOICES

logger = logging.getLogger(__name__)

_GENDER_VOICES = {"female": "nova", "male": "onyx"}


class OpenAISynthesisGateway(SynthesisGateway):
    supports_streaming = True
    audio_format = "mp3"
    sample_rate = 24000

    def __init__(self) -> None:
        self.client: AsyncOpenAI | None = None

    async def start(self) -> None:
        if self.client:
            return
        cfg = config_module.config.tts
        self.client = AsyncOpenAI(api_key=cfg.openai_api_key or None)
        logger.info("OpenAI TTS ready (model=%s)", cfg.openai_model)

    async def stop(self) -> None:
        if self.client:
            await self.client.close()
        self.client = None

    def _voice_for(self, speaker: str) -> str:
        profile = VOICES.get(speaker)
        if profile:
            return _GENDER_VOICES.get(profile.gender, config_module.config.tts.openai_voice)
        return config_module.config.tts.openai_voice

    async def synthesize(self, text: str, speaker: str) -> bytes:
        if not self.client:
            raise RuntimeError("OpenAI TTS not started")

        started = time.time()
        metrics.inc("provider.tts.requests", labels={"provider": "openai"})
        try:
            response = await self.client.audio.speech.create(
                model=config_module.config.tts.openai_model,
                voice=self._voice_for(speaker),
                input=text,
                response_format="mp3",
            )
            audio = response.content
        except Exception:
            metrics.inc("provider.tts.errors", labels={"provider": "openai"})
            raise

        metrics.observe(
            "provider.tts.latency_ms",
            (time.time() - started) * 1000,
            labels={"provider": "openai"},
        )
        return audio

    async def synthesize_stream(self, text: str, speaker: str) -> AsyncIterator[bytes]:
        if not self.client:
            raise RuntimeError("OpenAI TTS not started")

        metrics.inc(
            "provider.tts.requests", labels={"provider": "openai", "mode": "stream"}
        )
        try:
            async with self.client.audio.speech.with_streaming_response.create(
                model=config_module.config.tts.openai_model,
                voice=self._voice_for(speaker),
                input=text,
                response_format="mp3",
            ) as response:
                async for chunk in response.iter_bytes():
                    if chunk:
                        yield chunk
        except Exception:
            metrics.inc("provider.tts.errors", labels={"provider": "openai"})
            raise

    async def health_check(self) -> dict:
        return {
            "provider": "openai",
            "model": config_module.config.tts.openai_model,
            "status": "ready" if self.client else "not_started",
        }
