"""
Deepgram STT Gateway — batch transcription of one recorded utterance.

Clients send a complete utterance per `audio` message, so the pre-recorded
endpoint is enough; no live socket is held per session.
"""

from __future__ import annotations

import logging
import time

from deepgram import AsyncDeepgramClient

import viva.core.config as config_module
from viva.core.metrics import metrics
from viva.providers.base import RecognitionGateway

logger = logging.getLogger(__name__)


class DeepgramRecognitionGateway(RecognitionGateway):
    def __init__(self) -> None:
        self.client: AsyncDeepgramClient | None = None

    async def start(self) -> None:
        if self.client:
            return
        cfg = config_module.config.stt
        if not cfg.api_key:
            raise ValueError("DEEPGRAM_API_KEY not set")
        self.client = AsyncDeepgramClient(api_key=cfg.api_key)
        logger.info("Deepgram STT ready (model=%s)", cfg.model)

    async def stop(self) -> None:
        self.client = None

    async def transcribe(self, audio: bytes) -> str | None:
        if not self.client:
            raise RuntimeError("Deepgram STT not started")
        if not audio:
            return None

        cfg = config_module.config.stt
        started = time.time()
        metrics.inc("provider.stt.requests", labels={"provider": "deepgram"})
        try:
            response = await self.client.listen.v1.media.transcribe_file(
                request=audio,
                model=cfg.model,
                smart_format=True,
                language=cfg.language,
            )
        except Exception:
            metrics.inc("provider.stt.errors", labels={"provider": "deepgram"})
            raise

        metrics.observe(
            "provider.stt.latency_ms",
            (time.time() - started) * 1000,
            labels={"provider": "deepgram"},
        )
        channels = response.results.channels if response.results else []
        if not channels or not channels[0].alternatives:
            return None
        transcript = channels[0].alternatives[0].transcript or ""
        return transcript.strip() or None

    async def health_check(self) -> dict:
        return {
            "provider": "deepgram",
            "model": config_module.config.stt.model,
            "status": "ready" if self.client else "not_started",
        }
