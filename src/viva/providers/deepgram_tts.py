"""
Deepgram Aura TTS Gateway — REST text-to-speech with streamed response.

REST API: POST https://api.deepgram.com/v1/speak?model={voice}&encoding={enc}
The response body is raw audio; we yield it as it arrives so the first
chunk reaches the client before synthesis finishes.
"""

from __future__ import annotations

import logging
import time
from typing import AsyncIterator

import httpx

import viva.core.config as config_module
from viva.core.metrics import metrics
from viva.providers.base import SynthesisGateway

logger = logging.getLogger(__name__)

DEEPGRAM_SPEAK_URL = "https://api.deepgram.com/v1/speak"


class DeepgramSynthesisGateway(SynthesisGateway):
    supports_streaming = True

    def __init__(self) -> None:
        self.client: httpx.AsyncClient | None = None
        cfg = config_module.config.tts
        self.audio_format = cfg.encoding
        self.sample_rate = cfg.sample_rate

    async def start(self) -> None:
        if self.client:
            return
        cfg = config_module.config.tts
        if not cfg.deepgram_api_key:
            raise ValueError("DEEPGRAM_API_KEY not set")
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(cfg.timeout),
            headers={
                "Authorization": f"Token {cfg.deepgram_api_key}",
                "Content-Type": "application/json",
            },
        )
        logger.info("Deepgram TTS ready (encoding=%s)", cfg.encoding)

    async def stop(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    def _params(self, speaker: str) -> dict:
        params: dict = {"model": speaker, "encoding": self.audio_format}
        # Deepgram rejects sample_rate for compressed encodings.
        if self.audio_format in ("linear16", "mulaw", "alaw"):
            params["sample_rate"] = self.sample_rate
        return params

    async def synthesize(self, text: str, speaker: str) -> bytes:
        if not self.client:
            raise RuntimeError("Deepgram TTS not started")

        started = time.time()
        metrics.inc("provider.tts.requests", labels={"provider": "deepgram"})
        try:
            response = await self.client.post(
                DEEPGRAM_SPEAK_URL, params=self._params(speaker), json={"text": text}
            )
            response.raise_for_status()
            audio = response.content
        except Exception:
            metrics.inc("provider.tts.errors", labels={"provider": "deepgram"})
            raise

        metrics.observe(
            "provider.tts.latency_ms",
            (time.time() - started) * 1000,
            labels={"provider": "deepgram"},
        )
        return audio

    async def synthesize_stream(self, text: str, speaker: str) -> AsyncIterator[bytes]:
        if not self.client:
            raise RuntimeError("Deepgram TTS not started")

        started = time.time()
        total_bytes = 0
        metrics.inc(
            "provider.tts.requests", labels={"provider": "deepgram", "mode": "stream"}
        )
        try:
            async with self.client.stream(
                "POST",
                DEEPGRAM_SPEAK_URL,
                params=self._params(speaker),
                json={"text": text},
            ) as response:
                if response.status_code != 200:
                    body = await response.aread()
                    raise httpx.HTTPStatusError(
                        f"Deepgram speak returned {response.status_code}: "
                        f"{body[:200].decode(errors='replace')}",
                        request=response.request,
                        response=response,
                    )
                async for chunk in response.aiter_bytes():
                    if chunk:
                        total_bytes += len(chunk)
                        yield chunk
        except Exception:
            metrics.inc("provider.tts.errors", labels={"provider": "deepgram"})
            raise

        elapsed_ms = (time.time() - started) * 1000
        metrics.observe(
            "provider.tts.latency_ms", elapsed_ms, labels={"provider": "deepgram"}
        )
        logger.debug("TTS stream: %d bytes in %.0fms", total_bytes, elapsed_ms)

    async def health_check(self) -> dict:
        return {
            "provider": "deepgram",
            "encoding": self.audio_format,
            "status": "ready" if self.client else "not_started",
        }
