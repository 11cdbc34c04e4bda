"""
OpenAI Generation Gateway — chat completions for short spoken replies.

Supports any OpenAI-compatible endpoint through VIVA_LLM_BASE_URL.
"""

from __future__ import annotations

import logging
import time

from openai import AsyncOpenAI

import viva.core.config as config_module
from viva.core.metrics import metrics
from viva.providers.base import GenerationGateway

logger = logging.getLogger(__name__)


class OpenAIGenerationGateway(GenerationGateway):
    def __init__(self) -> None:
        self.client: AsyncOpenAI | None = None

    async def start(self) -> None:
        if self.client:
            return
        cfg = config_module.config.llm
        client_kwargs: dict = {}
        if cfg.api_key:
            client_kwargs["api_key"] = cfg.api_key
        if cfg.base_url:
            client_kwargs["base_url"] = cfg.base_url
            logger.info("Using custom base_url: %s", cfg.base_url)
        self.client = AsyncOpenAI(**client_kwargs)
        logger.info("OpenAI LLM ready (model=%s)", cfg.model)

    async def stop(self) -> None:
        if self.client:
            await self.client.close()
        self.client = None

    async def generate(
        self,
        messages: list[dict],
        max_tokens: int = 150,
        temperature: float = 0.7,
    ) -> str:
        if not self.client:
            raise RuntimeError("OpenAI LLM not started")

        started = time.time()
        metrics.inc("provider.llm.requests", labels={"provider": "openai"})
        try:
            completion = await self.client.chat.completions.create(
                model=config_module.config.llm.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception:
            metrics.inc("provider.llm.errors", labels={"provider": "openai"})
            raise

        metrics.observe(
            "provider.llm.latency_ms",
            (time.time() - started) * 1000,
            labels={"provider": "openai"},
        )
        if not completion.choices:
            return ""
        return (completion.choices[0].message.content or "").strip()

    async def health_check(self) -> dict:
        return {
            "provider": "openai",
            "model": config_module.config.llm.model,
            "status": "ready" if self.client else "not_started",
        }
