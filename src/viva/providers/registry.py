"""
Gateway Registry — factory functions that pick a gateway by config.

New backend? Add an elif.
"""

from __future__ import annotations

import viva.core.config as config_module
from viva.providers.base import GenerationGateway, RecognitionGateway, SynthesisGateway


def get_stt_provider() -> RecognitionGateway:
    provider = config_module.config.stt.provider.lower()
    if provider == "deepgram":
        from viva.providers.deepgram_stt import DeepgramRecognitionGateway

        return DeepgramRecognitionGateway()
    raise ValueError(f"Unknown STT provider: {provider}")


def get_llm_provider() -> GenerationGateway:
    provider = config_module.config.llm.provider.lower()
    if provider == "openai":
        from viva.providers.openai_llm import OpenAIGenerationGateway

        return OpenAIGenerationGateway()
    raise ValueError(f"Unknown LLM provider: {provider}")


def get_tts_provider() -> SynthesisGateway:
    provider = config_module.config.tts.provider.lower()
    if provider == "deepgram":
        from viva.providers.deepgram_tts import DeepgramSynthesisGateway

        return DeepgramSynthesisGateway()
    elif provider == "openai":
        from viva.providers.openai_tts import OpenAISynthesisGateway

        return OpenAISynthesisGateway()
    raise ValueError(f"Unknown TTS provider: {provider}")
