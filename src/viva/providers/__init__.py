"""
Viva gateways — abstract interfaces for recognition, generation, synthesis.

Concrete backends (Deepgram, OpenAI) live alongside. Swap them by config.
"""

from viva.providers.base import GenerationGateway, RecognitionGateway, SynthesisGateway
from viva.providers.registry import get_llm_provider, get_stt_provider, get_tts_provider

__all__ = [
    "RecognitionGateway",
    "GenerationGateway",
    "SynthesisGateway",
    "get_stt_provider",
    "get_llm_provider",
    "get_tts_provider",
]
