"""
Viva Configuration — single source of truth for all settings.

Reads from environment variables with sensible defaults.
No config files, no YAML. Just env vars (and an optional .env).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class STTConfig:
    """Recognition gateway settings."""

    provider: str = "deepgram"
    api_key: str = ""
    model: str = "nova-3"
    language: str = "en"
    timeout: float = 15.0

    @classmethod
    def from_env(cls) -> STTConfig:
        return cls(
            provider=os.getenv("VIVA_STT_PROVIDER", "deepgram"),
            api_key=os.getenv("DEEPGRAM_API_KEY", ""),
            model=os.getenv("VIVA_STT_MODEL", "nova-3"),
            language=os.getenv("VIVA_STT_LANGUAGE", "en"),
            timeout=float(os.getenv("VIVA_STT_TIMEOUT", "15.0")),
        )


@dataclass(frozen=True)
class LLMConfig:
    """Generation gateway settings."""

    provider: str = "openai"
    api_key: str = ""
    base_url: str = ""
    model: str = "gpt-4o-mini"
    max_tokens: int = 150
    temperature: float = 0.7
    max_reply_chars: int = 600
    timeout: float = 20.0

    @classmethod
    def from_env(cls) -> LLMConfig:
        return cls(
            provider=os.getenv("VIVA_LLM_PROVIDER", "openai"),
            api_key=os.getenv("OPENAI_API_KEY", ""),
            base_url=os.getenv("VIVA_LLM_BASE_URL", ""),
            model=os.getenv("VIVA_LLM_MODEL", "gpt-4o-mini"),
            max_tokens=int(os.getenv("VIVA_LLM_MAX_TOKENS", "150")),
            temperature=float(os.getenv("VIVA_LLM_TEMPERATURE", "0.7")),
            max_reply_chars=int(os.getenv("VIVA_MAX_REPLY_CHARS", "600")),
            timeout=float(os.getenv("VIVA_LLM_TIMEOUT", "20.0")),
        )


@dataclass(frozen=True)
class TTSConfig:
    """Synthesis gateway settings."""

    provider: str = "deepgram"
    deepgram_api_key: str = ""
    encoding: str = "mp3"
    sample_rate: int = 24000
    timeout: float = 15.0
    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "tts-1"
    openai_voice: str = "nova"

    @classmethod
    def from_env(cls) -> TTSConfig:
        return cls(
            provider=os.getenv("VIVA_TTS_PROVIDER", "deepgram"),
            deepgram_api_key=os.getenv("DEEPGRAM_API_KEY", ""),
            encoding=os.getenv("VIVA_TTS_ENCODING", "mp3"),
            sample_rate=int(os.getenv("VIVA_TTS_SAMPLE_RATE", "24000")),
            timeout=float(os.getenv("VIVA_TTS_TIMEOUT", "15.0")),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("VIVA_OPENAI_TTS_MODEL", "tts-1"),
            openai_voice=os.getenv("VIVA_OPENAI_TTS_VOICE", "nova"),
        )


@dataclass(frozen=True)
class SessionLimits:
    """Per-session tunables: history window, audio chunking, registry policy."""

    history_window: int = 10
    history_retention: int = 200
    audio_chunk_bytes: int = 8192
    audio_delivery: str = "chunked"  # "chunked" | "whole"
    default_voice: str = "aura-asteria-en"
    session_ttl: float = 900.0
    max_sessions: int = 500
    sweep_interval: float = 60.0

    def __post_init__(self):
        for name in ("history_window", "history_retention", "audio_chunk_bytes", "max_sessions"):
            if getattr(self, name) < 1:
                raise ValueError(f"SessionLimits.{name} must be at least 1, got {getattr(self, name)}")
        for name in ("session_ttl", "sweep_interval"):
            if getattr(self, name) <= 0:
                raise ValueError(f"SessionLimits.{name} must be positive, got {getattr(self, name)}")

    @classmethod
    def from_env(cls) -> SessionLimits:
        return cls(
            history_window=int(os.getenv("VIVA_HISTORY_WINDOW", "10")),
            history_retention=int(os.getenv("VIVA_HISTORY_RETENTION", "200")),
            audio_chunk_bytes=int(os.getenv("VIVA_AUDIO_CHUNK_BYTES", "8192")),
            audio_delivery=os.getenv("VIVA_AUDIO_DELIVERY", "chunked").lower(),
            default_voice=os.getenv("VIVA_DEFAULT_VOICE", "aura-asteria-en"),
            session_ttl=float(os.getenv("VIVA_SESSION_TTL", "900")),
            max_sessions=int(os.getenv("VIVA_MAX_SESSIONS", "500")),
            sweep_interval=float(os.getenv("VIVA_SWEEP_INTERVAL", "60")),
        )


@dataclass(frozen=True)
class ServerConfig:
    """Server settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    ws_send_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> ServerConfig:
        return cls(
            host=os.getenv("VIVA_HOST", "0.0.0.0"),
            port=int(os.getenv("VIVA_PORT", "8000")),
            ws_send_timeout=float(os.getenv("VIVA_WS_SEND_TIMEOUT", "5.0")),
        )


@dataclass(frozen=True)
class VivaConfig:
    """Root configuration — one object for the whole service."""

    stt: STTConfig = field(default_factory=STTConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    tts: TTSConfig = field(default_factory=TTSConfig)
    session: SessionLimits = field(default_factory=SessionLimits)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> VivaConfig:
        return cls(
            stt=STTConfig.from_env(),
            llm=LLMConfig.from_env(),
            tts=TTSConfig.from_env(),
            session=SessionLimits.from_env(),
            server=ServerConfig.from_env(),
        )


# Singleton. Import the module and read `config_module.config` where
# reload_config() must be observed.
config = VivaConfig.from_env()


def reload_config() -> VivaConfig:
    """Re-read the environment and replace the module-level singleton."""
    global config
    config = VivaConfig.from_env()
    return config
