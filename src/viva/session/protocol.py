"""
Session wire protocol — JSON messages between client and session actor.

Client → Server:
    start_session {voice?, personaName?, personaStyle?, topic?,
                   sectionTitle?, sectionContext?}
    audio         {data}                 base64 audio of one utterance
    text          {content}
    interrupt     {}
    clear_history {}
    update_section {sectionTitle, sectionContext?}

Server → Client:
    ready, session_started, state_change, transcript_partial, transcript,
    audio_chunk | audio, audio_complete, interrupted, cleared,
    section_updated, error

Audio bytes always travel base64-encoded in a `data` field.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Union

from viva.core.errors import InputError
from viva.session.models import AudioChunk, SessionState

# ─── Client → Server ──────────────────────────────────────────


@dataclass(frozen=True)
class StartSession:
    voice: str | None = None
    persona_name: str | None = None
    persona_style: str | None = None
    topic: str | None = None
    section_title: str | None = None
    section_context: str | None = None


@dataclass(frozen=True)
class AudioInput:
    data: bytes


@dataclass(frozen=True)
class TextInput:
    content: str


@dataclass(frozen=True)
class Interrupt:
    pass


@dataclass(frozen=True)
class ClearHistory:
    pass


@dataclass(frozen=True)
class UpdateSection:
    section_title: str
    section_context: str | None = None


ClientMessage = Union[
    StartSession, AudioInput, TextInput, Interrupt, ClearHistory, UpdateSection
]


def _optional_str(payload: dict, *keys: str) -> str | None:
    """First non-empty string among keys (later keys are accepted aliases)."""
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise InputError(f"Field '{key}' must be a string")
        if value.strip():
            return value.strip()
    return None


def _parse_start_session(payload: dict) -> StartSession:
    return StartSession(
        voice=_optional_str(payload, "voice"),
        persona_name=_optional_str(payload, "personaName", "professorName"),
        persona_style=_optional_str(payload, "personaStyle", "professorPersonality"),
        topic=_optional_str(payload, "topic", "courseCode"),
        section_title=_optional_str(payload, "sectionTitle"),
        section_context=_optional_str(payload, "sectionContext"),
    )


def _parse_audio(payload: dict) -> AudioInput:
    encoded = payload.get("data", payload.get("audio"))
    if not isinstance(encoded, str) or not encoded:
        raise InputError("Audio message requires base64 'data'")
    try:
        audio = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError(f"Audio data is not valid base64: {e}") from e
    if not audio:
        raise InputError("Audio payload is empty")
    return AudioInput(data=audio)


def _parse_text(payload: dict) -> TextInput:
    content = payload.get("content", payload.get("text"))
    if not isinstance(content, str) or not content.strip():
        raise InputError("Text message requires non-empty 'content'")
    return TextInput(content=content.strip())


def _parse_update_section(payload: dict) -> UpdateSection:
    title = _optional_str(payload, "sectionTitle")
    if not title:
        raise InputError("update_section requires 'sectionTitle'")
    context = payload.get("sectionContext")
    if context is not None and not isinstance(context, str):
        raise InputError("Field 'sectionContext' must be a string")
    return UpdateSection(section_title=title, section_context=context)


_PARSERS = {
    "start_session": _parse_start_session,
    "audio": _parse_audio,
    "text": _parse_text,
    "interrupt": lambda _payload: Interrupt(),
    "clear_history": lambda _payload: ClearHistory(),
    "update_section": _parse_update_section,
}


def parse_client_message(raw: str | bytes | dict[str, Any]) -> ClientMessage:
    """Decode and validate one client message. Raises InputError."""
    if isinstance(raw, (str, bytes)):
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            payload = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InputError("Message is not valid JSON") from e
    else:
        payload = raw

    if not isinstance(payload, dict):
        raise InputError("Message must be a JSON object")

    msg_type = payload.get("type")
    parser = _PARSERS.get(msg_type) if isinstance(msg_type, str) else None
    if parser is None:
        raise InputError(f"Unknown message type: {msg_type!r}")
    return parser(payload)


# ─── Server → Client ──────────────────────────────────────────


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def ready(session_id: str, voices: list[str]) -> dict:
    return {"type": "ready", "sessionId": session_id, "availableVoices": voices}


def session_started(session_id: str, voice: str) -> dict:
    return {"type": "session_started", "sessionId": session_id, "voice": voice}


def state_change(state: SessionState) -> dict:
    return {"type": "state_change", "state": state.value}


def transcript_partial(text: str) -> dict:
    return {"type": "transcript_partial", "text": text}


def transcript(text: str, is_user: bool) -> dict:
    return {"type": "transcript", "text": text, "isUser": is_user}


def audio_chunk(chunk: AudioChunk) -> dict:
    return {
        "type": "audio_chunk",
        "data": _b64(chunk.data),
        "sequenceIndex": chunk.sequence_index,
        "totalCount": chunk.total_count,
    }


def audio(data: bytes, audio_format: str, sample_rate: int) -> dict:
    return {
        "type": "audio",
        "data": _b64(data),
        "format": audio_format,
        "sampleRate": sample_rate,
    }


def audio_complete() -> dict:
    return {"type": "audio_complete"}


def interrupted() -> dict:
    return {"type": "interrupted"}


def cleared() -> dict:
    return {"type": "cleared"}


def section_updated(section_title: str) -> dict:
    return {"type": "section_updated", "sectionTitle": section_title}


def error(message: str) -> dict:
    return {"type": "error", "message": message}
