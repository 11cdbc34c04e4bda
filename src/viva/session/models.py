"""
Session Models — the ephemeral, in-memory state of one voice session.

SessionConfig and ConversationMessage are frozen dataclasses: a section
update builds a new config, a system-prompt rebuild builds a new message.
Nothing here is persisted; it all dies with the connection.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class SessionState(str, Enum):
    """Exactly one holds at any time; owned by the session actor."""

    IDLE = "idle"
    PROCESSING = "processing"
    SPEAKING = "speaking"
    ERROR = "error"  # transient: reported, then straight back to IDLE


@dataclass(frozen=True)
class SessionConfig:
    """Persona, voice and course context fixed by start_session.

    Only the section fields change afterwards, through with_section().
    """

    voice_id: str
    persona_name: str = "AI Tutor"
    persona_style: str = "helpful and patient"
    topic: str = "General Learning"
    section_title: str = "Introduction"
    section_context: str = ""

    def with_section(self, title: str, context: str | None = None) -> SessionConfig:
        """Return a copy pointing at another section; context None keeps the old one."""
        if context is None:
            return replace(self, section_title=title)
        return replace(self, section_title=title, section_context=context)


@dataclass(frozen=True)
class ConversationMessage:
    role: Role
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class AudioChunk:
    """One slice of synthesized audio; total_count None means "unknown"."""

    data: bytes
    sequence_index: int
    total_count: int | None = None
