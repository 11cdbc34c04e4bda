"""
Voice catalog — Deepgram Aura speakers and persona matching.

The catalog is static. Sessions pick a voice on start_session; unknown
ids fall back to the configured default.
"""

from __future__ import annotations

from dataclasses import dataclass

import viva.core.config as config_module


@dataclass(frozen=True)
class VoiceProfile:
    id: str
    name: str
    gender: str
    style: str
    best_for: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender,
            "style": self.style,
            "bestFor": list(self.best_for),
        }


VOICES: dict[str, VoiceProfile] = {
    v.id: v
    for v in (
        VoiceProfile("aura-asteria-en", "Asteria", "female", "Warm and professional",
                     ("general tutoring", "math", "science")),
        VoiceProfile("aura-luna-en", "Luna", "female", "Soft and calm",
                     ("meditation", "language learning", "bedtime stories")),
        VoiceProfile("aura-athena-en", "Athena", "female", "Confident and clear",
                     ("business", "presentations", "leadership")),
        VoiceProfile("aura-hera-en", "Hera", "female", "Mature and authoritative",
                     ("history", "philosophy", "advanced topics")),
        VoiceProfile("aura-orion-en", "Orion", "male", "Deep and professional",
                     ("engineering", "technical topics", "podcasts")),
        VoiceProfile("aura-arcas-en", "Arcas", "male", "Young and energetic",
                     ("gaming", "sports", "youth content")),
        VoiceProfile("aura-perseus-en", "Perseus", "male", "Warm and friendly",
                     ("customer service", "tutorials", "general")),
        VoiceProfile("aura-angus-en", "Angus", "male", "British and refined",
                     ("literature", "arts", "sophisticated topics")),
        VoiceProfile("aura-orpheus-en", "Orpheus", "male", "Smooth storyteller",
                     ("narratives", "audiobooks", "creative writing")),
        VoiceProfile("aura-helios-en", "Helios", "male", "Clear news anchor",
                     ("news", "announcements", "formal content")),
        VoiceProfile("aura-zeus-en", "Zeus", "male", "Powerful and commanding",
                     ("motivation", "leadership", "epic content")),
    )
}

# Course-code prefix → voice. First match wins.
_TOPIC_VOICES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("CMPT", "ENSC"), "aura-orion-en"),
    (("MATH", "STAT"), "aura-asteria-en"),
    (("PHIL", "HIST"), "aura-hera-en"),
    (("BUS", "ECON"), "aura-athena-en"),
    (("ENGL", "WL"), "aura-angus-en"),
)


def available_voices() -> list[str]:
    return list(VOICES)


def default_voice() -> str:
    voice = config_module.config.session.default_voice
    return voice if voice in VOICES else "aura-asteria-en"


def default_voice_for_topic(topic: str | None) -> str:
    """Pick a voice that suits a course code like "MATH 152"."""
    code = (topic or "").strip().upper()
    for prefixes, voice in _TOPIC_VOICES:
        if code.startswith(prefixes):
            return voice
    return default_voice()


def resolve_voice(voice_id: str | None, topic: str | None = None) -> str:
    """Return a catalog voice id: the requested one if known, else a topic match."""
    if voice_id and voice_id in VOICES:
        return voice_id
    return default_voice_for_topic(topic)
