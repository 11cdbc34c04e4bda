"""
Session core — one in-memory voice conversation per connection.

Key components:
- VoiceSession: the actor; single entry point for client messages
- ConversationHistory: bounded turns behind a pinned system prompt
- CancellationEpoch: stale-result detection and barge-in abort
- SessionRegistry: connection-keyed sessions with LRU and TTL eviction
"""

from viva.session.models import (
    AudioChunk,
    ConversationMessage,
    Role,
    SessionConfig,
    SessionState,
)
from viva.session import protocol
from viva.session.history import ConversationHistory, build_system_prompt
from viva.session.epoch import CancellationEpoch
from viva.session.actor import VoiceSession
from viva.session.registry import SessionRegistry

__all__ = [
    "AudioChunk",
    "ConversationMessage",
    "Role",
    "SessionConfig",
    "SessionState",
    "protocol",
    "ConversationHistory",
    "build_system_prompt",
    "CancellationEpoch",
    "VoiceSession",
    "SessionRegistry",
]
