"""
Conversation History — ordered turns behind a pinned system instruction.

Index 0 is always the system message built from the session's persona
and section. snapshot() bounds what goes to the generation gateway:
the system message plus the most recent `window` turns, however long
the conversation has run.
"""

from __future__ import annotations

import logging

from viva.session.models import ConversationMessage, Role, SessionConfig

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 10
DEFAULT_RETENTION = 200


def build_system_prompt(config: SessionConfig) -> str:
    """System instruction for a spoken tutoring persona."""
    prompt = (
        f"You are {config.persona_name}, an AI tutor who is {config.persona_style}.\n\n"
        f'You are helping a student learn about "{config.topic}".\n'
        f'Currently, you are teaching the section: "{config.section_title}".\n\n'
    )
    if config.section_context:
        prompt += (
            f"--- SECTION CONTEXT ---\n{config.section_context}\n--- END CONTEXT ---\n\n"
        )
    prompt += (
        "Guidelines for your responses:\n"
        "- Keep responses concise (2-4 sentences max) since this is spoken dialogue\n"
        "- Be conversational and natural, as if speaking in person\n"
        "- Relate your answers to the current section when relevant\n"
        "- If the student asks about something outside this section, "
        "gently guide them back or briefly address it\n"
        "- Encourage questions and make the student feel comfortable\n"
        "- Avoid code blocks, bullet points, or formatting that doesn't work in speech\n"
    )
    return prompt


class ConversationHistory:
    def __init__(
        self,
        config: SessionConfig,
        window: int = DEFAULT_WINDOW,
        retention: int = DEFAULT_RETENTION,
    ) -> None:
        if window < 1:
            raise ValueError("window must be at least 1")
        self.window = window
        # Stored turns are capped too; never below the snapshot window.
        self.retention = max(retention, window)
        self._messages: list[ConversationMessage] = [
            ConversationMessage(Role.SYSTEM, build_system_prompt(config))
        ]

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> ConversationMessage:
        return self._messages[index]

    @property
    def system_message(self) -> ConversationMessage:
        return self._messages[0]

    @property
    def messages(self) -> list[ConversationMessage]:
        """Copy of the full stored history."""
        return list(self._messages)

    def append(self, role: Role, content: str) -> ConversationMessage:
        """Add a user or assistant turn."""
        if role == Role.SYSTEM:
            raise ValueError("system message is pinned at index 0")
        if not content or not content.strip():
            raise ValueError("content must be non-empty")
        message = ConversationMessage(role, content)
        self._messages.append(message)

        overflow = len(self._messages) - 1 - self.retention
        if overflow > 0:
            del self._messages[1:1 + overflow]
            logger.debug("History retention trimmed %d oldest turns", overflow)
        return message

    def snapshot(self) -> list[ConversationMessage]:
        """System message plus at most `window` recent turns."""
        return [self._messages[0], *self._messages[1:][-self.window:]]

    def snapshot_dicts(self) -> list[dict]:
        return [m.to_dict() for m in self.snapshot()]

    def clear(self) -> None:
        """Drop every turn; the system message stays."""
        del self._messages[1:]

    def rebuild_system_prompt(self, config: SessionConfig) -> None:
        """Replace index 0 in place; later turns are untouched."""
        self._messages[0] = ConversationMessage(Role.SYSTEM, build_system_prompt(config))
