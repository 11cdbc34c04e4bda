"""Tests for conversation history bounds and the pinned system prompt."""

import pytest

from viva.session.history import ConversationHistory, build_system_prompt
from viva.session.models import Role, SessionConfig


def _config(**overrides) -> SessionConfig:
    fields = {"voice_id": "aura-asteria-en", "topic": "Calculus", "section_title": "Limits"}
    fields.update(overrides)
    return SessionConfig(**fields)


def _fill(history: ConversationHistory, turns: int) -> None:
    for i in range(turns):
        role = Role.USER if i % 2 == 0 else Role.ASSISTANT
        history.append(role, f"turn {i}")


def test_system_prompt_mentions_persona_topic_and_section():
    prompt = build_system_prompt(
        _config(persona_name="Professor Lin", persona_style="dry but kind")
    )
    assert prompt.startswith("You are Professor Lin, an AI tutor who is dry but kind.")
    assert '"Calculus"' in prompt
    assert '"Limits"' in prompt
    assert "SECTION CONTEXT" not in prompt


def test_system_prompt_includes_section_context_block():
    prompt = build_system_prompt(_config(section_context="Epsilon-delta definition."))
    assert "--- SECTION CONTEXT ---\nEpsilon-delta definition.\n--- END CONTEXT ---" in prompt


def test_new_history_holds_only_system_message():
    history = ConversationHistory(_config())
    assert len(history) == 1
    assert history[0].role == Role.SYSTEM


@pytest.mark.parametrize("turns", [0, 1, 5, 10, 11, 37])
def test_snapshot_is_bounded_and_starts_with_system(turns):
    history = ConversationHistory(_config(), window=10)
    _fill(history, turns)

    snapshot = history.snapshot()
    assert len(snapshot) <= 11
    assert len(snapshot) == 1 + min(turns, 10)
    assert snapshot[0].role == Role.SYSTEM
    if turns:
        assert snapshot[-1].content == f"turn {turns - 1}"


def test_snapshot_dicts_are_chat_messages():
    history = ConversationHistory(_config(), window=2)
    _fill(history, 3)
    assert history.snapshot_dicts()[1:] == [
        {"role": "assistant", "content": "turn 1"},
        {"role": "user", "content": "turn 2"},
    ]


def test_append_rejects_empty_content_and_system_role():
    history = ConversationHistory(_config())
    with pytest.raises(ValueError):
        history.append(Role.USER, "   ")
    with pytest.raises(ValueError):
        history.append(Role.SYSTEM, "another system prompt")
    assert len(history) == 1


def test_retention_trims_oldest_turns_but_keeps_system():
    history = ConversationHistory(_config(), window=2, retention=4)
    _fill(history, 7)
    assert len(history) == 5
    assert history[0].role == Role.SYSTEM
    assert history[1].content == "turn 3"


def test_retention_never_below_window():
    history = ConversationHistory(_config(), window=6, retention=2)
    assert history.retention == 6


def test_clear_is_idempotent():
    history = ConversationHistory(_config())
    _fill(history, 4)
    system = history[0]

    history.clear()
    first = history.messages
    history.clear()

    assert first == [system]
    assert history.messages == [system]


def test_rebuild_system_prompt_leaves_turns_untouched():
    config = _config()
    history = ConversationHistory(config)
    _fill(history, 4)
    turns = history.messages[1:]

    history.rebuild_system_prompt(config.with_section("Derivatives"))

    assert "Derivatives" in history[0].content
    assert "Limits" not in history[0].content
    assert history.messages[1:] == turns


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        ConversationHistory(_config(), window=0)
