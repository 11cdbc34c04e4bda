"""Sentence segmentation for pipelined synthesis."""

from __future__ import annotations

import re

# Split after . ! ? when followed by whitespace; punctuation stays with its sentence.
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Split reply text into speakable sentences, in original order."""
    parts = SENTENCE_BOUNDARY.split(text.strip())
    return [p.strip() for p in parts if p.strip()]


def clip_reply(text: str, max_chars: int) -> str:
    """Keep a reply within the spoken-length budget.

    Cuts at the last sentence boundary that fits; a first sentence longer
    than the budget is cut at a word boundary instead.
    """
    text = text.strip()
    if max_chars <= 0 or len(text) <= max_chars:
        return text

    kept: list[str] = []
    length = 0
    for sentence in split_sentences(text):
        extra = len(sentence) + (1 if kept else 0)
        if length + extra > max_chars:
            break
        kept.append(sentence)
        length += extra
    if kept:
        return " ".join(kept)

    head = text[:max_chars].rsplit(" ", 1)[0].rstrip(",;:")
    return head or text[:max_chars]
