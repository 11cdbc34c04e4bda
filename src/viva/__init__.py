"""
Viva — real-time spoken-dialogue tutoring sessions.

A per-connection session actor pipelines speech recognition, reply
generation and streaming speech synthesis, with barge-in and bounded
conversation memory.
"""

__version__ = "0.1.0"
