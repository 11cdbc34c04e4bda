"""
Audio Streamer — slices synthesized audio into ordered chunks for the client.

One streamer serves one utterance. Sequence indexes keep increasing
across every synthesized segment of that utterance, and audio_complete
goes out once, after the last chunk. Before every emission the streamer
asks `is_current()`; once that turns False (barge-in) nothing more is
sent for the utterance, completion included.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Awaitable, Callable

from viva.session import protocol
from viva.session.models import AudioChunk

logger = logging.getLogger(__name__)

Sender = Callable[[dict], Awaitable[None]]


class AudioStreamer:
    def __init__(
        self,
        send: Sender,
        is_current: Callable[[], bool],
        chunk_size: int = 8192,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._send = send
        self._is_current = is_current
        self.chunk_size = chunk_size
        self.next_index = 0
        self.bytes_sent = 0
        self.completed = False

    async def _emit(self, data: bytes, total_count: int | None) -> bool:
        if not self._is_current():
            return False
        chunk = AudioChunk(data=data, sequence_index=self.next_index, total_count=total_count)
        await self._send(protocol.audio_chunk(chunk))
        self.next_index += 1
        self.bytes_sent += len(data)
        return True

    async def send_unit(self, audio: bytes, exact_total: bool = False) -> bool:
        """Chunk one complete audio unit.

        With exact_total the unit is the utterance's only audio, so each
        chunk carries the real total; otherwise the total is unknown.
        Returns False if the utterance went stale mid-way.
        """
        count = (len(audio) + self.chunk_size - 1) // self.chunk_size
        total = self.next_index + count if exact_total else None
        for offset in range(0, len(audio), self.chunk_size):
            if not await self._emit(audio[offset:offset + self.chunk_size], total):
                return False
        return True

    async def send_stream(self, stream: AsyncIterator[bytes]) -> bool:
        """Re-chunk a live audio stream to chunk_size; the tail is flushed at the end."""
        buffer = b""
        async for piece in stream:
            if not self._is_current():
                return False
            buffer += piece
            while len(buffer) >= self.chunk_size:
                data, buffer = buffer[: self.chunk_size], buffer[self.chunk_size:]
                if not await self._emit(data, None):
                    return False
        if buffer:
            return await self._emit(buffer, None)
        return self._is_current()

    async def send_whole(self, audio: bytes, audio_format: str, sample_rate: int) -> bool:
        """Non-chunked delivery: one `audio` message per unit."""
        if not self._is_current():
            return False
        await self._send(protocol.audio(audio, audio_format, sample_rate))
        self.bytes_sent += len(audio)
        return True

    async def complete(self) -> bool:
        """Emit audio_complete exactly once, unless the utterance was interrupted."""
        if self.completed or not self._is_current():
            return False
        self.completed = True
        await self._send(protocol.audio_complete())
        logger.debug(
            "Audio complete: %d chunks, %d bytes", self.next_index, self.bytes_sent
        )
        return True
