"""
Session Registry — live sessions keyed by connection id.

Create on connect, close on disconnect. The registry is bounded: over
max_sessions the least recently active idle session is evicted, and a
background sweeper closes sessions idle longer than the TTL. Busy
sessions (mid-utterance) are never evicted.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid

import viva.core.config as config_module
from viva.core.metrics import metrics
from viva.providers.base import GenerationGateway, RecognitionGateway, SynthesisGateway
from viva.session.actor import VoiceSession
from viva.transport.base import Channel

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(
        self,
        stt: RecognitionGateway,
        llm: GenerationGateway,
        tts: SynthesisGateway,
        max_sessions: int | None = None,
        ttl: float | None = None,
        sweep_interval: float | None = None,
    ) -> None:
        limits = config_module.config.session
        self.stt = stt
        self.llm = llm
        self.tts = tts
        self.max_sessions = max_sessions if max_sessions is not None else limits.max_sessions
        self.ttl = ttl if ttl is not None else limits.session_ttl
        self.sweep_interval = (
            sweep_interval if sweep_interval is not None else limits.sweep_interval
        )
        self._closing: set[asyncio.Task] = set()
        self._sessions: dict[str, VoiceSession] = {}
        self._sweeper: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def create(self, channel: Channel, session_id: str | None = None) -> VoiceSession:
        session_id = session_id or uuid.uuid4().hex[:12]
        session = VoiceSession(session_id, channel, self.stt, self.llm, self.tts)
        self._sessions[session_id] = session
        metrics.gauge_set("sessions.active", len(self._sessions))
        logger.debug("Session %s registered (%d active)", session_id, len(self._sessions))

        if len(self._sessions) > self.max_sessions:
            self._evict_lru(exclude=session_id)
        return session

    def get(self, session_id: str) -> VoiceSession | None:
        return self._sessions.get(session_id)

    async def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        metrics.gauge_set("sessions.active", len(self._sessions))
        await session.close()
        return True

    def _evict_lru(self, exclude: str) -> None:
        by_activity = sorted(self._sessions.items(), key=lambda item: item[1].last_activity)
        for session_id, session in by_activity:
            if len(self._sessions) <= self.max_sessions:
                break
            if session_id == exclude or session.busy:
                continue
            self._sessions.pop(session_id)
            metrics.inc("sessions.evicted", labels={"reason": "capacity"})
            logger.info("Session %s evicted (capacity %d)", session_id, self.max_sessions)
            task = asyncio.create_task(self._shutdown(session), name=f"viva-evict-{session_id}")
            self._closing.add(task)
            task.add_done_callback(self._closing.discard)
        metrics.gauge_set("sessions.active", len(self._sessions))

    async def _shutdown(self, session: VoiceSession) -> None:
        await session.close()
        await session.channel.close()

    async def sweep(self, now: float | None = None) -> list[str]:
        """Close sessions idle longer than the TTL; returns their ids."""
        now = now if now is not None else time.monotonic()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if not session.busy and session.idle_for(now) > self.ttl
        ]
        for session_id in expired:
            session = self._sessions.pop(session_id)
            metrics.inc("sessions.evicted", labels={"reason": "ttl"})
            logger.info("Session %s expired after %.0fs idle", session_id, session.idle_for(now))
            await self._shutdown(session)
        if expired:
            metrics.gauge_set("sessions.active", len(self._sessions))
        return expired

    # ─── Background sweeper ──────────────────────────────────────

    def start_sweeper(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop(), name="viva-session-sweeper")

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error("Session sweep failed: %s", e, exc_info=True)

    async def close_all(self) -> None:
        await self.stop_sweeper()
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await self._shutdown(session)
        metrics.gauge_set("sessions.active", 0)
        if sessions:
            logger.info("Closed %d sessions", len(sessions))
