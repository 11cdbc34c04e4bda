"""
VoiceSession — the per-connection session actor.

One VoiceSession is bound to one transport channel. It is the single
entry point for client messages, owns the session config, history and
state, and drives recognition → generation → synthesis for each
utterance.

Key design:
- Idle gate: audio/text is accepted only in IDLE with a started session;
  anything else is dropped silently (no overlapping utterances)
- The pipeline runs as a background task so an interrupt can arrive
  while it is suspended on a gateway call
- Barge-in advances the epoch and cancels the task; every resume point
  re-checks the epoch before touching history or the channel
- Every gateway call has a timeout; failures become one `error` message
  and a return to IDLE
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable

import viva.core.config as config_module
from viva.core.errors import GatewayError, InputError
from viva.core.logging import PipelineTimer
from viva.core.metrics import metrics
from viva.providers.base import GenerationGateway, RecognitionGateway, SynthesisGateway
from viva.session import protocol
from viva.session.epoch import CancellationEpoch
from viva.session.history import ConversationHistory
from viva.session.models import Role, SessionConfig, SessionState
from viva.transport.base import Channel
from viva.voice.segmenter import clip_reply, split_sentences
from viva.voice.streamer import AudioStreamer
from viva.voices import resolve_voice

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I couldn't understand that."
PARTIAL_PLACEHOLDER = "..."


class VoiceSession:
    """
    Owns one conversation for one connection.

    Created on connect by the SessionRegistry and closed on disconnect.
    Nothing here outlives the connection.
    """

    def __init__(
        self,
        session_id: str,
        channel: Channel,
        stt: RecognitionGateway,
        llm: GenerationGateway,
        tts: SynthesisGateway,
    ) -> None:
        self.session_id = session_id
        self.channel = channel
        self.stt = stt
        self.llm = llm
        self.tts = tts

        cfg = config_module.config
        self.limits = cfg.session
        self.llm_settings = cfg.llm
        self.stt_timeout = cfg.stt.timeout
        self.tts_timeout = cfg.tts.timeout

        self.state = SessionState.IDLE
        self.config: SessionConfig | None = None
        self.history: ConversationHistory | None = None
        self.epoch = CancellationEpoch()
        self.turns = 0
        self.created_at = time.monotonic()
        self.last_activity = self.created_at
        self.closed = False

    # ─── Introspection ───────────────────────────────────────────

    @property
    def started(self) -> bool:
        return self.config is not None

    @property
    def busy(self) -> bool:
        return self.state != SessionState.IDLE or self.epoch.in_flight

    def idle_for(self, now: float | None = None) -> float:
        return (now if now is not None else time.monotonic()) - self.last_activity

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    # ─── Entry point ─────────────────────────────────────────────

    async def handle_message(self, raw: str | bytes | dict[str, Any]) -> None:
        """Validate one client message against the current state and act on it."""
        if self.closed:
            return
        self.touch()

        try:
            message = protocol.parse_client_message(raw)
        except InputError as e:
            logger.info("Session %s: rejected message: %s", self.session_id, e)
            metrics.inc("session.input_errors")
            await self._send(protocol.error(str(e)))
            return

        if isinstance(message, protocol.StartSession):
            await self._start_session(message)
        elif isinstance(message, protocol.AudioInput):
            await self._accept_utterance(audio=message.data)
        elif isinstance(message, protocol.TextInput):
            await self._accept_utterance(text=message.content)
        elif isinstance(message, protocol.Interrupt):
            await self.interrupt()
        elif isinstance(message, protocol.ClearHistory):
            await self._clear_history()
        elif isinstance(message, protocol.UpdateSection):
            await self._update_section(message)

    # ─── Session control ─────────────────────────────────────────

    async def _start_session(self, msg: protocol.StartSession) -> None:
        if self.started:
            # A repeat start resets the conversation instead of failing.
            logger.info("Session %s: restarting, discarding history", self.session_id)
            self.epoch.abort()
            await self.epoch.drain()
            if self.state != SessionState.IDLE:
                self.state = SessionState.IDLE
                await self._send(protocol.state_change(SessionState.IDLE))

        voice = resolve_voice(msg.voice, msg.topic)
        defaults = SessionConfig(voice_id=voice)
        self.config = SessionConfig(
            voice_id=voice,
            persona_name=msg.persona_name or defaults.persona_name,
            persona_style=msg.persona_style or defaults.persona_style,
            topic=msg.topic or defaults.topic,
            section_title=msg.section_title or defaults.section_title,
            section_context=msg.section_context or "",
        )
        self.history = ConversationHistory(
            self.config,
            window=self.limits.history_window,
            retention=self.limits.history_retention,
        )
        logger.info(
            "Session %s started: voice=%s topic=%r section=%r",
            self.session_id,
            voice,
            self.config.topic,
            self.config.section_title,
        )
        await self._send(protocol.session_started(self.session_id, voice))

    async def _clear_history(self) -> None:
        if self.history is None:
            await self._send(protocol.error("No active session. Send start_session first."))
            return
        self.history.clear()
        logger.debug("Session %s: history cleared", self.session_id)
        await self._send(protocol.cleared())

    async def _update_section(self, msg: protocol.UpdateSection) -> None:
        if self.config is None or self.history is None:
            await self._send(protocol.error("No active session. Send start_session first."))
            return
        self.config = self.config.with_section(msg.section_title, msg.section_context)
        self.history.rebuild_system_prompt(self.config)
        logger.info("Session %s: section -> %r", self.session_id, msg.section_title)
        await self._send(protocol.section_updated(msg.section_title))

    async def interrupt(self) -> None:
        """Barge-in: invalidate the current utterance and return to IDLE."""
        if self.state == SessionState.IDLE:
            await self._send(protocol.state_change(SessionState.IDLE))
            return

        self.epoch.abort()
        self.state = SessionState.IDLE
        metrics.inc("session.interrupts")
        logger.info(
            "Session %s: interrupted (epoch %d)", self.session_id, self.epoch.current
        )
        await self._send(protocol.interrupted())
        await self._send(protocol.state_change(SessionState.IDLE))

    async def wait_idle(self) -> None:
        """Wait until the in-flight pipeline (if any) has finished."""
        await self.epoch.drain()

    async def close(self) -> None:
        """Cancel in-flight work; called once the transport is gone."""
        if self.closed:
            return
        self.closed = True
        self.epoch.abort()
        await self.epoch.drain()
        self.state = SessionState.IDLE
        logger.info("Session %s closed after %d turns", self.session_id, self.turns)

    # ─── Utterance pipeline ──────────────────────────────────────

    async def _accept_utterance(
        self, audio: bytes | None = None, text: str | None = None
    ) -> None:
        if not self.started or self.state != SessionState.IDLE:
            # Guard rejection: dropped without a reply.
            metrics.inc("session.guard_rejections")
            logger.debug(
                "Session %s: dropped %s input (state=%s, started=%s)",
                self.session_id,
                "audio" if audio is not None else "text",
                self.state.value,
                self.started,
            )
            return

        token = self.epoch.begin()
        await self._set_state(SessionState.PROCESSING, token)
        task = asyncio.create_task(
            self._run_pipeline(token, audio=audio, text=text),
            name=f"viva-pipeline-{self.session_id}-{token}",
        )
        self.epoch.track(task)

    async def _run_pipeline(
        self, token: int, audio: bytes | None = None, text: str | None = None
    ) -> None:
        timer = PipelineTimer()
        try:
            if audio is not None:
                partial = protocol.transcript_partial(PARTIAL_PLACEHOLDER)
                if not await self._send_current(token, partial):
                    return
                transcript = await self._call(
                    "recognition", self.stt.transcribe(audio), self.stt_timeout
                )
                self._record_stage(timer, "stt", token)
                if not self._still_current(token, "recognition"):
                    return
                if not transcript or not transcript.strip():
                    logger.info("Session %s: empty transcript, nothing to do", self.session_id)
                    await self._set_state(SessionState.IDLE, token)
                    return
                text = transcript.strip()

            assert text is not None and self.history is not None
            if not self._still_current(token, "input"):
                return
            self.history.append(Role.USER, text)
            await self._send(protocol.transcript(text, is_user=True))

            reply = await self._call(
                "generation",
                self.llm.generate(
                    self.history.snapshot_dicts(),
                    max_tokens=self.llm_settings.max_tokens,
                    temperature=self.llm_settings.temperature,
                ),
                self.llm_settings.timeout,
            )
            self._record_stage(timer, "llm", token)
            if not self._still_current(token, "generation"):
                return

            reply = clip_reply(reply or "", self.llm_settings.max_reply_chars)
            if not reply:
                logger.warning("Session %s: empty reply, using fallback", self.session_id)
                reply = FALLBACK_REPLY
            self.history.append(Role.ASSISTANT, reply)
            await self._send(protocol.transcript(reply, is_user=False))

            if not await self._set_state(SessionState.SPEAKING, token):
                return
            if not await self._speak(token, reply):
                self._still_current(token, "synthesis")
                return
            self._record_stage(timer, "tts", token)

            self.turns += 1
            metrics.inc("session.turns")
            logger.info(
                "Session %s turn %d: %s",
                self.session_id,
                self.turns,
                timer.summary(),
                extra={"session_id": self.session_id, "epoch": token, "status": "ok"},
            )
            await self._set_state(SessionState.IDLE, token)

        except asyncio.CancelledError:
            logger.debug("Session %s: pipeline cancelled (barge-in)", self.session_id)
            raise
        except GatewayError as e:
            await self._report_failure(token, e.stage, e.user_message, str(e))
        except Exception as e:
            logger.error("Session %s: pipeline error: %s", self.session_id, e, exc_info=True)
            await self._report_failure(
                token, "pipeline", "Something went wrong. Please try again.", str(e)
            )

    async def _speak(self, token: int, reply: str) -> bool:
        """Synthesize the reply sentence by sentence and stream it out in order.

        Returns False if the utterance went stale before audio_complete.
        """
        assert self.config is not None
        speaker = self.config.voice_id
        streamer = AudioStreamer(
            self.channel.send,
            lambda: self.epoch.is_current(token),
            chunk_size=self.limits.audio_chunk_bytes,
        )
        segments = split_sentences(reply) or [reply]
        whole = self.limits.audio_delivery == "whole"
        streaming = self.tts.supports_streaming and not whole
        # An exact total is only known when the whole utterance is one unit.
        exact_total = len(segments) == 1 and not streaming

        for segment in segments:
            if streaming:
                ok = await self._call(
                    "synthesis",
                    streamer.send_stream(self.tts.synthesize_stream(segment, speaker)),
                    self.tts_timeout,
                )
            else:
                data = await self._call(
                    "synthesis", self.tts.synthesize(segment, speaker), self.tts_timeout
                )
                if whole:
                    ok = await streamer.send_whole(
                        data, self.tts.audio_format, self.tts.sample_rate
                    )
                else:
                    ok = await streamer.send_unit(data, exact_total=exact_total)
            if not ok:
                return False

        return await streamer.complete()

    # ─── Helpers ─────────────────────────────────────────────────

    async def _call(self, stage: str, aw: Awaitable[Any], timeout: float) -> Any:
        """Await a gateway call with a timeout; any failure becomes GatewayError."""
        try:
            return await asyncio.wait_for(aw, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise GatewayError(stage, f"timed out after {timeout:g}s") from e
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(stage, str(e) or e.__class__.__name__) from e

    def _still_current(self, token: int, stage: str) -> bool:
        if self.epoch.is_current(token):
            return True
        metrics.inc("session.stale_discards")
        logger.debug(
            "Session %s: discarding stale %s result (epoch %d, now %d)",
            self.session_id,
            stage,
            token,
            self.epoch.current,
        )
        return False

    def _record_stage(self, timer: PipelineTimer, stage: str, token: int) -> None:
        ms = timer.mark(stage)
        metrics.observe("session.stage_ms", ms, labels={"stage": stage})
        logger.debug(
            "Session %s: %s took %.0fms",
            self.session_id,
            stage,
            ms,
            extra={
                "session_id": self.session_id,
                "epoch": token,
                "stage": stage,
                "duration_ms": ms,
            },
        )

    async def _report_failure(
        self, token: int, stage: str, user_message: str, detail: str
    ) -> None:
        if not self._still_current(token, stage):
            return
        metrics.inc("session.errors", labels={"stage": stage})
        logger.warning(
            "Session %s: %s",
            self.session_id,
            detail,
            extra={
                "session_id": self.session_id,
                "epoch": token,
                "stage": stage,
                "status": "error",
            },
        )
        # ERROR is transient: report, then straight back to IDLE.
        self.state = SessionState.ERROR
        await self._send(protocol.error(user_message))
        await self._set_state(SessionState.IDLE, token)

    async def _set_state(self, state: SessionState, token: int) -> bool:
        """Transition and announce it, unless `token` has gone stale."""
        if not self.epoch.is_current(token):
            return False
        self.state = state
        await self._send(protocol.state_change(state))
        return True

    async def _send_current(self, token: int, message: dict) -> bool:
        if not self.epoch.is_current(token):
            return False
        await self._send(message)
        return True

    async def _send(self, message: dict) -> None:
        await self.channel.send(message)
