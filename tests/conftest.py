"""Shared fakes: a recording channel and scriptable gateways."""

import asyncio
import base64

import pytest

from viva.core.metrics import metrics
from viva.providers.base import GenerationGateway, RecognitionGateway, SynthesisGateway
from viva.session.actor import VoiceSession
from viva.transport.base import Channel


class RecordingChannel(Channel):
    def __init__(self) -> None:
        self.messages: list[dict] = []
        self.closed = False

    @property
    def is_open(self) -> bool:
        return not self.closed

    async def send(self, message: dict) -> bool:
        if self.closed:
            return False
        self.messages.append(message)
        return True

    async def close(self) -> None:
        self.closed = True

    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]

    def of_type(self, msg_type: str) -> list[dict]:
        return [m for m in self.messages if m["type"] == msg_type]

    def states(self) -> list[str]:
        return [m["state"] for m in self.of_type("state_change")]

    def audio_bytes(self) -> bytes:
        chunks = sorted(self.of_type("audio_chunk"), key=lambda m: m["sequenceIndex"])
        return b"".join(base64.b64decode(m["data"]) for m in chunks)

    def clear(self) -> None:
        self.messages.clear()


class FakeSTT(RecognitionGateway):
    def __init__(self, transcript: str | None = "What is a limit?", delay: float = 0.0) -> None:
        self.transcript = transcript
        self.delay = delay
        self.error: Exception | None = None
        self.calls: list[bytes] = []

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def transcribe(self, audio: bytes) -> str | None:
        self.calls.append(audio)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.transcript


class FakeLLM(GenerationGateway):
    def __init__(self, reply: str = "A limit describes where a function is heading.") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[dict] = []
        self.hold = False
        self._release: asyncio.Event | None = None
        self.entered = 0

    def release(self) -> None:
        if self._release is not None:
            self._release.set()

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def generate(self, messages, max_tokens=150, temperature=0.7) -> str:
        self.calls.append(
            {"messages": messages, "max_tokens": max_tokens, "temperature": temperature}
        )
        self.entered += 1
        if self.hold:
            self._release = asyncio.Event()
            await self._release.wait()
        if self.error:
            raise self.error
        return self.reply


class FakeTTS(SynthesisGateway):
    """Returns `audio` for every call; optionally streams it in pieces."""

    def __init__(self, audio: bytes = b"0123456789", streaming: bool = False) -> None:
        self.audio = audio
        self.supports_streaming = streaming
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []
        # Streaming: pause after this many pieces until resume() is called.
        self.pause_after: int | None = None
        self.piece_size = 2
        self.pieces_sent = 0
        self._resume: asyncio.Event | None = None

    def resume(self) -> None:
        if self._resume is not None:
            self._resume.set()

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def synthesize(self, text: str, speaker: str) -> bytes:
        self.calls.append((text, speaker))
        if self.error:
            raise self.error
        return self.audio

    async def synthesize_stream(self, text: str, speaker: str):
        self.calls.append((text, speaker))
        if self.error:
            raise self.error
        for offset in range(0, len(self.audio), self.piece_size):
            if self.pause_after is not None and self.pieces_sent == self.pause_after:
                self._resume = asyncio.Event()
                await self._resume.wait()
            self.pieces_sent += 1
            yield self.audio[offset:offset + self.piece_size]


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def stt():
    return FakeSTT()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def tts():
    return FakeTTS()


@pytest.fixture
def make_session(channel, stt, llm, tts):
    def _make(session_id: str = "test-session") -> VoiceSession:
        return VoiceSession(session_id, channel, stt, llm, tts)

    return _make


@pytest.fixture
def until():
    return wait_until


@pytest.fixture
def channel_factory():
    return RecordingChannel
