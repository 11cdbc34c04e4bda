"""
Viva — spoken tutoring sessions over WebSocket.

Routes:
- GET /health    gateway status and active session count
- GET /metrics   in-process metrics snapshot
- GET /voices    voice catalog
- WS  /ws/session one voice session per connection

Run: uvicorn viva.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.responses import JSONResponse

import viva.core.config as config_module
from viva import __version__
from viva.core.logging import setup_logging
from viva.core.metrics import metrics
from viva.providers import get_llm_provider, get_stt_provider, get_tts_provider
from viva.providers.base import GenerationGateway, RecognitionGateway, SynthesisGateway
from viva.session.registry import SessionRegistry
from viva.transport import handle_connection
from viva.voices import VOICES, default_voice

setup_logging()
logger = logging.getLogger(__name__)


def create_app(
    stt: RecognitionGateway | None = None,
    llm: GenerationGateway | None = None,
    tts: SynthesisGateway | None = None,
) -> FastAPI:
    """Build the app; gateways default to the configured providers."""
    stt_provider = stt or get_stt_provider()
    llm_provider = llm or get_llm_provider()
    tts_provider = tts or get_tts_provider()
    registry = SessionRegistry(stt_provider, llm_provider, tts_provider)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await stt_provider.start()
        await llm_provider.start()
        await tts_provider.start()
        registry.start_sweeper()

        cfg = config_module.config
        logger.info(
            "Viva %s ready (providers: STT=%s, LLM=%s, TTS=%s, delivery=%s)",
            __version__,
            cfg.stt.provider,
            cfg.llm.provider,
            cfg.tts.provider,
            cfg.session.audio_delivery,
        )
        try:
            yield
        finally:
            await registry.close_all()
            await stt_provider.stop()
            await llm_provider.stop()
            await tts_provider.stop()
            logger.info("Viva stopped")

    app = FastAPI(title="Viva", version=__version__, lifespan=lifespan)
    app.state.registry = registry

    @app.get("/health")
    async def health():
        """Health check — reports gateway status and live sessions."""
        return JSONResponse(
            {
                "status": "ok",
                "version": __version__,
                "providers": {
                    "stt": await stt_provider.health_check(),
                    "llm": await llm_provider.health_check(),
                    "tts": await tts_provider.health_check(),
                },
                "sessions": len(registry),
            }
        )

    @app.get("/metrics")
    async def metrics_snapshot():
        return JSONResponse(metrics.snapshot())

    @app.get("/voices")
    async def voices():
        return JSONResponse(
            {
                "default": default_voice(),
                "voices": [v.to_dict() for v in VOICES.values()],
            }
        )

    @app.websocket("/ws/session")
    async def ws_session(websocket: WebSocket):
        await handle_connection(websocket, registry)

    return app


app = create_app()


def main() -> None:
    import uvicorn

    cfg = config_module.config.server
    uvicorn.run("viva.main:app", host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    main()
