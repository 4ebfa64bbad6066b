from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from interview_agent.api.routes import router
from interview_agent.capture.dedup import CaptionDeduplicator
from interview_agent.session.controller import SessionController, build_session_controller

logger = logging.getLogger("interview_agent.main")


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]


def create_app(controller: SessionController | None = None) -> FastAPI:
    app = FastAPI(title="Interview Agent")
    app.state.controller = controller or build_session_controller()
    app.state.caption_deduplicator = CaptionDeduplicator()

    allowed_origins = _get_allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )
    app.include_router(router)

    @app.on_event("startup")
    async def restore_session():
        session = await app.state.controller.restore()
        logger.info("[SYSTEM] CORS allow_origins=%s", allowed_origins)
        logger.info("[SYSTEM] session restored phase=%s", session.phase.value)

    @app.on_event("shutdown")
    async def shutdown_handler():
        await app.state.controller.shutdown()
        logger.info("[SYSTEM] shutdown complete")

    return app


app = create_app()
