"""FastAPI application factory for the technical assistant."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from techassist.config import get_settings
from techassist.infrastructure.database import engine
from techassist.infrastructure.database.bootstrap import ensure_database_exists, prepare_schema
from techassist.infrastructure.logging.log_config import setup_logging
from techassist.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(settings)

    await ensure_database_exists(settings.database_url)
    await prepare_schema(engine)

    if settings.openrouter_api_key.strip():
        logger.info(
            "Assistant ready: analysis_mode=%s analysis_model=%s answer_model=%s",
            settings.analysis_mode,
            settings.analysis_model,
            settings.answer_model,
        )
    else:
        logger.warning(
            "Assistant ready without OPENROUTER_API_KEY: heuristic analysis only, "
            "no embeddings, /assistant/chat answers 503."
        )

    try:
        yield
    finally:
        await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_title, version=settings.app_version, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("techassist.main:app", host="0.0.0.0", port=8020, reload=True)
