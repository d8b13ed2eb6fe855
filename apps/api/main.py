"""Dubline API"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dubline.config import Settings
from dubline.pipeline.orchestrator import PipelineOrchestrator
from dubline.storage import get_artifact_store, get_retention_sweeper
from routes.health import router as health_router
from routes.render import router as render_router
from dubline.utils.logging_setup import setup_logging

settings = Settings()
setup_logging(settings)
logger = logging.getLogger("dubline.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = get_artifact_store(settings)
    sweeper = get_retention_sweeper(settings, store)
    app.state.settings = settings
    app.state.orchestrator = PipelineOrchestrator(settings, store)
    sweeper.start()
    logger.info(
        "API starting (artifacts=%s, tts=%s)",
        settings.artifacts.base_dir,
        settings.narration.provider,
    )
    try:
        yield
    finally:
        await sweeper.stop()
        await app.state.orchestrator.close()


app = FastAPI(
    title="Dubline API",
    description="Narrated, subtitled video rendering API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.include_router(render_router)
app.include_router(health_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
