"""FastAPI application entrypoint for the Routine Manager backend."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.apis.chat import router as chat_router
from app.apis.colors import router as colors_router
from app.apis.data import router as data_router
from app.apis.execute import router as execute_router
from app.apis.executors import router as executors_router
from app.apis.fetch_url import router as fetch_url_router
from app.apis.mcp import router as mcp_router
from app.libs.logging_config import configure_logging

logger = logging.getLogger(__name__)

ROUTERS = (
    execute_router,
    chat_router,
    mcp_router,
    data_router,
    fetch_url_router,
    executors_router,
    colors_router,
)


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Routine Manager API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in ROUTERS:
        app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    logger.info("Routine Manager API ready with %d routers", len(ROUTERS))
    return app


app = create_app()
