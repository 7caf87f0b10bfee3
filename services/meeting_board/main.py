from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.common.http_errors import register_matchboard_exception_handlers
from services.common.logging_config import (
    create_request_logging_middleware,
    get_logger,
    log_service_shutdown,
    log_service_startup,
    setup_service_logging,
)
from services.meeting_board.api import board_router
from services.meeting_board.services.snapshot_provider import close_snapshot_provider
from services.meeting_board.settings import get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()

    setup_service_logging(
        service_name="meeting-board",
        log_level=settings.log_level,
        log_format=settings.log_format,
    )

    log_service_startup(
        "meeting-board",
        version="0.1.0",
        settings=settings.model_dump(),
    )
    yield
    await close_snapshot_provider()
    log_service_shutdown("meeting-board")


app = FastAPI(
    title="Matchboard Meeting Board Service",
    version="0.1.0",
    description="Meeting lifecycle tabs and calendar layout for the event dashboard.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.middleware("http")(create_request_logging_middleware())

# Register standardized exception handlers
register_matchboard_exception_handlers(app)

app.include_router(board_router, prefix="/api/v1/meeting-board", tags=["meeting-board"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.meeting_board.main:app",
        host="0.0.0.0",
        port=8011,
        log_level=get_settings().log_level.lower(),
        access_log=False,  # Request logging is handled by the middleware
    )
