"""GeoQuiz Admin - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from geoquiz.core.config import Settings, get_settings
from geoquiz.core.errors import (
    QuizError,
    quiz_error_handler,
    request_validation_handler,
    unexpected_error_handler,
)
from geoquiz.core.log import configure_logging
from geoquiz.db.base import create_schema
from geoquiz.db.session import Database
from geoquiz.routers import auth, quizzes
from geoquiz.services.migration import migrate_legacy_photos
from geoquiz.services.uploads import ImageStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    database = Database(
        settings.database_url,
        echo=settings.debug,
        busy_timeout=settings.sqlite_busy_timeout,
    )
    app.state.database = database

    await create_schema(database)
    async with database.session() as session:
        await migrate_legacy_photos(session, settings)

    logger.info(
        "%s ready (database=%s, images=%s, attribution=%s)",
        settings.app_name,
        settings.database_url,
        settings.images_dir,
        settings.attribution_mode,
    )
    yield
    await database.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Admin API for five-photo location quizzes",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.image_store = ImageStore(settings.images_dir)
    app.state.image_store.ensure_root()

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(QuizError, quiz_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    # Serve uploaded images at /images
    app.mount("/images", StaticFiles(directory=settings.images_dir), name="images")

    app.include_router(auth.router)
    app.include_router(quizzes.router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "message": "Admin server ready"}

    return app
