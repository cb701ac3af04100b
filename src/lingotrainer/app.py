import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_db
from .errors import EmptyDeck, InvalidInput, StudyError
from .globals import vocab_manager
from .log_handler import SQLiteHandler
from .router import router

logger = logging.getLogger("lingotrainer")


# --- Logging Setup ---
def setup_logging():
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        if not os.path.exists(settings.LOG_DIR):
            os.makedirs(settings.LOG_DIR, exist_ok=True)
        log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
        file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if settings.LOG_TO_DB and not any(isinstance(h, SQLiteHandler) for h in logger.handlers):
        init_db()
        db_handler = SQLiteHandler(level=logging.INFO)
        db_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(db_handler)
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Error mapping ---
def error_status(exc: StudyError) -> int:
    if isinstance(exc, EmptyDeck):
        return 404
    if isinstance(exc, InvalidInput):
        return 422
    return 409


async def study_error_handler(request: Request, exc: StudyError):
    status = error_status(exc)
    logger.warning(f"{request.method} {request.url.path} -> {status} {exc.code}: {exc.message}")
    return JSONResponse({"error": exc.code, "detail": exc.message}, status_code=status)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    vocab_manager.load_all()
    yield


# --- App Factory ---
def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )

    app.add_exception_handler(StudyError, study_error_handler)
    app.include_router(router)

    return app
