import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from stackit.config import settings
from stackit.database import dispose_engine
from stackit.exceptions import StackItError, StoreError
from stackit.middleware import TimingMiddleware
from stackit.routers import answers, notifications, questions, users

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


def setup_logging() -> None:
    """Configure the root logger once; third-party loggers are quietened."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    logger.info("StackIt API starting (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await dispose_engine()
    logger.info("StackIt API stopped")


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the API as ``{"message": ...}``."""

    @app.exception_handler(StackItError)
    async def handle_app_error(request: Request, exc: StackItError):
        if isinstance(exc, StoreError) or exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s | context=%s",
                request.method,
                request.url.path,
                exc.message,
                exc.context,
            )
            return _message(500, SERVER_ERROR_MESSAGE)
        return _message(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:
            message = "Invalid request"
        return _message(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.error("%s %s database error: %s", request.method, request.url.path, exc)
        return _message(500, SERVER_ERROR_MESSAGE)


app = FastAPI(
    title="StackIt API",
    description="Question & answer platform: questions, answers, votes, tags and notifications",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
app.include_router(questions.router)
app.include_router(answers.router)
app.include_router(users.router)
app.include_router(notifications.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
