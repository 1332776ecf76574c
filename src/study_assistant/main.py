import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from study_assistant.api import router as study_router
from study_assistant.errors import StudyServiceError
from study_assistant.logging_config import configure_logging
from study_assistant.services.study import StudyService, get_study_service
from study_assistant.settings import get_settings
from study_assistant.telemetry import emit_app_startup_event, emit_exception

settings = get_settings()
configure_logging(settings.log_level)

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    emit_app_startup_event()
    yield


app = FastAPI(title="PDF Study Assistant API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(study_router)


@app.exception_handler(StudyServiceError)
async def _handle_service_error(_: Request, exc: StudyServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "Invalid request: " + ("; ".join(parts) or "malformed body")


@app.exception_handler(RequestValidationError)
async def _handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc)})


@app.exception_handler(Exception)
async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    emit_exception(module=f"{__name__}.{request.url.path}", error=exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz")
def healthcheck(service: StudyService = Depends(get_study_service)) -> dict[str, Any]:
    """Report whether a document is loaded and which models are configured."""

    return {"status": "ok", **service.status()}


def run() -> None:
    """Start the API with uvicorn on ``HOST``/``PORT``."""

    import uvicorn

    LOGGER.info("Server running on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
