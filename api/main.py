from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from core import db, schema
from core.errors import NotFoundError, StorageError, ValidationError
from students import router as students_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "").strip().upper() or "INFO"
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        if schema.install_enabled():
            await schema.install_schema()
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="student-records-api", lifespan=lifespan)

# The browser client may be served from anywhere.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(students_router.router, tags=["students"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(NotFoundError)
async def not_found_handler(_: Request, exc: NotFoundError) -> JSONResponse:
    return _error(404, str(exc))


@app.exception_handler(ValidationError)
async def validation_handler(_: Request, exc: ValidationError) -> JSONResponse:
    return _error(400, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid request.")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return _error(400, f"{field}: {first.get('msg', 'invalid value')}")


@app.exception_handler(StorageError)
async def storage_handler(request: Request, exc: StorageError) -> JSONResponse:
    # The raw driver message goes back to the caller, same as it is logged.
    logger.error("storage_error method=%s path=%s error=%s", request.method, request.url.path, exc)
    return _error(500, str(exc))


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "Welcome to the student records API"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def serve() -> None:
    configure_logging()
    uvicorn.run(
        app,
        host=os.environ.get("API_HOST", "").strip() or "0.0.0.0",
        port=_env_int("API_PORT", 3001),
    )


if __name__ == "__main__":
    serve()
