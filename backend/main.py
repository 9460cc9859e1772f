import logging
from datetime import datetime, timezone
from pathlib import Path

from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.config import settings
from backend.database import engine
from backend.errors import FieldTreeError, NotFoundError, PurgeForbidden, ResultShapeError, StoreWriteError
from backend.models import stored_record, user  # noqa: F401
from backend.routers import auth, catalog, invoices, notifications, templates
from backend.routers.deps import get_store
from backend.seed.lab_seed import seed_catalog
from backend.storage.base import DataStore

app = FastAPI(title="Lab Results API", version="0.1.0")
logger = logging.getLogger(__name__)

allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _assert_database_at_head() -> None:
    project_root = Path(__file__).resolve().parent.parent
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    script = ScriptDirectory.from_config(alembic_cfg)
    expected_heads = set(script.get_heads())

    with engine.connect() as connection:
        context = MigrationContext.configure(connection)
        current_heads = set(context.get_current_heads())

    if current_heads != expected_heads:
        raise RuntimeError(
            "Database schema is not at Alembic head. "
            "Run `alembic upgrade head` before starting the API. "
            f"Current revisions: {sorted(current_heads) or ['<none>']}, "
            f"expected: {sorted(expected_heads)}."
        )


@app.on_event("startup")
def startup_event():
    _assert_database_at_head()
    seed_catalog()


@app.get("/")
def root():
    return {"statusCode": 200, "message": "Success", "data": {"status": "ok", "service": "lab-results"}}


@app.get("/health")
def health(store: DataStore = Depends(get_store)):
    reachable = store.ping()
    return {
        "status": "ok" if reachable else "degraded",
        "service": "lab-results",
        "data_source": settings.data_source,
        "store_reachable": reachable,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _error_name(status_code: int) -> str:
    if status_code == 400:
        return "BadRequest"
    if status_code == 401:
        return "Unauthorized"
    if status_code == 403:
        return "Forbidden"
    if status_code == 404:
        return "NotFound"
    if status_code == 422:
        return "ValidationError"
    if status_code == 503:
        return "ServiceUnavailable"
    if status_code >= 500:
        return "InternalServerError"
    return "HTTPError"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"statusCode": status_code, "message": message, "error": _error_name(status_code)},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    return _error_response(exc.status_code, str(exc.detail) if exc.detail else "Request failed")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "statusCode": 422,
            "message": "Invalid request payload",
            "error": "ValidationError",
            "details": {"errors": exc.errors()},
        },
    )


@app.exception_handler(FieldTreeError)
async def field_tree_exception_handler(_: Request, exc: FieldTreeError):
    return _error_response(400, str(exc))


@app.exception_handler(ResultShapeError)
async def result_shape_exception_handler(_: Request, exc: ResultShapeError):
    return _error_response(422, str(exc))


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(_: Request, exc: NotFoundError):
    return _error_response(404, str(exc))


@app.exception_handler(PurgeForbidden)
async def purge_forbidden_exception_handler(_: Request, exc: PurgeForbidden):
    return _error_response(403, str(exc))


@app.exception_handler(StoreWriteError)
async def store_write_exception_handler(_: Request, exc: StoreWriteError):
    logger.warning("Data store write failed: %s", exc)
    return _error_response(503, str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, exc: Exception):
    logger.exception("Unhandled server error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={
            "statusCode": 500,
            "message": str(exc) or "An unexpected error occurred",
            "error": "InternalServerError",
        },
    )


app.include_router(auth.router)
app.include_router(catalog.router)
app.include_router(templates.router)
app.include_router(invoices.router)
app.include_router(notifications.router)
