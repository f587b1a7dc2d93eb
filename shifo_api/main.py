import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import ALLOWED_ORIGINS, API_PREFIX, APP_NAME, APP_VERSION
from .database import connect, create_indexes
from .domain.admins.router import router as admins_router
from .domain.bookings.router import router as bookings_router
from .domain.clinics.router import router as clinics_router
from .domain.landing.router import router as landing_router
from .domain.patients.router import router as patients_router
from .errors import STATUS_CODES, AppError
from .shared.documents import to_iso, utcnow
from .shared.responses import error_body, ok

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("passlib").setLevel(logging.ERROR)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    client, db = connect()
    app.state.mongo_client = client
    app.state.db = db
    create_indexes(db)

    yield

    logger.info("Application shutting down...")
    client.close()


app = FastAPI(title="Shifo API", version=APP_VERSION, lifespan=lifespan)


# ============================================================================
# ERROR ENVELOPE
# ============================================================================


def _field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by field path, without the body/query/path prefix"""
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        field = ".".join(loc) or "body"
        details.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return details


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content=error_body("Validation failed", "VALIDATION_ERROR", _field_errors(exc)),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc, AppError):
        message, code = exc.message, exc.code
    else:
        message, code = str(exc.detail), STATUS_CODES.get(exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Unhandled error: {exc}")
    return JSONResponse(status_code=500, content=error_body("Internal server error", "INTERNAL_ERROR"))


# CORS Configuration
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(admins_router, prefix=API_PREFIX)
app.include_router(clinics_router, prefix=API_PREFIX)
app.include_router(bookings_router, prefix=API_PREFIX)
app.include_router(patients_router, prefix=API_PREFIX)
app.include_router(landing_router, prefix=API_PREFIX)


@app.get("/")
def root():
    return ok({"name": APP_NAME, "version": APP_VERSION})


@app.get("/health")
def health():
    return ok({"status": "ok", "timestamp": to_iso(utcnow())})
