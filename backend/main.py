"""
Competitor Intel - FastAPI Backend

Tracks competitors of the baseline product, the sources that document them and
the categorised claims taken from those sources; assembles the comparison
matrix and exports it for investor material.
"""
import os
import sys
import logging
import uuid
from contextlib import asynccontextmanager

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


# ==============================================================================
# ENVIRONMENT LOADING
# ==============================================================================
def _load_env():
    """
    Load environment variables from .env.

    When frozen (PyInstaller), .env is read from next to the executable;
    otherwise load_dotenv() searches from the current directory.
    """
    if getattr(sys, 'frozen', False):
        env_path = os.path.join(os.path.dirname(sys.executable), '.env')
        if os.path.exists(env_path):
            load_dotenv(env_path)
            logger.info(f"[ENV] Loaded from exe directory: {env_path}")
            return True
        logger.info(f"[ENV] Warning: No .env found at {env_path}")
        return False

    load_dotenv()
    logger.info("[ENV] Loading environment variables from .env")
    return True


def configure_logging():
    """Plain text logging by default, JSON lines when JSON_LOGGING=true."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()

    if os.getenv("JSON_LOGGING", "false").lower() == "true":
        from pythonjsonlogger import jsonlogger

        json_handler = logging.StreamHandler()
        json_handler.setFormatter(jsonlogger.JsonFormatter(
            '%(asctime)s %(name)s %(levelname)s %(message)s',
            rename_fields={"asctime": "timestamp", "levelname": "level"}
        ))
        logging.root.handlers = [json_handler]
        logging.root.setLevel(level)
        logger.info("JSON logging enabled")
    else:
        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )


_load_env()
configure_logging()
logger.info(f"[ENV] Database URL: {os.getenv('DATABASE_URL', 'sqlite:///./competitor_intel.db')}")

from constants import APP_NAME, __version__  # noqa: E402
# ==============================================================================

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from slowapi import _rate_limit_exceeded_handler  # noqa: E402
from slowapi.errors import RateLimitExceeded  # noqa: E402
from slowapi.middleware import SlowAPIMiddleware  # noqa: E402
from starlette.exceptions import HTTPException as StarletteHTTPException  # noqa: E402
from starlette.middleware.gzip import GZipMiddleware  # noqa: E402

from database import SessionLocal, ensure_baseline, init_db  # noqa: E402
from errors import IntelError  # noqa: E402
from middleware import MetricsMiddleware, SecurityHeadersMiddleware  # noqa: E402
from rate_limit import limiter  # noqa: E402
from routers import auth, claims, competitors, dashboard, health, imports, matrix, sources  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed the baseline competitor."""
    logger.info(f"{APP_NAME} v{__version__} starting up...")
    init_db()

    db = SessionLocal()
    try:
        baseline = ensure_baseline(db)
        logger.info(f"[OK] Baseline competitor: {baseline.name} (id={baseline.id})")
    finally:
        db.close()

    yield

    logger.info(f"{APP_NAME} shutting down...")


app = FastAPI(
    title=f"{APP_NAME} API",
    description="Competitor tracking, claim verification and comparison matrix exports",
    version=__version__,
    lifespan=lifespan
)

# GZip compression for API responses (exports can be large)
app.add_middleware(GZipMiddleware, minimum_size=1000)

_cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials="*" not in _cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(MetricsMiddleware)

# slowapi limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def correlation_id_middleware(request, call_next):
    """Add correlation ID to all requests for distributed tracing."""
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


# ==============================================================================
# ERROR HANDLERS
# ==============================================================================

@app.exception_handler(IntelError)
async def intel_error_handler(request: Request, exc: IntelError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# ==============================================================================
# ROUTERS
# ==============================================================================

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(competitors.router)
app.include_router(sources.router)
app.include_router(claims.router)
app.include_router(imports.router)
app.include_router(matrix.router)
app.include_router(dashboard.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
