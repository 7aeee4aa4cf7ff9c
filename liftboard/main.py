import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models to ensure they're registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.scheduling.exceptions import InvalidReference, NotFound, StoreUnavailable
from .domain.scheduling.router import router as schedule_router
from .domain.work.router import router as work_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Lift Board API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"{request.method} {request.url.path} - store unavailable ({exc.source})")
    return JSONResponse(status_code=503, content={"detail": exc.message, "source": exc.source})


@app.exception_handler(InvalidReference)
async def invalid_reference_handler(request: Request, exc: InvalidReference):
    logger.warning(f"{request.method} {request.url.path} - {exc.message}")
    return JSONResponse(status_code=400, content={"detail": exc.message, "source": exc.source})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    logger.warning(f"{request.method} {request.url.path} - {exc}")
    return JSONResponse(status_code=404, content={"detail": str(exc)})


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(schedule_router)
app.include_router(work_router)


@app.get("/")
def root():
    return {"message": "Lift Board API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
