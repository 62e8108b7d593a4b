import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from minio.error import S3Error
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from filedrop import __version__
from filedrop.core.config import settings
from filedrop.core.database import Base, SessionLocal, engine
from filedrop.core.errors import FiledropError
from filedrop.core.logging_config import setup_logging
from filedrop.core.minio_client import initialize_minio_bucket
from filedrop.monitoring.setup import setup_monitoring
from filedrop.routes import download, files
from filedrop.services.storage import ObjectStore, get_object_store
from filedrop.tasks.cleanup import start_cleanup_task
from filedrop.utils.timeutils import isoformat_z, utcnow

logger = logging.getLogger("filedrop")

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    try:
        async with engine.begin() as conn:
            if engine.dialect.name == "sqlite":
                await conn.execute(text("PRAGMA journal_mode=WAL;"))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    try:
        initialize_minio_bucket()
        logger.info("MinIO initialized")
    except Exception as e:
        logger.error(f"MinIO initialization failed: {e}")
        raise

    cleanup_task = None
    if settings.CLEANUP_ENABLED:
        cleanup_task = asyncio.create_task(start_cleanup_task())
        logger.info("Background cleanup task started")

    yield

    if cleanup_task is not None:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            logger.info("Cleanup task cancelled")
    logger.info("Application shutdown complete")

app = FastAPI(
    title="filedrop",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Content-Disposition", "Content-Length"],
)


@app.exception_handler(FiledropError)
async def filedrop_error_handler(request: Request, exc: FiledropError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s (%r)", request.method, request.url.path, exc.detail, exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.exception_handler(S3Error)
async def storage_error_handler(request: Request, exc: S3Error):
    logger.exception("Storage error: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(files)
app.include_router(download)

setup_monitoring(app)

@app.get("/health")
async def health_check(store: ObjectStore = Depends(get_object_store)):
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception as e:
        logger.warning("Health check database probe failed: %s", e)
        db_status = "error"

    try:
        await store.ping()
        storage_status = "ok"
    except Exception as e:
        logger.warning("Health check storage probe failed: %s", e)
        storage_status = "error"

    return {
        "status": "running",
        "timestamp": isoformat_z(utcnow()),
        "database": db_status,
        "storage": storage_status
    }

@app.get("/", include_in_schema=False)
async def index():
    return {"service": "filedrop", "version": __version__}

if __name__ == "__main__":
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info",
        timeout_keep_alive=60,
        limit_concurrency=100
    )
