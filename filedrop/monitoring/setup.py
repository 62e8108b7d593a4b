import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

cleanup_runs = Counter("filedrop_cleanup_runs_total", "Expiration sweep runs")
cleanup_files_deleted = Counter("filedrop_cleanup_files_deleted_total", "Expired files removed by the sweeper")
cleanup_failed_deletes = Counter("filedrop_cleanup_failed_deletes_total", "Expired files the sweeper failed to remove")
cleanup_duration = Histogram("filedrop_cleanup_duration_seconds", "Duration of a sweep run in seconds")

uploaded_files = Counter("filedrop_uploaded_files_total", "Files stored by upload calls")
uploaded_bytes = Counter("filedrop_uploaded_bytes_total", "Bytes stored by upload calls")
downloads = Counter("filedrop_downloads_total", "Responses served from /f/", ["kind"])

def report_cleanup(files_deleted: int, failed: int, duration: float) -> None:
    """Record sweep metrics to Prometheus."""
    cleanup_runs.inc()
    if files_deleted:
        cleanup_files_deleted.inc(files_deleted)
    if failed:
        cleanup_failed_deletes.inc(failed)
    cleanup_duration.observe(duration)

def report_upload(file_count: int, total_bytes: int) -> None:
    uploaded_files.inc(file_count)
    if total_bytes:
        uploaded_bytes.inc(total_bytes)

def report_download(kind: str) -> None:
    downloads.labels(kind=kind).inc()

def setup_monitoring(app: ASGIApp):
    Instrumentator().instrument(app).expose(app, endpoint="/api/metrics", include_in_schema=False)

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        # Last line of defence: nothing escapes as an unhandled fault.
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception("Unhandled error: %s %s -> %s", request.method, request.url.path, e)
            response = JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
        log = logger.warning if response.status_code >= 500 else logger.info
        log("method=%s path=%s status=%s duration=%.4fs",
            request.method, request.url.path, response.status_code, time.perf_counter() - start_time)
        return response
