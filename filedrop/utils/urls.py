import urllib.parse

from fastapi import Request

from filedrop.core.config import settings


def _forwarded_origin(header: str) -> str | None:
    """Origin from an RFC 7239 ``Forwarded`` header (first hop only)."""
    first_hop = header.split(",", 1)[0]
    params = {}
    for part in first_hop.split(";"):
        if "=" in part:
            k, v = part.split("=", 1)
            params[k.strip().lower()] = v.strip().strip('"')
    if params.get("proto") and params.get("host"):
        return f"{params['proto']}://{params['host']}"
    return None


def external_base_url(request: Request, override: str | None = None) -> str:
    """Public origin for links handed back to clients.

    Resolved once per request: an explicit override (``PUBLIC_BASE_URL`` by
    default) wins, then proxy headers, then the request itself.
    """
    override = settings.PUBLIC_BASE_URL if override is None else override
    if override:
        return override.rstrip("/")

    fwd = request.headers.get("forwarded")
    origin = _forwarded_origin(fwd) if fwd else None
    if origin is None:
        proto = request.headers.get("x-forwarded-proto")
        host = request.headers.get("x-forwarded-host") or request.headers.get("host")
        if proto and host:
            origin = f"{proto}://{host}"
    return (origin or str(request.base_url)).rstrip("/")


def file_url(base_url: str, file_id: str) -> str:
    """Public URL of a stored object or group; path separators stay literal."""
    return f"{base_url.rstrip('/')}/f/{urllib.parse.quote(file_id, safe='/')}"
