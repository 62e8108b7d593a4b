from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.core.database import get_db
from filedrop.core.errors import AuthenticationRequired, AuthorizationError
from filedrop.models.api_key import ApiKey
from filedrop.services.auth import validate_api_key

BEARER_PREFIX = "Bearer "


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


async def require_api_key(request: Request, db: AsyncSession = Depends(get_db)) -> ApiKey:
    """401 for a missing or malformed header, 403 for an unknown or inactive key."""
    token = bearer_token(request)
    if token is None:
        raise AuthenticationRequired()
    api_key = await validate_api_key(db, token)
    if api_key is None:
        raise AuthorizationError()
    return api_key
