from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import APIKeyHeader
from fastapi_limiter.depends import RateLimiter
from jose import jwt, JWTError

from .config import settings

api_key_header = APIKeyHeader(name="Authorization")


def _subject_from_header(authorization: str | None) -> str | None:
    """Returns the ``sub`` claim of a 'Bearer <jwt>' header, or None if it cannot be read."""
    if not authorization:
        return None
    scheme, _, jwt_token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not jwt_token:
        return None
    try:
        payload = jwt.decode(jwt_token.strip(), settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub is not None else None


async def rate_limit_identifier(request: Request) -> str:
    # Authenticated callers share one bucket per user, everyone else per IP
    return _subject_from_header(request.headers.get("Authorization")) or request.client.host


async def get_current_user_id_from_token(
        token: Annotated[str, Depends(api_key_header)]
) -> int:
    """
    Decodes the JWT from the 'Authorization: Bearer ...' header to get the user ID.
    """
    sub = _subject_from_header(token)
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


CurrentUserId = Annotated[int, Depends(get_current_user_id_from_token)]


def rate_limit(times: int, minutes: int = 1):
    """
    Per-user (or per-IP) rate limit dependency. A no-op when
    RATE_LIMIT_ENABLED is off, e.g. in tests or without Redis.
    """
    limiter = RateLimiter(times=times, minutes=minutes, identifier=rate_limit_identifier)

    async def dependency(request: Request, response: Response):
        if settings.RATE_LIMIT_ENABLED:
            await limiter(request, response)

    return dependency
