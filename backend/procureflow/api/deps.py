# procureflow/api/deps.py
from fastapi import Header, HTTPException, Request, status
from procureflow.core.security import ACCESS_TOKEN_COOKIE, decode_access_token
from procureflow.models.user import User


def _extract_token(request: Request, authorization: str | None) -> str | None:
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    return token


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    The JWT is read from the Authorization header (Bearer) or the HttpOnly
    "accessToken" cookie.

    Raises:
        HTTPException (401): AUTH_REQUIRED / AUTH_INVALID_TOKEN / AUTH_USER_NOT_FOUND
    """
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await User.get_or_none(id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return user


async def get_optional_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User | None:
    """
    Like get_current_user, but anonymous callers get None instead of a 401.
    A missing, invalid or stale token is treated as anonymous.
    """
    token = _extract_token(request, authorization)
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except Exception:
        return None
    return await User.get_or_none(id=payload.get("sub"))
