# procureflow/api/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, Response, status
from procureflow.api.deps import get_current_user
from procureflow.core.security import ACCESS_TOKEN_COOKIE, create_access_token
from procureflow.models.user import User
from procureflow.schemas.auth import LoginRequest, RegisterIn
from procureflow.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn):
    """
    Register a new user account.

    Returns:
        dict: {"success": True, "data": {id, email, name, role, createdAt}}

    Errors:
        - 400 VALIDATION_ERROR: malformed email, empty name or short password
        - 409 EMAIL_EXISTS: email already registered
    """
    user = await auth_service.register_user(body.email, body.name, body.password)
    return {"success": True, "data": auth_service.user_to_dict(user)}

@router.post("/login")
async def login(payload: LoginRequest, response: Response):
    """
    Authenticate and issue an access token.

    The token is returned in the body and also set as an HttpOnly cookie named
    "accessToken" for browser clients.

    Raises:
        HTTPException (401): AUTH_INVALID_CREDENTIALS
    """
    user = await auth_service.authenticate(payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_CREDENTIALS")
    token = create_access_token(str(user.id), user.role)
    response.set_cookie(ACCESS_TOKEN_COOKIE, token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": {"user": auth_service.user_to_dict(user), "accessToken": token}}

@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": auth_service.user_to_dict(user)}

@router.post("/logout")
async def logout(response: Response):
    """Clear the access token cookie. The JWT itself stays valid until it expires."""
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return {"success": True}
