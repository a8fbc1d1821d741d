# procureflow/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
"""
from pydantic import BaseModel

class RegisterIn(BaseModel):
    """Request model for account registration."""
    email: str  # Login identifier (normalized to lowercase)
    name: str  # Display name (1-100 characters)
    password: str  # Plain text, hashed server-side (min 8 characters)

class LoginRequest(BaseModel):
    email: str
    password: str

class UserOut(BaseModel):
    """User information returned by auth endpoints (no sensitive fields)."""
    id: str
    email: str
    name: str
    role: str = "user"
    createdAt: str | None = None

class LoginResponse(BaseModel):
    user: UserOut
    accessToken: str  # JWT access token (also set as HttpOnly cookie)
