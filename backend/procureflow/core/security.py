# procureflow/core/security.py
"""
Credential primitives shared by the auth service, the auth router and the request
dependencies: Argon2 password hashes and the HS256 access tokens ProcureFlow issues.

Tokens are scoped with an issuer/audience pair so a token minted by another service
that happens to share JWT_SECRET is still rejected.
"""
import os
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext
from dotenv import load_dotenv
from pathlib import Path

ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret")  # Use a strong secret in production
JWT_ALG = "HS256"
JWT_ISSUER = "procureflow"
JWT_AUDIENCE = "procureflow-api"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Browser clients get the token in this HttpOnly cookie as well as in the login body
ACCESS_TOKEN_COOKIE = "accessToken"


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """False for a wrong password or an unreadable stored hash."""
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def password_needs_rehash(hashed: str) -> bool:
    """True when the stored hash uses outdated Argon2 parameters."""
    return pwd_context.needs_update(hashed)


def create_access_token(user_id: str, role: str) -> str:
    """
    Issue an access token for a signed-in user.

    Claims: sub (user id), role, iss, aud, iat, exp.
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> dict:
    """
    Verify signature, expiry, issuer and audience, and return the claims.

    Raises:
        jwt.InvalidTokenError (or a subclass such as jwt.ExpiredSignatureError)
    """
    return jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALG],
        audience=JWT_AUDIENCE,
        issuer=JWT_ISSUER,
        options={"require": ["exp", "sub"]},
    )
