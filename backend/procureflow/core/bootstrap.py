# procureflow/core/bootstrap.py
"""
Bootstrap module for application initialization.
Seeds an initial user account on first startup so a fresh deployment can be signed into.
"""
import os
import logging
from procureflow.models.user import User
from procureflow.core.security import hash_password

logger = logging.getLogger("uvicorn.error")

async def ensure_seed_user() -> None:
    """
    Create the initial user from environment variables if it does not exist yet.
    Only takes effect when SEED_USER_PASSWORD is set (to avoid a default weak password).
    Environment variables:
      SEED_USER_EMAIL    (default: "admin@procureflow.local")
      SEED_USER_NAME     (default: "Admin")
      SEED_USER_PASSWORD (required, otherwise won't create)
    """
    password = os.getenv("SEED_USER_PASSWORD")
    if not password:
        logger.warning("[bootstrap] SEED_USER_PASSWORD not set -> skip creating seed user.")
        return

    email = os.getenv("SEED_USER_EMAIL", "admin@procureflow.local").strip().lower()
    if await User.filter(email=email).exists():
        return

    u = await User.create(
        email=email,
        name=os.getenv("SEED_USER_NAME", "Admin"),
        password_hash=hash_password(password),
        role="admin",
    )
    logger.warning("[bootstrap] Created seed user -> email=%s id=%s", u.email, u.id)
