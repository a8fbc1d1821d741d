# procureflow/core/errors.py
"""
Domain error taxonomy.

Services raise these typed errors; the HTTP layer (see main.py) maps each one to
its status code and renders {"error": code, "message": message}. Anything that is
not a ProcureFlowError is treated as an unexpected failure and sanitized to a 500.
"""
from typing import Any


class ProcureFlowError(Exception):
    """Base class for all domain errors."""
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class ValidationError(ProcureFlowError):
    """Malformed or out-of-range input."""
    code = "VALIDATION_ERROR"
    status_code = 400


class DuplicateItemError(ProcureFlowError):
    """
    Advisory error raised when an item with the same name and category already exists.
    Carries the candidate matches so the caller can show them or override.
    """
    code = "DUPLICATE_ITEM"
    status_code = 409

    def __init__(self, duplicates: list[dict], message: str | None = None):
        super().__init__(message or "Possible duplicate item found. Review the existing items or confirm to create anyway.")
        self.duplicates = duplicates

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["duplicates"] = self.duplicates
        return body


class NotFoundError(ProcureFlowError):
    code = "NOT_FOUND"
    status_code = 404


class ItemNotFoundError(NotFoundError):
    code = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class EmptyCartError(ProcureFlowError):
    code = "EMPTY_CART"
    status_code = 400

    def __init__(self, message: str = "Cart is empty. Add items before checking out."):
        super().__init__(message)


class CartLimitError(ProcureFlowError):
    code = "CART_LIMIT"
    status_code = 400


class AgentError(ProcureFlowError):
    """LLM provider or orchestration failure; always shown to users as a generic message."""
    code = "AGENT_ERROR"
    status_code = 500

    def __init__(self, message: str = "The assistant is temporarily unavailable. Please try again."):
        super().__init__(message)


class EmailExistsError(ProcureFlowError):
    code = "EMAIL_EXISTS"
    status_code = 409

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message)


# Detail codes raised as HTTPException by the auth dependencies and the login route.
# main.py renders them in the same {"error", "message"} envelope as the classes above.
AUTH_ERROR_MESSAGES = {
    "AUTH_REQUIRED": "Authentication required",
    "AUTH_INVALID_TOKEN": "Invalid or expired access token",
    "AUTH_USER_NOT_FOUND": "The account for this token no longer exists",
    "AUTH_INVALID_CREDENTIALS": "Incorrect email or password",
}
