"""Catalog and session errors"""

from typing import Optional

DEFAULT_VALIDATION_MESSAGE = "Saleor returned an error."


class CatalogError(Exception):
    """Base exception for catalog backend errors"""
    pass


class TransportError(CatalogError):
    """Network failure, timeout or non-2xx response"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendError(CatalogError):
    """Well-formed response carrying application-level errors"""

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__(", ".join(messages) or "Backend request failed.")


class ValidationError(CatalogError):
    """Order draft rejected for specific lines or fields"""

    def __init__(self, errors: list[dict]):
        self.errors = errors
        parts = [err.get("message") or err.get("code") or "" for err in errors]
        message = ", ".join(part for part in parts if part)
        super().__init__(message or DEFAULT_VALIDATION_MESSAGE)


class DomainInvariantViolation(Exception):
    """Operation would break a session invariant"""
    pass
