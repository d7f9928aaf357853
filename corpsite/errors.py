"""
Exception types shared across the store, auth and HTTP layers.
"""

from __future__ import annotations

from typing import Optional


class StoreError(Exception):
    """A store call failed. `message` is the backend's text, unmodified."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class RowNotFoundError(StoreError):
    def __init__(self, table: str, row_id: str):
        super().__init__(f"No row in {table} with id {row_id}", code="PGRST116")
        self.table = table
        self.row_id = row_id


class AuthError(Exception):
    """Raised by auth providers; the message is shown to the user verbatim."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class LoginRequired(Exception):
    """The current request has no live session and must go to the login page."""

    def __init__(self, redirect_to: str = "/auth"):
        super().__init__(redirect_to)
        self.redirect_to = redirect_to
