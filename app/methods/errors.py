# /app/methods/errors.py
from typing import Dict, List, Optional


class StoreError(Exception):
    """Any persistence failure that is not a business-rule outcome."""


class NotFoundError(Exception):
    """No visible record matches (never existed, or already expired)."""


class DuplicateEmailError(Exception):
    pass


class InvalidCredentialsError(Exception):
    pass


class ValidationError(Exception):
    """User-correctable form input; carries per-field messages."""

    def __init__(self, errors: Dict[str, List[str]], values: Optional[Dict[str, str]] = None) -> None:
        super().__init__("invalid form input")
        self.errors = errors
        self.values = values or {}
