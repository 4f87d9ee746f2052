"""Confirmation check for destructive operations."""

from __future__ import annotations

from typing import Any, Optional

from ..core.config import settings
from ..core.exceptions import ValidationException


def resolve_token(token: Optional[str] = None) -> str:
    return (token or settings.delete_confirmation_token).strip().lower()


def require_confirmation(confirmation: Optional[str], token: str, **context: Any) -> None:
    """
    Refuse a destructive operation unless the caller replied with ``token``.

    Comparison ignores surrounding whitespace and case.
    """
    if (confirmation or "").strip().lower() != token:
        raise ValidationException(
            f"Deletion not confirmed; reply '{token}' to confirm",
            code="CONFIRMATION_REQUIRED",
            details=context,
        )
