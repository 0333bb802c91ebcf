from __future__ import annotations
"""Reusable field format checks shared by the form validator and the write endpoints.

The ``*_error`` helpers return a message or ``None`` so the form side can build an
error map; ``require_valid`` wraps them with the usual 400 abort for route handlers.
"""
from typing import Any, Optional
from email_validator import validate_email, EmailNotValidError
from flask import abort

USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6


def username_error(value: Any) -> Optional[str]:
    text = (value or '').strip() if isinstance(value, str) else ''
    if not text:
        return 'Username is required'
    if len(text) < USERNAME_MIN_LENGTH:
        return f'Username must be at least {USERNAME_MIN_LENGTH} characters'
    return None


def email_error(value: Any, required: bool = True) -> Optional[str]:
    text = (value or '').strip() if isinstance(value, str) else ''
    if not text:
        return 'Email is required' if required else None
    try:
        validate_email(text, check_deliverability=False)
    except EmailNotValidError:
        return 'Enter a valid email address'
    return None


def password_error(value: Any) -> Optional[str]:
    text = value if isinstance(value, str) else ''
    if not text:
        return 'Password is required'
    if len(text) < PASSWORD_MIN_LENGTH:
        return f'Password must be at least {PASSWORD_MIN_LENGTH} characters'
    return None


def require_valid(message: Optional[str]) -> None:
    """Abort 400 with ``message`` when a check failed."""
    if message:
        abort(400, description=message)

__all__ = ['username_error', 'email_error', 'password_error', 'require_valid']
