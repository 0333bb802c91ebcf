from __future__ import annotations
"""Error taxonomy for the assignment forms.

Only the async boundaries (gateway fetches, submit) raise these; the resolver
functions themselves are total and never raise.
"""
from typing import Dict, Optional


class AssignmentError(Exception):
    """Base class for assignment form errors."""


class ValidationError(AssignmentError):
    """Local, recoverable field errors. Never sent to the server."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__(', '.join(f'{k}: {v}' for k, v in sorted(errors.items())))
        self.errors = dict(errors)


class FetchError(AssignmentError):
    """A hierarchy or candidate list could not be loaded."""

    def __init__(self, resource: str, detail: str = ''):
        super().__init__(f'Failed to load {resource}' + (f': {detail}' if detail else ''))
        self.resource = resource
        self.detail = detail


class SubmissionError(AssignmentError):
    """The create/update endpoint rejected the payload."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class InvalidTransition(AssignmentError):
    """Controller state machine was driven through a disallowed edge."""


__all__ = ['AssignmentError', 'ValidationError', 'FetchError', 'SubmissionError', 'InvalidTransition']
