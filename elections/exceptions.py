"""
Error kinds raised by the election services
============================================

Every failure a caller can observe is an ``ElectionError`` subclass with:
- ``code``: stable identifier rendered to API clients
- ``status``: HTTP status used by the JSON views
- ``user_message``: default text safe to show to end users
- ``retryable``: whether the caller may retry (only backend failures)

Transient database failures are translated into ``BackendUnavailable`` by
``translate_backend_errors``; the services never retry on their own.
"""

import functools
import logging

from django.db import InterfaceError, OperationalError  # pyright: ignore[reportMissingModuleSource]

logger = logging.getLogger(__name__)


class ElectionError(Exception):
    """Base class for every domain error."""
    code = 'election-error'
    status = 400
    user_message = 'An unexpected error occurred. Please try again.'
    retryable = False

    def __init__(self, message=None):
        super().__init__(message or self.user_message)

    @property
    def message(self):
        return str(self)

    def to_dict(self):
        return {
            'code': self.code,
            'message': self.message,
            'retryable': self.retryable,
        }


class NotFound(ElectionError):
    code = 'not-found'
    status = 404
    user_message = 'The requested record was not found.'


class DuplicateEmail(ElectionError):
    code = 'duplicate-email'
    status = 409
    user_message = 'This email is already registered. Please use a different email or login.'


class ValidationFailed(ElectionError):
    """Missing or malformed input. ``errors`` maps field name -> messages."""
    code = 'validation-failed'
    status = 400
    user_message = 'Some fields are missing or invalid.'

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self):
        data = super().to_dict()
        if self.errors:
            data['errors'] = self.errors
        return data


class NoActiveCycle(ElectionError):
    code = 'no-active-cycle'
    status = 409
    user_message = 'There is no active voting session at this time.'


class AlreadyVoted(ElectionError):
    code = 'already-voted'
    status = 409
    user_message = 'You have already voted for this position.'


class NoCandidatesSelected(ElectionError):
    code = 'no-candidates-selected'
    status = 409
    user_message = 'Please select candidates for at least one position before making the cycle live.'


class CycleIsLive(ElectionError):
    code = 'cycle-is-live'
    status = 409
    user_message = 'Cannot delete a live voting cycle. Please end it first.'


class CycleNotDraft(ElectionError):
    code = 'cycle-not-draft'
    status = 409
    user_message = 'This voting cycle can no longer be changed.'


class CycleNotLive(ElectionError):
    code = 'cycle-not-live'
    status = 409
    user_message = 'Only a live voting cycle can be ended.'


class Unauthenticated(ElectionError):
    code = 'unauthenticated'
    status = 401
    user_message = 'You must be logged in to perform this action.'


class NotApproved(ElectionError):
    code = 'not-approved'
    status = 403
    user_message = 'Your account needs to be approved before you can vote.'


class PermissionDenied(ElectionError):
    code = 'permission-denied'
    status = 403
    user_message = 'You do not have permission to perform this action.'


class BackendUnavailable(ElectionError):
    code = 'backend-unavailable'
    status = 503
    user_message = 'Service is temporarily unavailable. Please try again later.'
    retryable = True


def translate_backend_errors(func):
    """
    Re-raise transient database failures as ``BackendUnavailable``.

    Integrity errors are left alone: callers map them to the domain
    kind they represent (duplicate vote, duplicate email, ...).
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Backend failure in {func.__name__}: {str(e)}")
            raise BackendUnavailable() from e

    return wrapper
