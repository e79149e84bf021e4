"""
Identity & Approval Store
=========================

Registration, lookup and admin approval of student accounts, on top of
Django's auth framework (hashed passwords, session login).

Rules:
- Emails are trimmed and lower-cased; one account per normalized email
- New registrations start unapproved; admins are seeded approved
- Disapproval deletes the account outright (no "rejected" state)
- Password resets use one-time tokens (Django's token generator)
"""

import logging

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.contrib.auth import authenticate as django_authenticate  # pyright: ignore[reportMissingModuleSource]
from django.contrib.auth.tokens import default_token_generator  # pyright: ignore[reportMissingModuleSource]
from django.core.exceptions import ValidationError  # pyright: ignore[reportMissingModuleSource]
from django.core.validators import validate_email  # pyright: ignore[reportMissingModuleSource]
from django.db import IntegrityError, transaction  # pyright: ignore[reportMissingModuleSource]

from .exceptions import (
    DuplicateEmail, NotApproved, PermissionDenied, Unauthenticated,
    ValidationFailed, translate_backend_errors,
)
from .models import Account, normalize_email_address

logger = logging.getLogger(__name__)


def validate_student_id(student_id):
    """Return an error message for a malformed student id, or None."""
    length = settings.ELECTIONS_STUDENT_ID_LENGTH
    if not student_id.isdigit() or len(student_id) != length:
        return f'Student ID must be {length} digits long.'
    return None


def _validate_registration(email, password, profile):
    errors = {}

    try:
        validate_email(email)
    except ValidationError:
        errors['email'] = ['Please enter a valid email address.']

    if not password:
        errors['password'] = ['Password is required.']

    student_id = profile['student_id']
    if student_id:
        message = validate_student_id(student_id)
        if message:
            errors['student_id'] = [message]

    course = profile['course']
    if course and course not in settings.ELECTIONS_COURSES:
        errors['course'] = [f'Unknown course: {course}.']

    if errors:
        raise ValidationFailed(errors=errors)


@translate_backend_errors
def register(email, password, profile=None):
    """
    Create an unapproved account.

    Args:
        email: Login email (any case)
        password: Raw password (stored hashed)
        profile: Optional dict with display_name, course, student_id

    Returns:
        UUID of the new account

    Raises:
        ValidationFailed: malformed email/student id, unknown course, blank password
        DuplicateEmail: an account already uses this email
    """
    email = normalize_email_address(email)
    profile = {
        'display_name': ((profile or {}).get('display_name') or '').strip(),
        'course': ((profile or {}).get('course') or '').strip(),
        'student_id': ((profile or {}).get('student_id') or '').strip(),
    }
    _validate_registration(email, password, profile)

    if Account.objects.filter(email=email).exists():
        logger.warning(f"Duplicate registration blocked: {email}")
        raise DuplicateEmail()

    try:
        with transaction.atomic():
            account = Account.objects.create_user(
                email=email,
                password=password,
                approved=False,
                **profile
            )
    except IntegrityError as e:
        logger.warning(f"IntegrityError during registration (concurrent duplicate): {email}")
        raise DuplicateEmail() from e

    logger.info(f"Account registered: {account.id} ({email}), awaiting approval")
    return account.id


@translate_backend_errors
def find_by_email(email):
    """Return the account for ``email`` (any case), or None."""
    return Account.objects.filter(email=normalize_email_address(email)).first()


@translate_backend_errors
def approve(email):
    """Mark an account approved. Returns False when no such account exists."""
    updated = Account.objects.filter(email=normalize_email_address(email)).update(approved=True)
    if updated:
        logger.info(f"Account approved: {normalize_email_address(email)}")
    return bool(updated)


@translate_backend_errors
def disapprove(email):
    """
    Reject a pending registration by deleting the account.

    Only unapproved, non-admin accounts are removed. Returns False
    otherwise. Votes are stored by voter id and are never deleted here.
    """
    account = find_by_email(email)
    if account is None or account.is_admin or account.approved:
        return False
    account.delete()
    logger.info(f"Account disapproved and removed: {account.email}")
    return True


@translate_backend_errors
def list_pending():
    """Unapproved, non-admin accounts, newest first."""
    return list(
        Account.objects.filter(approved=False, is_admin=False).order_by('-date_joined')
    )


@translate_backend_errors
def list_accounts(status='all'):
    """All non-admin accounts, optionally filtered by 'approved' or 'pending'."""
    accounts = Account.objects.filter(is_admin=False).order_by('-date_joined')
    if status == 'approved':
        accounts = accounts.filter(approved=True)
    elif status == 'pending':
        accounts = accounts.filter(approved=False)
    elif status != 'all':
        raise ValidationFailed(errors={'status': [f'Unknown filter: {status}.']})
    return list(accounts)


@translate_backend_errors
def account_stats():
    """Counts for the user monitoring view."""
    accounts = Account.objects.filter(is_admin=False)
    total = accounts.count()
    approved = accounts.filter(approved=True).count()
    return {'total': total, 'approved': approved, 'pending': total - approved}


@translate_backend_errors
def authenticate(email, password, request=None):
    """
    Verify credentials and the approval gate.

    Raises:
        Unauthenticated: unknown email or wrong password
        NotApproved: credentials are valid but the account is pending
    """
    account = django_authenticate(request, email=normalize_email_address(email), password=password)
    if account is None:
        logger.warning(f"Failed login for {normalize_email_address(email)}")
        raise Unauthenticated('Invalid email or password.')
    if not account.approved:
        raise NotApproved('Your account is awaiting admin confirmation.')
    return account


def require_approved(account):
    """Guard for actions that need an approved session."""
    if account is None or not getattr(account, 'is_authenticated', False):
        raise Unauthenticated()
    if not account.approved:
        raise NotApproved()
    return account


def require_admin(account):
    require_approved(account)
    if not account.is_admin:
        raise PermissionDenied()
    return account


@translate_backend_errors
def create_admin(email, password=None, display_name='Admin User'):
    """
    Seed an administrator, or promote an existing account.

    Returns:
        (account, created)
    """
    email = normalize_email_address(email)
    account = Account.objects.filter(email=email).first()
    if account is None:
        account = Account.objects.create_superuser(
            email=email, password=password, display_name=display_name
        )
        logger.info(f"Admin account created: {email}")
        return account, True

    account.is_admin = True
    account.is_staff = True
    account.is_superuser = True
    account.display_name = account.display_name or display_name
    if password:
        account.set_password(password)
    account.save()
    logger.info(f"Admin permissions updated: {email}")
    return account, False


@translate_backend_errors
def issue_password_reset(email):
    """
    Issue a one-time reset token for ``email``.

    Returns None for unknown emails; the token is invalidated as soon as
    the password changes or PASSWORD_RESET_TIMEOUT elapses.
    """
    account = find_by_email(email)
    if account is None:
        logger.info(f"Password reset requested for unknown email: {normalize_email_address(email)}")
        return None
    return default_token_generator.make_token(account)


@translate_backend_errors
def reset_password(email, token, new_password):
    """Set a new (hashed) password after checking the reset token."""
    account = find_by_email(email)
    if account is None or not default_token_generator.check_token(account, token):
        raise ValidationFailed(
            'Invalid or expired reset code.',
            errors={'token': ['Invalid or expired reset code.']},
        )
    if not new_password:
        raise ValidationFailed(errors={'password': ['Password is required.']})

    account.set_password(new_password)
    account.save(update_fields=['password'])
    logger.info(f"Password reset completed: {account.email}")
    return True
