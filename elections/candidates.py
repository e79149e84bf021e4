"""
Candidate Registry
==================

CRUD for candidates plus grouping by the configured position hierarchy.

Candidates start unpublished; admins publish them before they appear on
ballots. Name and position are stored trimmed and may not be blank.
"""

import logging

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.core.exceptions import ValidationError  # pyright: ignore[reportMissingModuleSource]

from . import utils
from .exceptions import NotFound, ValidationFailed, translate_backend_errors
from .models import Candidate

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'position', 'party', 'course', 'slogan', 'published')


def _clean_fields(fields):
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationFailed(
            errors={name: ['Unknown field.'] for name in sorted(unknown)}
        )

    cleaned = {}
    for name, value in fields.items():
        if name == 'published':
            cleaned[name] = bool(value)
        else:
            cleaned[name] = (value or '').strip()
    return cleaned


def _check_required(candidate):
    errors = {}
    if not candidate.name:
        errors['name'] = ['Candidate name is required.']
    if not candidate.position:
        errors['position'] = ['Position is required.']
    if errors:
        raise ValidationFailed(errors=errors)

    try:
        candidate.full_clean(exclude=['vote_count'])
    except ValidationError as e:
        raise ValidationFailed(errors=e.message_dict) from e


@translate_backend_errors
def add(name, position, **fields):
    """
    Create a candidate.

    Args:
        name: Candidate name
        position: Position sought
        **fields: Optional party, course, slogan, published

    Returns:
        UUID of the new candidate
    """
    cleaned = _clean_fields({'name': name, 'position': position, **fields})
    candidate = Candidate(**cleaned)
    _check_required(candidate)
    candidate.save()
    logger.info(f"Candidate added: {candidate.name} for {candidate.position} ({candidate.id})")
    return candidate.id


@translate_backend_errors
def get(candidate_id):
    try:
        return Candidate.objects.get(id=candidate_id)
    except (Candidate.DoesNotExist, ValidationError, ValueError) as e:
        raise NotFound(f'Candidate not found: {candidate_id}') from e


@translate_backend_errors
def update(candidate_id, **patch):
    """Apply a partial update and re-validate. Raises NotFound if missing."""
    candidate = get(candidate_id)
    for name, value in _clean_fields(patch).items():
        setattr(candidate, name, value)
    _check_required(candidate)
    candidate.save()
    logger.info(f"Candidate updated: {candidate.id} ({', '.join(sorted(patch)) or 'no changes'})")
    return candidate


@translate_backend_errors
def remove(candidate_id):
    """
    Delete a candidate. Returns False when it did not exist.

    Votes already cast for the candidate are kept; cycles that still list
    the id simply no longer resolve it on their ballots.
    """
    try:
        candidate = get(candidate_id)
    except NotFound:
        return False
    candidate.delete()
    logger.info(f"Candidate removed: {candidate.name} ({candidate_id})")
    return True


def set_published(candidate_id, published=True):
    return update(candidate_id, published=published)


@translate_backend_errors
def list_candidates(include_unpublished=False):
    """Candidates newest first; only published ones unless asked otherwise."""
    candidates = Candidate.objects.order_by('-created_at', 'id')
    if not include_unpublished:
        candidates = candidates.filter(published=True)
    return list(candidates)


def group_by_position(candidates):
    """Group candidates following ELECTIONS_POSITIONS (unknown positions last)."""
    return utils.group_by_position(candidates, settings.ELECTIONS_POSITIONS)
