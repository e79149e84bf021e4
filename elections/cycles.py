"""
Voting Cycle Manager
====================

Single writer of cycle status. Every transition goes through this module:

    draft --make_live--> live --end / superseded--> ended

Rules:
- At most one cycle is live; promoting a cycle ends the current one in the
  same transaction (backed by the ``single_live_voting_cycle`` constraint)
- A cycle needs at least one selected candidate before it can go live
- Candidate selection can only change while the cycle is a draft
- A live cycle cannot be deleted; it has to be ended first

Transitions emit ``cycle_went_live`` / ``cycle_ended`` after commit.
"""

import logging
import uuid

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.core.exceptions import ValidationError  # pyright: ignore[reportMissingModuleSource]
from django.db import IntegrityError, transaction  # pyright: ignore[reportMissingModuleSource]
from django.utils import timezone  # pyright: ignore[reportMissingModuleSource]

from . import utils
from .exceptions import (
    BackendUnavailable, CycleIsLive, CycleNotDraft, CycleNotLive, NoCandidatesSelected,
    NotFound, ValidationFailed, translate_backend_errors,
)
from .models import Candidate, VotingCycle
from .signals import cycle_ended, cycle_went_live, send_on_commit

logger = logging.getLogger(__name__)

Status = VotingCycle.Status


def _lookup(queryset, cycle_id):
    try:
        return queryset.get(id=cycle_id)
    except (VotingCycle.DoesNotExist, ValidationError, ValueError) as e:
        raise NotFound(f'Voting cycle not found: {cycle_id}') from e


@translate_backend_errors
def create(name):
    """Create a draft cycle with an empty selection. Returns its id."""
    name = (name or '').strip()
    if not name:
        raise ValidationFailed(errors={'name': ['Cycle name is required.']})

    cycle = VotingCycle.objects.create(name=name)
    logger.info(f"Voting cycle created: {cycle.name} ({cycle.id})")
    return cycle.id


@translate_backend_errors
def get(cycle_id):
    return _lookup(VotingCycle.objects.all(), cycle_id)


@translate_backend_errors
@transaction.atomic
def set_selected_candidates(cycle_id, mapping):
    """
    Replace a draft cycle's {position: [candidate_id, ...]} selection.

    Raises:
        CycleNotDraft: the cycle is live or ended
        ValidationFailed: the mapping is malformed or an id does not refer
            to an existing candidate
    """
    cycle = _lookup(VotingCycle.objects.select_for_update(), cycle_id)
    if cycle.status != Status.DRAFT:
        logger.warning(f"Selection change rejected, cycle {cycle.id} is {cycle.status}")
        raise CycleNotDraft('Candidates can only be selected while the cycle is a draft.')

    if mapping is not None and not isinstance(mapping, dict):
        raise ValidationFailed(
            errors={'selected_candidates': ['Selection must map positions to lists of candidate ids.']}
        )
    malformed = [p for p, ids in (mapping or {}).items() if not isinstance(ids, (list, tuple))]
    if malformed:
        raise ValidationFailed(
            errors={'selected_candidates': [f'Candidates for {p} must be a list.' for p in malformed]}
        )

    unknown = []
    selection = {}
    for position, candidate_ids in utils.normalize_selection(mapping).items():
        canonical = []
        for candidate_id in candidate_ids:
            try:
                canonical.append(str(uuid.UUID(candidate_id)))
            except ValueError:
                unknown.append(candidate_id)
        selection[position] = list(dict.fromkeys(canonical))

    wanted = {c for ids in selection.values() for c in ids}
    existing = {
        str(pk) for pk in Candidate.objects.filter(id__in=wanted).values_list('id', flat=True)
    }
    unknown.extend(sorted(wanted - existing))
    if unknown:
        raise ValidationFailed(
            errors={'selected_candidates': [f'Unknown candidate: {c}' for c in unknown]}
        )

    cycle.selected_candidates = {p: ids for p, ids in selection.items() if ids}
    cycle.save(update_fields=['selected_candidates', 'updated_at'])
    logger.info(f"Voting cycle {cycle.id} selection set: {cycle.selected_count()} candidate(s) "
                f"across {len(cycle.selected_candidates)} position(s)")
    return cycle


def _promote(cycle_id):
    with transaction.atomic():
        cycle = _lookup(VotingCycle.objects.select_for_update(), cycle_id)

        if cycle.status == Status.LIVE:
            return cycle
        if cycle.status == Status.ENDED:
            raise CycleNotDraft('An ended voting cycle cannot be made live again.')
        if not cycle.has_selection:
            logger.warning(f"Make live rejected, cycle {cycle.id} has no candidates selected")
            raise NoCandidatesSelected()

        now = timezone.now()
        superseded = list(
            VotingCycle.objects.select_for_update()
            .filter(status=Status.LIVE)
            .exclude(id=cycle.id)
        )
        for other in superseded:
            other.status = Status.ENDED
            other.ended_at = now
            other.save(update_fields=['status', 'ended_at', 'updated_at'])

        cycle.status = Status.LIVE
        cycle.started_at = now
        cycle.ended_at = None
        cycle.save(update_fields=['status', 'started_at', 'ended_at', 'updated_at'])

        for other in superseded:
            send_on_commit(cycle_ended, VotingCycle, cycle=other, superseded_by=cycle)
        send_on_commit(cycle_went_live, VotingCycle, cycle=cycle, superseded=superseded)
        return cycle


@translate_backend_errors
def make_live(cycle_id):
    """
    Promote a draft cycle to live, ending whichever cycle was live.

    Making the live cycle live again is a no-op. A concurrent promotion that
    trips the single-live constraint is retried so that exactly one cycle
    ends up live.

    Raises:
        NoCandidatesSelected: the selection is empty (status unchanged)
        CycleNotDraft: the cycle has already ended
        BackendUnavailable: retries were exhausted
    """
    attempts = max(1, settings.ELECTIONS_MAKE_LIVE_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            return _promote(cycle_id)
        except IntegrityError as e:
            if attempt == attempts:
                logger.error(f"Make live for {cycle_id} failed after {attempts} attempt(s): {str(e)}")
                raise BackendUnavailable() from e
            logger.warning(f"Concurrent promotion detected for {cycle_id}, retrying ({attempt}/{attempts})")


@translate_backend_errors
@transaction.atomic
def end(cycle_id):
    """End the live cycle. Raises CycleNotLive for draft or ended cycles."""
    cycle = _lookup(VotingCycle.objects.select_for_update(), cycle_id)
    if cycle.status != Status.LIVE:
        logger.warning(f"End rejected, cycle {cycle.id} is {cycle.status}")
        raise CycleNotLive()

    cycle.status = Status.ENDED
    cycle.ended_at = timezone.now()
    cycle.save(update_fields=['status', 'ended_at', 'updated_at'])
    send_on_commit(cycle_ended, VotingCycle, cycle=cycle, superseded_by=None)
    return cycle


@translate_backend_errors
@transaction.atomic
def delete(cycle_id):
    """Delete a draft or ended cycle. Votes cast in it are kept."""
    cycle = _lookup(VotingCycle.objects.select_for_update(), cycle_id)
    if cycle.status == Status.LIVE:
        logger.warning(f"Delete rejected, cycle {cycle.id} is live")
        raise CycleIsLive()

    cycle.delete()
    logger.info(f"Voting cycle deleted: {cycle.name} ({cycle_id})")


@translate_backend_errors
def get_active():
    """The live cycle, or None."""
    return VotingCycle.objects.filter(status=Status.LIVE).first()


@translate_backend_errors
def list_cycles():
    return list(VotingCycle.objects.order_by('-created_at', 'id'))


@translate_backend_errors
def most_recent_ended():
    """The ended cycle with the latest ``ended_at``, or None."""
    return (
        VotingCycle.objects.filter(status=Status.ENDED, ended_at__isnull=False)
        .order_by('-ended_at', '-created_at')
        .first()
    )


def results_cycle():
    """Cycle whose results should be shown: the live one, else the last ended."""
    return get_active() or most_recent_ended()
