"""
Ballot & Tally Engine
=====================

Records votes against the live cycle and computes tallies and rankings.

Vote casting checks, in order:
1. The voter is an approved account
2. A cycle is live
3. The candidate exists, is published, is selected in the live cycle for
   the requested position and is eligible for the voter's course
4. The voter has not voted for this position in this cycle yet

The last check is backed by the ``one_vote_per_position_per_cycle``
constraint, so two concurrent submissions store exactly one vote.

Tallies are always computed from Vote rows; ``Candidate.vote_count`` is a
best-effort cache for list screens.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.core.exceptions import ValidationError  # pyright: ignore[reportMissingModuleSource]
from django.db import DatabaseError, IntegrityError, transaction  # pyright: ignore[reportMissingModuleSource]
from django.db.models import Count  # pyright: ignore[reportMissingModuleSource]

from . import candidates, cycles, utils
from .accounts import require_approved
from .exceptions import (
    AlreadyVoted, NoActiveCycle, ValidationFailed, translate_backend_errors,
)
from .models import Candidate, Vote, VotingCycle
from .signals import send_on_commit, vote_cast

logger = logging.getLogger(__name__)


@dataclass
class ElectionResults:
    """
    Ranked results of one cycle (or of every vote when no cycle exists).

    Attributes:
        cycle: The cycle the results belong to, None for unscoped tallies
        total_votes: Number of votes counted
        positions: Per-position rankings in hierarchy order
    """
    cycle: Optional[VotingCycle]
    total_votes: int
    positions: List[utils.PositionResults] = field(default_factory=list)

    def position(self, name: str) -> Optional[utils.PositionResults]:
        for result in self.positions:
            if result.position == name:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        cycle = None
        if self.cycle is not None:
            cycle = {
                'id': str(self.cycle.id),
                'name': self.cycle.name,
                'status': self.cycle.status,
                'started_at': self.cycle.started_at.isoformat() if self.cycle.started_at else None,
                'ended_at': self.cycle.ended_at.isoformat() if self.cycle.ended_at else None,
            }
        return {
            'cycle': cycle,
            'total_votes': self.total_votes,
            'positions': [p.to_dict() for p in self.positions],
        }


def _vote_exists(voter_id, position, cycle_id):
    return Vote.objects.filter(voter_id=voter_id, position=position, cycle_id=cycle_id).exists()


def _refresh_vote_count(candidate_id):
    """Recount the candidate's votes into the ``vote_count`` cache; failures are only logged."""
    try:
        with transaction.atomic():
            count = Vote.objects.filter(candidate_id=candidate_id).count()
            Candidate.objects.filter(id=candidate_id).update(vote_count=count)
    except DatabaseError as e:
        logger.warning(f"Vote count cache not updated for candidate {candidate_id}: {str(e)}")


@translate_backend_errors
def cast_vote(candidate_id, voter, position):
    """
    Record ``voter``'s vote for ``candidate_id`` in ``position``.

    Returns:
        UUID of the stored vote

    Raises:
        Unauthenticated / NotApproved: voter may not vote
        NoActiveCycle: no cycle is live
        NotFound: unknown candidate
        ValidationFailed: candidate not on this voter's ballot for the position
        AlreadyVoted: a vote for this position already exists in the cycle
    """
    require_approved(voter)

    cycle = cycles.get_active()
    if cycle is None:
        raise NoActiveCycle()

    candidate = candidates.get(candidate_id)
    position = (position or '').strip()

    if not candidate.published or not cycle.is_selected(candidate.id, position):
        logger.warning(f"Vote rejected: candidate {candidate.id} not on ballot for {position} "
                       f"in cycle {cycle.id}")
        raise ValidationFailed(
            'This candidate is not on the ballot for that position.',
            errors={'candidate_id': ['Candidate is not running for this position.']},
        )

    if not utils.is_eligible(candidate, voter.course, settings.ELECTIONS_COURSE_SCOPED_POSITION):
        logger.warning(f"Vote rejected: {voter.email} ({voter.course or 'no course'}) "
                       f"is not eligible for {candidate.id}")
        raise ValidationFailed(
            'You can only vote for the class representative of your course.',
            errors={'candidate_id': ['Candidate is restricted to another course.']},
        )

    if _vote_exists(voter.id, position, cycle.id):
        logger.warning(f"Duplicate vote blocked: {voter.email} already voted for {position} "
                       f"in cycle {cycle.id}")
        raise AlreadyVoted()

    try:
        with transaction.atomic():
            vote = Vote.objects.create(
                voter_id=voter.id,
                candidate_id=candidate.id,
                position=position,
                cycle_id=cycle.id,
            )
            send_on_commit(vote_cast, Vote, vote=vote, cycle=cycle)
    except IntegrityError as e:
        logger.warning(f"IntegrityError on vote (concurrent duplicate): {voter.email} / {position}")
        raise AlreadyVoted() from e

    _refresh_vote_count(candidate.id)
    logger.info(f"Vote recorded: {vote.id} | {position} | cycle {cycle.id}")
    return vote.id


@translate_backend_errors
def has_voted(voter):
    """Whether ``voter`` cast any vote in the live cycle (False without one)."""
    cycle = cycles.get_active()
    if cycle is None or not getattr(voter, 'is_authenticated', False):
        return False
    return Vote.objects.filter(voter_id=voter.id, cycle_id=cycle.id).exists()


@translate_backend_errors
def voted_positions(voter):
    """Positions ``voter`` already voted for in the live cycle."""
    cycle = cycles.get_active()
    if cycle is None or not getattr(voter, 'is_authenticated', False):
        return set()
    return set(
        Vote.objects.filter(voter_id=voter.id, cycle_id=cycle.id).values_list('position', flat=True)
    )


def _votes(cycle_id):
    votes = Vote.objects.all()
    if cycle_id is None:
        return votes
    try:
        return votes.filter(cycle_id=cycle_id)
    except ValidationError as e:
        raise ValidationFailed(errors={'cycle': [f'Invalid cycle id: {cycle_id}']}) from e


@translate_backend_errors
def get_vote_counts(cycle_id=None):
    """
    Count votes per candidate.

    Args:
        cycle_id: Restrict to one cycle; None counts every vote ever cast

    Returns:
        Dict mapping candidate id (string) -> vote count
    """
    rows = _votes(cycle_id).values('candidate_id').annotate(count=Count('id')).order_by()
    return {str(row['candidate_id']): row['count'] for row in rows}


@translate_backend_errors
def get_total_votes(cycle_id=None):
    return _votes(cycle_id).count()


@translate_backend_errors
def build_ballot(voter, cycle=None):
    """
    Positions and candidates ``voter`` can vote for.

    Only published candidates selected in the cycle are listed, and
    course-scoped candidates only for voters of their course.

    Returns:
        List of (position, [Candidate]) in hierarchy order
    """
    cycle = cycle or cycles.get_active()
    if cycle is None:
        return []

    by_id = {
        str(c.id): c
        for c in Candidate.objects.filter(id__in=cycle.candidate_ids(), published=True)
    }
    course = getattr(voter, 'course', '')
    scoped = settings.ELECTIONS_COURSE_SCOPED_POSITION

    ballot = []
    for position, candidate_ids in (cycle.selected_candidates or {}).items():
        entries = [
            by_id[c] for c in map(str, candidate_ids)
            if c in by_id and utils.is_eligible(by_id[c], course, scoped)
        ]
        if entries:
            ballot.append((position, entries))

    ballot.sort(key=lambda item: utils.position_sort_key(item[0], settings.ELECTIONS_POSITIONS))
    return ballot


@translate_backend_errors
def get_results(cycle=None):
    """
    Ranked results grouped by position.

    Args:
        cycle: VotingCycle or cycle id; defaults to the live cycle, else the
            most recently ended one. When no cycle exists at all, every vote
            is counted against the published candidates.

    Returns:
        ElectionResults
    """
    if cycle is not None and not isinstance(cycle, VotingCycle):
        cycle = cycles.get(cycle)
    if cycle is None:
        cycle = cycles.results_cycle()

    if cycle is None:
        counts = get_vote_counts()
        grouped = candidates.group_by_position(
            Candidate.objects.filter(published=True).order_by('created_at', 'id')
        )
        total = get_total_votes()
    else:
        counts = get_vote_counts(cycle.id)
        by_id = {
            str(c.id): c for c in Candidate.objects.filter(id__in=cycle.candidate_ids())
        }
        grouped = [
            (position, [by_id[c] for c in map(str, ids) if c in by_id])
            for position, ids in (cycle.selected_candidates or {}).items()
        ]
        grouped = [item for item in grouped if item[1]]
        grouped.sort(key=lambda item: utils.position_sort_key(item[0], settings.ELECTIONS_POSITIONS))
        total = get_total_votes(cycle.id)

    positions = [utils.rank_position(position, members, counts) for position, members in grouped]
    return ElectionResults(cycle=cycle, total_votes=total, positions=positions)
