"""
Ranking & Ballot Helper Functions
==================================

Pure functions shared by the candidate registry, the cycle manager and the
tally engine:
- Ordering positions by the configured hierarchy
- Grouping candidates by position
- Normalizing a cycle's candidate selection
- Course eligibility for course-scoped positions
- Ranking candidates within a position by vote count

Ranking rules:
- Higher vote count ranks first
- Equal counts are ordered by candidate creation time, then id
- Equal counts share the same rank (competition ranking: 1, 2, 2, 4)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)


def position_sort_key(position: str, hierarchy: Sequence[str]) -> Tuple[int, int, str]:
    """
    Sort key placing known positions in hierarchy order.

    Positions missing from the hierarchy sort after every known one,
    alphabetically among themselves.
    """
    try:
        return (0, list(hierarchy).index(position), '')
    except ValueError:
        return (1, 0, position)


def group_by_position(candidates: Iterable[Any], hierarchy: Sequence[str]) -> List[Tuple[str, List[Any]]]:
    """
    Group candidates by their ``position`` attribute.

    Args:
        candidates: Objects with a ``position`` attribute, in display order
        hierarchy: Ordered list of known positions

    Returns:
        List of (position, [candidates]) ordered by the hierarchy. Candidates
        keep their incoming order within each group.
    """
    grouped: Dict[str, List[Any]] = {}
    for candidate in candidates:
        grouped.setdefault(candidate.position, []).append(candidate)

    ordered = sorted(grouped.keys(), key=lambda p: position_sort_key(p, hierarchy))
    return [(position, grouped[position]) for position in ordered]


def normalize_selection(mapping: Optional[Dict[str, Iterable[Any]]]) -> Dict[str, List[str]]:
    """
    Clean a {position: [candidate_id, ...]} mapping.

    - Position names are trimmed; blank positions are dropped
    - Ids are stringified and de-duplicated, keeping first occurrence
    - Positions left without candidates are dropped
    """
    cleaned: Dict[str, List[str]] = {}
    for position, candidate_ids in (mapping or {}).items():
        position = (position or '').strip()
        if not position:
            continue
        seen = []
        for candidate_id in candidate_ids or []:
            candidate_id = str(candidate_id)
            if candidate_id not in seen:
                seen.append(candidate_id)
        if seen:
            cleaned.setdefault(position, [])
            cleaned[position].extend(c for c in seen if c not in cleaned[position])
    return cleaned


def is_eligible(candidate: Any, voter_course: Optional[str], scoped_position: str) -> bool:
    """
    Check whether a voter of ``voter_course`` may see ``candidate``.

    Only candidates of the course-scoped position that carry a course are
    restricted; everything else is shown to every voter.
    """
    if candidate.position == scoped_position and candidate.course:
        return candidate.course == (voter_course or '')
    return True


def percentage(count: int, total: int) -> float:
    """Share of ``total`` as a percentage rounded to one decimal."""
    if total <= 0:
        return 0.0
    return round(100 * count / total, 1)


@dataclass
class CandidateTally:
    """A candidate's standing within one position.

    Attributes:
        candidate_id: Candidate id as string
        name: Candidate name
        party: Party or section ('' when none)
        count: Votes received
        percentage: Share of the position's votes
        rank: 1-indexed placement (tied candidates share the rank)
        tied: Whether another candidate has the same count
    """
    candidate_id: str
    name: str
    party: str
    count: int
    percentage: float = 0.0
    rank: int = 0
    tied: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'candidate_id': self.candidate_id,
            'name': self.name,
            'party': self.party,
            'count': self.count,
            'percentage': self.percentage,
            'rank': self.rank,
            'tied': self.tied,
        }


@dataclass
class PositionResults:
    """Ranked tallies for one position."""
    position: str
    total_votes: int
    tallies: List[CandidateTally] = field(default_factory=list)

    @property
    def leaders(self) -> List[CandidateTally]:
        """Candidates holding rank 1 (empty when nobody received votes)."""
        if self.total_votes == 0:
            return []
        return [t for t in self.tallies if t.rank == 1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'position': self.position,
            'total_votes': self.total_votes,
            'leaders': [t.candidate_id for t in self.leaders],
            'candidates': [t.to_dict() for t in self.tallies],
        }


def rank_position(position: str, candidates: Sequence[Any], counts: Dict[str, int]) -> PositionResults:
    """
    Rank the candidates of one position by vote count.

    Args:
        position: Position name
        candidates: Candidate objects (``id``, ``name``, ``party``, ``created_at``)
        counts: Mapping of candidate id (string) -> vote count

    Returns:
        PositionResults with tallies ordered best first
    """
    ordered = sorted(
        candidates,
        key=lambda c: (-counts.get(str(c.id), 0), c.created_at, str(c.id)),
    )
    total = sum(counts.get(str(c.id), 0) for c in ordered)

    tallies: List[CandidateTally] = []
    rank = 0
    last_count = None
    for index, candidate in enumerate(ordered, start=1):
        count = counts.get(str(candidate.id), 0)
        if count != last_count:
            rank = index
            last_count = count
        tallies.append(CandidateTally(
            candidate_id=str(candidate.id),
            name=candidate.name,
            party=candidate.party or '',
            count=count,
            percentage=percentage(count, total),
            rank=rank,
        ))

    # Flag every tally whose count is shared with another candidate
    by_count: Dict[int, int] = {}
    for tally in tallies:
        by_count[tally.count] = by_count.get(tally.count, 0) + 1
    for tally in tallies:
        tally.tied = by_count[tally.count] > 1

    if any(t.tied and t.rank == 1 for t in tallies) and total > 0:
        logger.info(f"Tie for first place in {position}: "
                    f"{[t.name for t in tallies if t.rank == 1]}")

    return PositionResults(position=position, total_votes=total, tallies=tallies)
