"""Shared fixtures: accounts, candidates and voting cycles."""

from datetime import timedelta

import pytest
from django.utils import timezone

from elections import candidates, cycles
from elections.models import Account, Candidate

PASSWORD = 'Str0ng-ballot!'


@pytest.fixture
def make_account(db):
    """Factory for accounts. Approved BSIT students by default."""
    counter = {'n': 0}

    def _make(email=None, approved=True, course='BSIT', password=PASSWORD, **extra):
        counter['n'] += 1
        email = email or f"student{counter['n']}@test.com"
        extra.setdefault('display_name', f"Student {counter['n']}")
        extra.setdefault('student_id', f"{2021000000 + counter['n']}")
        return Account.objects.create_user(
            email=email, password=password, approved=approved, course=course, **extra
        )

    return _make


@pytest.fixture
def voter(make_account):
    return make_account(email='voter@test.com')


@pytest.fixture
def admin_account(db):
    return Account.objects.create_superuser(
        email='admin@test.com', password=PASSWORD, display_name='Admin User'
    )


@pytest.fixture
def make_candidate(db):
    """
    Factory for published candidates.

    Successive candidates get strictly increasing ``created_at`` values so
    ordering by creation time is deterministic.
    """
    base = timezone.now() - timedelta(days=1)
    counter = {'n': 0}

    def _make(name, position='President', published=True, **fields):
        candidate_id = candidates.add(name, position, published=published, **fields)
        counter['n'] += 1
        Candidate.objects.filter(id=candidate_id).update(
            created_at=base + timedelta(minutes=counter['n'])
        )
        return Candidate.objects.get(id=candidate_id)

    return _make


@pytest.fixture
def presidents(make_candidate):
    """C1 and C2 running for President."""
    return make_candidate('Alice Reyes'), make_candidate('Ben Santos')


@pytest.fixture
def draft_cycle(presidents):
    c1, c2 = presidents
    cycle_id = cycles.create('Fall Election')
    cycles.set_selected_candidates(cycle_id, {'President': [c1.id, c2.id]})
    return cycles.get(cycle_id)


@pytest.fixture
def live_cycle(draft_cycle):
    return cycles.make_live(draft_cycle.id)
