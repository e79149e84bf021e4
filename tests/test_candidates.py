"""Tests for the candidate registry."""

import uuid

import pytest

from elections import candidates
from elections.exceptions import NotFound, ValidationFailed
from elections.models import Candidate

pytestmark = pytest.mark.django_db


class TestAdd:
    def test_defaults(self):
        candidate = candidates.get(candidates.add('  Alice Reyes ', ' President '))
        assert candidate.name == 'Alice Reyes'
        assert candidate.position == 'President'
        assert candidate.published is False
        assert candidate.vote_count == 0

    def test_optional_fields(self):
        candidate_id = candidates.add(
            'Carla Cruz', 'Class Representative',
            party='Blue', course='BSIT', slogan='Together', published=True,
        )
        candidate = candidates.get(candidate_id)
        assert (candidate.party, candidate.course, candidate.slogan) == ('Blue', 'BSIT', 'Together')
        assert candidate.published is True

    @pytest.mark.parametrize('name,position', [('', 'President'), ('   ', 'President'), ('Alice', ''), (None, None)])
    def test_blank_name_or_position(self, name, position):
        with pytest.raises(ValidationFailed):
            candidates.add(name, position)
        assert Candidate.objects.count() == 0

    def test_unknown_field(self):
        with pytest.raises(ValidationFailed) as exc_info:
            candidates.add('Alice', 'President', votes=10)
        assert 'votes' in exc_info.value.errors

    def test_name_too_long(self):
        with pytest.raises(ValidationFailed):
            candidates.add('x' * 101, 'President')


class TestUpdateAndRemove:
    def test_update(self, make_candidate):
        candidate = make_candidate('Alice')
        updated = candidates.update(candidate.id, slogan=' Vote for change ', published=False)
        assert updated.slogan == 'Vote for change'
        assert candidates.get(candidate.id).published is False

    def test_update_revalidates(self, make_candidate):
        candidate = make_candidate('Alice')
        with pytest.raises(ValidationFailed):
            candidates.update(candidate.id, name='  ')
        assert candidates.get(candidate.id).name == 'Alice'

    def test_update_missing(self):
        with pytest.raises(NotFound):
            candidates.update(uuid.uuid4(), name='Nobody')

    def test_get_with_malformed_id(self):
        with pytest.raises(NotFound):
            candidates.get('not-a-uuid')

    def test_remove(self, make_candidate):
        candidate = make_candidate('Alice')
        assert candidates.remove(candidate.id) is True
        assert candidates.remove(candidate.id) is False
        with pytest.raises(NotFound):
            candidates.get(candidate.id)

    def test_set_published(self, make_candidate):
        candidate = make_candidate('Alice', published=False)
        candidates.set_published(candidate.id, True)
        assert candidates.get(candidate.id).published is True


class TestListing:
    def test_newest_first_and_published_only(self, make_candidate):
        make_candidate('First')
        make_candidate('Hidden', published=False)
        make_candidate('Third')

        assert [c.name for c in candidates.list_candidates()] == ['Third', 'First']
        assert [c.name for c in candidates.list_candidates(include_unpublished=True)] == [
            'Third', 'Hidden', 'First',
        ]

    def test_group_by_position_follows_hierarchy(self, make_candidate):
        make_candidate('Rep', 'Class Representative')
        make_candidate('Sec', 'Secretary')
        make_candidate('Mascot', 'Mascot')
        make_candidate('Pres', 'President')

        grouped = candidates.group_by_position(candidates.list_candidates())
        assert [position for position, _ in grouped] == [
            'President', 'Secretary', 'Class Representative', 'Mascot',
        ]
