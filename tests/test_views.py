"""Tests for the JSON API."""

import json

import pytest
from django.urls import reverse

from elections import accounts, ballots, cycles
from elections.models import Vote
from tests.conftest import PASSWORD

pytestmark = pytest.mark.django_db


def post_json(client, name, data):
    return client.post(reverse(f'elections:{name}'), data=json.dumps(data), content_type='application/json')


@pytest.fixture
def voter_client(client, voter):
    client.force_login(voter)
    return client


@pytest.fixture
def staff_client(client, admin_account):
    client.force_login(admin_account)
    return client


class TestAuthEndpoints:
    def test_register(self, client):
        response = post_json(client, 'register', {
            'display_name': 'New Student',
            'email': 'new@test.com',
            'password': PASSWORD,
            'confirm_password': PASSWORD,
            'course': 'BSIT',
            'student_id': '2021001234',
        })
        assert response.status_code == 201
        assert response.json()['approved'] is False
        assert accounts.find_by_email('new@test.com').approved is False

    def test_register_validation_envelope(self, client):
        response = post_json(client, 'register', {'email': 'bad'})
        assert response.status_code == 400
        error = response.json()['error']
        assert error['code'] == 'validation-failed'
        assert error['retryable'] is False
        assert 'email' in error['errors']
        assert 'student_id' in error['errors']

    def test_register_duplicate(self, client, voter):
        response = post_json(client, 'register', {
            'display_name': 'Copy',
            'email': 'VOTER@test.com',
            'password': PASSWORD,
            'confirm_password': PASSWORD,
            'course': 'BSIT',
            'student_id': '2021001234',
        })
        assert response.status_code == 409
        assert response.json()['error']['code'] == 'duplicate-email'

    def test_login_and_session(self, client, voter):
        response = post_json(client, 'login', {'email': 'voter@test.com', 'password': PASSWORD})
        assert response.status_code == 200
        assert response.json()['account']['email'] == 'voter@test.com'

        session = client.get(reverse('elections:session')).json()
        assert session['authenticated'] is True
        assert session['csrf_token']

        client.post(reverse('elections:logout'))
        assert client.get(reverse('elections:session')).json()['authenticated'] is False

    def test_login_pending_account(self, client, make_account):
        make_account(email='pending@test.com', approved=False)
        response = post_json(client, 'login', {'email': 'pending@test.com', 'password': PASSWORD})
        assert response.status_code == 403
        assert response.json()['error']['code'] == 'not-approved'

    def test_login_bad_credentials(self, client, voter):
        response = post_json(client, 'login', {'email': 'voter@test.com', 'password': 'nope'})
        assert response.status_code == 401
        assert response.json()['error']['code'] == 'unauthenticated'

    def test_invalid_json(self, client):
        response = client.post(reverse('elections:login'), data='{oops', content_type='application/json')
        assert response.status_code == 400

    def test_method_not_allowed(self, client):
        assert client.get(reverse('elections:login')).status_code == 405


class TestVotingEndpoints:
    def test_active_cycle_polling(self, client, live_cycle, settings):
        settings.ELECTIONS_ACTIVE_CYCLE_POLL_SECONDS = 10
        data = client.get(reverse('elections:active_cycle')).json()
        assert data['cycle']['id'] == str(live_cycle.id)
        assert data['cycle']['status'] == 'live'
        assert data['poll_interval'] == 10

    def test_no_active_cycle(self, client, db):
        assert client.get(reverse('elections:active_cycle')).json()['cycle'] is None

    def test_ballot(self, voter_client, live_cycle, presidents):
        data = voter_client.get(reverse('elections:ballot')).json()
        assert data['positions'][0]['position'] == 'President'
        assert data['positions'][0]['voted'] is False
        assert [c['name'] for c in data['positions'][0]['candidates']] == ['Alice Reyes', 'Ben Santos']

    def test_ballot_requires_login(self, client, live_cycle):
        assert client.get(reverse('elections:ballot')).status_code == 401

    def test_cast_vote_then_duplicate(self, voter_client, live_cycle, presidents):
        c1, c2 = presidents
        response = post_json(voter_client, 'cast_vote', {'candidate_id': str(c1.id), 'position': 'President'})
        assert response.status_code == 201

        response = post_json(voter_client, 'cast_vote', {'candidate_id': str(c2.id), 'position': 'President'})
        assert response.status_code == 409
        assert response.json()['error']['code'] == 'already-voted'
        assert Vote.objects.count() == 1

        status = voter_client.get(reverse('elections:vote_status')).json()
        assert status == {'has_voted': True, 'voted_positions': ['President']}

    def test_cast_vote_without_cycle(self, voter_client, presidents):
        response = post_json(voter_client, 'cast_vote', {'candidate_id': str(presidents[0].id), 'position': 'President'})
        assert response.status_code == 409
        assert response.json()['error']['code'] == 'no-active-cycle'

    def test_cast_vote_anonymous(self, client, live_cycle, presidents):
        response = post_json(client, 'cast_vote', {'candidate_id': str(presidents[0].id), 'position': 'President'})
        assert response.status_code == 401

    def test_results(self, voter_client, live_cycle, presidents, voter):
        ballots.cast_vote(presidents[0].id, voter, 'President')
        data = voter_client.get(reverse('elections:results')).json()
        assert data['total_votes'] == 1
        assert data['positions'][0]['candidates'][0]['candidate_id'] == str(presidents[0].id)

    def test_results_for_cycle(self, voter_client, live_cycle):
        url = reverse('elections:results') + f'?cycle={live_cycle.id}'
        assert voter_client.get(url).json()['cycle']['name'] == 'Fall Election'

        response = voter_client.get(reverse('elections:results') + '?cycle=missing')
        assert response.status_code == 404


class TestAdminEndpoints:
    def test_pending_requires_admin(self, voter_client):
        response = voter_client.get(reverse('elections:pending_accounts'))
        assert response.status_code == 403
        assert response.json()['error']['code'] == 'permission-denied'

    def test_pending_and_approve(self, staff_client, make_account):
        make_account(email='new@test.com', approved=False)
        pending = staff_client.get(reverse('elections:pending_accounts')).json()['accounts']
        assert [a['email'] for a in pending] == ['new@test.com']

        response = post_json(staff_client, 'approve_account', {'email': 'NEW@test.com'})
        assert response.status_code == 200
        assert staff_client.get(reverse('elections:pending_accounts')).json()['accounts'] == []
        assert staff_client.get(reverse('elections:account_stats')).json() == {
            'total': 1, 'approved': 1, 'pending': 0,
        }

    def test_approve_unknown(self, staff_client):
        response = post_json(staff_client, 'approve_account', {'email': 'ghost@test.com'})
        assert response.status_code == 404

    def test_disapprove(self, staff_client, make_account):
        make_account(email='reject@test.com', approved=False)
        response = post_json(staff_client, 'disapprove_account', {'email': 'reject@test.com'})
        assert response.status_code == 200
        assert accounts.find_by_email('reject@test.com') is None


class TestAdminSite:
    def test_make_live_action(self, staff_client, draft_cycle):
        response = staff_client.post(
            reverse('admin:elections_votingcycle_changelist'),
            {'action': 'make_live', '_selected_action': [str(draft_cycle.id)]},
        )
        assert response.status_code == 302
        assert cycles.get_active() == draft_cycle

    def test_end_action(self, staff_client, live_cycle):
        staff_client.post(
            reverse('admin:elections_votingcycle_changelist'),
            {'action': 'end_cycles', '_selected_action': [str(live_cycle.id)]},
        )
        assert cycles.get_active() is None
