"""Tests for registration, approval and authentication."""

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from elections import accounts
from elections.exceptions import (
    DuplicateEmail, NotApproved, PermissionDenied, Unauthenticated, ValidationFailed,
)
from elections.models import Account
from tests.conftest import PASSWORD

pytestmark = pytest.mark.django_db

PROFILE = {'display_name': 'New Student', 'course': 'BSIT', 'student_id': '2021001234'}


class TestRegister:
    def test_new_account_is_pending(self):
        """Registration with "new@test.com" leaves the account unapproved and pending."""
        account_id = accounts.register('new@test.com', PASSWORD, PROFILE)
        account = Account.objects.get(id=account_id)
        assert account.approved is False
        assert account.display_name == 'New Student'
        assert account.check_password(PASSWORD)
        assert [a.email for a in accounts.list_pending()] == ['new@test.com']

    def test_email_is_normalized(self):
        accounts.register('  Mixed.Case@Test.COM ', PASSWORD, PROFILE)
        assert accounts.find_by_email('mixed.case@test.com') is not None
        assert accounts.find_by_email('MIXED.CASE@TEST.COM') is not None

    def test_duplicate_email_is_case_insensitive(self):
        accounts.register('dup@test.com', PASSWORD, PROFILE)
        with pytest.raises(DuplicateEmail):
            accounts.register('DUP@test.com', PASSWORD, PROFILE)
        assert Account.objects.count() == 1

    def test_malformed_input(self):
        with pytest.raises(ValidationFailed) as exc_info:
            accounts.register('not-an-email', '', {'student_id': '12ab', 'course': 'BSBA'})
        assert set(exc_info.value.errors) == {'email', 'password', 'student_id', 'course'}
        assert Account.objects.count() == 0

    def test_student_id_must_have_exact_length(self):
        with pytest.raises(ValidationFailed) as exc_info:
            accounts.register('short@test.com', PASSWORD, {**PROFILE, 'student_id': '12345'})
        assert 'student_id' in exc_info.value.errors

    def test_profile_is_optional(self):
        account_id = accounts.register('bare@test.com', PASSWORD)
        assert Account.objects.get(id=account_id).course == ''


class TestApproval:
    def test_approve_removes_from_pending(self):
        accounts.register('new@test.com', PASSWORD, PROFILE)
        assert accounts.approve('new@test.com') is True
        assert accounts.find_by_email('new@test.com').approved is True
        assert accounts.list_pending() == []

    def test_approve_unknown_email(self):
        assert accounts.approve('ghost@test.com') is False

    def test_disapprove_deletes_account(self):
        accounts.register('reject@test.com', PASSWORD, PROFILE)
        assert accounts.disapprove('Reject@test.com') is True
        assert accounts.find_by_email('reject@test.com') is None
        assert accounts.disapprove('reject@test.com') is False

    def test_disapprove_never_removes_admins(self, admin_account):
        assert accounts.disapprove(admin_account.email) is False
        assert accounts.find_by_email(admin_account.email) is not None

    def test_pending_excludes_admins_and_is_newest_first(self, make_account, admin_account):
        older = make_account(email='older@test.com', approved=False)
        newer = make_account(email='newer@test.com', approved=False)
        make_account(email='done@test.com')
        Account.objects.filter(id=older.id).update(date_joined=newer.date_joined.replace(year=2020))
        Account.objects.filter(id=admin_account.id).update(approved=False)

        assert [a.email for a in accounts.list_pending()] == ['newer@test.com', 'older@test.com']

    def test_admins_are_always_approved(self):
        account = Account(email='boss@test.com', is_admin=True, approved=False)
        account.save()
        assert account.approved is True

    def test_list_accounts_and_stats(self, make_account, admin_account):
        make_account(email='a@test.com')
        make_account(email='b@test.com', approved=False)
        make_account(email='c@test.com', approved=False)

        assert len(accounts.list_accounts()) == 3
        assert [a.email for a in accounts.list_accounts('approved')] == ['a@test.com']
        assert len(accounts.list_accounts('pending')) == 2
        assert accounts.account_stats() == {'total': 3, 'approved': 1, 'pending': 2}

        with pytest.raises(ValidationFailed):
            accounts.list_accounts('rejected')


class TestAuthenticate:
    def test_approved_account(self, voter):
        assert accounts.authenticate('VOTER@test.com', PASSWORD) == voter

    def test_wrong_password(self, voter):
        with pytest.raises(Unauthenticated):
            accounts.authenticate('voter@test.com', 'wrong-password')

    def test_unknown_email(self):
        with pytest.raises(Unauthenticated):
            accounts.authenticate('nobody@test.com', PASSWORD)

    def test_pending_account(self, make_account):
        make_account(email='pending@test.com', approved=False)
        with pytest.raises(NotApproved):
            accounts.authenticate('pending@test.com', PASSWORD)

    def test_require_approved(self, voter, make_account):
        from django.contrib.auth.models import AnonymousUser

        assert accounts.require_approved(voter) is voter
        with pytest.raises(Unauthenticated):
            accounts.require_approved(AnonymousUser())
        with pytest.raises(Unauthenticated):
            accounts.require_approved(None)
        with pytest.raises(NotApproved):
            accounts.require_approved(make_account(approved=False))

    def test_require_admin(self, voter, admin_account):
        assert accounts.require_admin(admin_account) is admin_account
        with pytest.raises(PermissionDenied):
            accounts.require_admin(voter)


class TestCreateAdmin:
    def test_creates_admin(self):
        account, created = accounts.create_admin('root@test.com', PASSWORD)
        assert created is True
        assert account.is_admin and account.is_staff and account.approved
        assert account.display_name == 'Admin User'

    def test_promotes_existing_account(self, make_account):
        make_account(email='promote@test.com', approved=False)
        account, created = accounts.create_admin('promote@test.com')
        assert created is False
        assert account.is_admin is True
        assert account.approved is True
        assert account.check_password(PASSWORD)

    def test_management_command(self):
        call_command('create_admin', 'cmd@test.com', password=PASSWORD)
        assert accounts.find_by_email('cmd@test.com').is_admin is True

        call_command('create_admin', 'cmd@test.com')
        assert Account.objects.filter(email='cmd@test.com').count() == 1

    def test_management_command_requires_password_for_new_admin(self, monkeypatch):
        monkeypatch.delenv('ADMIN_PASSWORD', raising=False)
        with pytest.raises(CommandError):
            call_command('create_admin', 'nopass@test.com')


class TestPasswordReset:
    def test_reset_with_valid_token(self, voter):
        token = accounts.issue_password_reset('voter@test.com')
        assert accounts.reset_password('voter@test.com', token, 'N3w-secret!') is True
        assert accounts.authenticate('voter@test.com', 'N3w-secret!') == voter

    def test_token_is_single_use(self, voter):
        token = accounts.issue_password_reset('voter@test.com')
        accounts.reset_password('voter@test.com', token, 'N3w-secret!')
        with pytest.raises(ValidationFailed):
            accounts.reset_password('voter@test.com', token, 'An0ther-secret!')

    def test_bad_token(self, voter):
        with pytest.raises(ValidationFailed):
            accounts.reset_password('voter@test.com', 'bogus-token', 'N3w-secret!')
        assert accounts.authenticate('voter@test.com', PASSWORD) == voter

    def test_unknown_email_gets_no_token(self):
        assert accounts.issue_password_reset('ghost@test.com') is None
