"""Tests for boundary validation forms."""

import pytest

from elections.forms import CandidateForm, RegistrationForm, VoteForm

VALID = {
    'display_name': 'Juan Dela Cruz',
    'email': 'Juan@School.edu',
    'password': 'Str0ng-ballot!',
    'confirm_password': 'Str0ng-ballot!',
    'course': 'BSIT',
    'student_id': '2021001234',
}


class TestRegistrationForm:
    def test_valid(self):
        form = RegistrationForm(VALID)
        assert form.is_valid(), form.errors
        assert form.cleaned_data['email'] == 'juan@school.edu'

    def test_passwords_must_match(self):
        form = RegistrationForm({**VALID, 'confirm_password': 'Different-pass1'})
        assert not form.is_valid()
        assert 'confirm_password' in form.errors

    def test_weak_password(self):
        form = RegistrationForm({**VALID, 'password': '123456', 'confirm_password': '123456'})
        assert not form.is_valid()
        assert 'password' in form.errors

    @pytest.mark.parametrize('student_id', ['12345', '20210012345', '20210O1234'])
    def test_student_id_length_and_digits(self, student_id):
        form = RegistrationForm({**VALID, 'student_id': student_id})
        assert not form.is_valid()
        assert 'student_id' in form.errors

    def test_unknown_course(self):
        form = RegistrationForm({**VALID, 'course': 'BSBA'})
        assert not form.is_valid()
        assert 'course' in form.errors

    def test_courses_follow_settings(self, settings):
        settings.ELECTIONS_COURSES = ['BSBA']
        assert RegistrationForm({**VALID, 'course': 'BSBA'}).is_valid()

    def test_blank_name(self):
        form = RegistrationForm({**VALID, 'display_name': '   '})
        assert not form.is_valid()
        assert 'display_name' in form.errors


class TestVoteForm:
    def test_requires_uuid(self):
        form = VoteForm({'candidate_id': 'abc', 'position': 'President'})
        assert not form.is_valid()
        assert 'candidate_id' in form.errors


@pytest.mark.django_db
class TestCandidateForm:
    def test_trims_fields(self):
        form = CandidateForm({'name': ' Alice ', 'position': ' President ', 'course': ''})
        assert form.is_valid(), form.errors
        candidate = form.save()
        assert (candidate.name, candidate.position) == ('Alice', 'President')

    def test_unknown_course(self):
        form = CandidateForm({'name': 'Alice', 'position': 'Class Representative', 'course': 'XYZ'})
        assert not form.is_valid()
        assert 'course' in form.errors
