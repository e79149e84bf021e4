"""
Django Forms for the Campus Vote API
====================================

Boundary validation for:
- Student registration (name, email, password confirmation, course,
  fixed-length student id)
- Login and vote submission payloads
- Candidate editing in the admin site

Forms only check shape; the services in ``elections.accounts``,
``elections.candidates`` and ``elections.ballots`` enforce the rules.
"""

from django import forms  # pyright: ignore[reportMissingModuleSource]
from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.contrib.auth.password_validation import validate_password  # pyright: ignore[reportMissingModuleSource]
from django.core.exceptions import ValidationError  # pyright: ignore[reportMissingModuleSource]
from django.utils.translation import gettext_lazy as _  # pyright: ignore[reportMissingModuleSource]

from .accounts import validate_student_id
from .models import Candidate


class RegistrationForm(forms.Form):
    """
    Sign-up payload.

    Validates:
    - Display name (required)
    - Email format
    - Password strength and confirmation match
    - Course is one of ELECTIONS_COURSES
    - Student id has exactly ELECTIONS_STUDENT_ID_LENGTH digits
    """

    display_name = forms.CharField(max_length=150, label=_('Full Name'))
    email = forms.EmailField(label=_('Email'))
    password = forms.CharField(widget=forms.PasswordInput, label=_('Password'))
    confirm_password = forms.CharField(widget=forms.PasswordInput, label=_('Confirm Password'))
    course = forms.ChoiceField(label=_('Course'))
    student_id = forms.CharField(max_length=32, label=_('Student ID'))

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['course'].choices = [(c, c) for c in settings.ELECTIONS_COURSES]

    def clean_display_name(self):
        display_name = self.cleaned_data.get('display_name', '').strip()
        if not display_name:
            raise ValidationError('Please enter your full name.')
        return display_name

    def clean_email(self):
        return self.cleaned_data.get('email', '').strip().lower()

    def clean_student_id(self):
        student_id = self.cleaned_data.get('student_id', '').strip()
        message = validate_student_id(student_id)
        if message:
            raise ValidationError(message)
        return student_id

    def clean(self):
        cleaned_data = super().clean()
        password = cleaned_data.get('password')
        confirm = cleaned_data.get('confirm_password')

        if password and confirm and password != confirm:
            self.add_error('confirm_password', 'Passwords do not match.')
        elif password:
            try:
                validate_password(password)
            except ValidationError as e:
                self.add_error('password', e)

        return cleaned_data


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput)


class VoteForm(forms.Form):
    """One vote: a candidate for a position."""

    candidate_id = forms.UUIDField()
    position = forms.CharField(max_length=50)


class ApprovalForm(forms.Form):
    email = forms.EmailField()


class CandidateForm(forms.ModelForm):
    """
    Candidate editor used by the admin site.

    Name and position are trimmed; position must be non-blank and the
    course, when given, one of ELECTIONS_COURSES.
    """

    class Meta:
        model = Candidate
        fields = ['name', 'position', 'party', 'course', 'slogan', 'published']

    def clean_name(self):
        name = self.cleaned_data.get('name', '').strip()
        if not name:
            raise ValidationError('Candidate name is required.')
        return name

    def clean_position(self):
        position = self.cleaned_data.get('position', '').strip()
        if not position:
            raise ValidationError('Position is required.')
        return position

    def clean_course(self):
        course = self.cleaned_data.get('course', '').strip()
        if course and course not in settings.ELECTIONS_COURSES:
            raise ValidationError(f'Unknown course: {course}.')
        return course
