"""
Database models for the Campus Vote election backend
=====================================================

Defines the data structure for:
- Account: a student (or admin) identified by email, gated by admin approval
- Candidate: a person running for a position, visible once published
- VotingCycle: an election instance moving draft -> live -> ended
- Vote: one voter's choice for one position within one cycle

Integrity:
- At most one live cycle (partial unique constraint on status)
- One vote per (voter, position, cycle) (unique constraint)
- Votes reference voters, candidates and cycles by id so tallies survive deletions
"""

import uuid

from django.contrib.auth.models import AbstractUser, BaseUserManager  # pyright: ignore[reportMissingModuleSource]
from django.core.validators import RegexValidator  # pyright: ignore[reportMissingModuleSource]
from django.db import models  # pyright: ignore[reportMissingModuleSource]
from django.db.models import Q  # pyright: ignore[reportMissingModuleSource]


def normalize_email_address(email):
    """Trim and lower-case an email so lookups are case-insensitive."""
    return (email or '').strip().lower()


class AccountManager(BaseUserManager):
    """Manager for email-keyed accounts (no username field)."""

    def get_by_natural_key(self, email):
        return self.get(email=normalize_email_address(email))

    def create_user(self, email, password=None, **extra_fields):
        email = normalize_email_address(email)
        if not email:
            raise ValueError('An email address is required.')
        extra_fields.setdefault('approved', False)
        account = self.model(email=email, **extra_fields)
        account.set_password(password)
        account.save(using=self._db)
        return account

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_admin', True)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('approved', True)
        return self.create_user(email, password, **extra_fields)


class Account(AbstractUser):
    """
    A registered student or a seeded administrator.

    Attributes:
        id: UUID primary key (the voter id used by ballots)
        email: Unique login, stored lower-cased
        display_name: Name shown to admins
        course: Program code (scopes Class Representative candidates)
        student_id: Fixed-length numeric student identifier
        is_admin: Administrator flag (always approved)
        approved: Set by an admin before the account may vote
    """

    username = None
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(
        unique=True,
        help_text="Login email (stored lower-cased)"
    )
    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Full name of the student"
    )
    course = models.CharField(
        max_length=50,
        blank=True,
        help_text="Course/program code, e.g. BSIT"
    )
    student_id = models.CharField(
        max_length=32,
        blank=True,
        validators=[RegexValidator(r'^\d+$', 'Student ID must contain digits only.')],
        help_text="Numeric student identifier"
    )
    is_admin = models.BooleanField(
        default=False,
        help_text="Administrators manage candidates, cycles and approvals"
    )
    approved = models.BooleanField(
        default=False,
        help_text="Whether an admin has approved this account"
    )

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = AccountManager()

    class Meta:
        ordering = ['-date_joined']
        indexes = [
            models.Index(fields=['approved', '-date_joined'], name='account_pending_idx'),
        ]

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        """Normalize email; admins are always approved."""
        self.email = normalize_email_address(self.email)
        if self.is_admin:
            self.approved = True
        super().save(*args, **kwargs)


class Candidate(models.Model):
    """
    A candidate running for a position.

    Attributes:
        id: UUID primary key
        name: Candidate name (required)
        position: Office sought, conventionally one of ELECTIONS_POSITIONS
        party: Optional party/section
        course: Optional course scope (Class Representative)
        slogan: Optional campaign slogan
        published: Whether voters can see the candidate
        vote_count: Cached vote count (informational, tallies are authoritative)
        created_at: Timestamp of creation (tie-break for equal vote counts)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=100,
        help_text="Candidate name"
    )
    position = models.CharField(
        max_length=50,
        help_text="Position the candidate is running for"
    )
    party = models.CharField(
        max_length=100,
        blank=True,
        help_text="Optional party or section"
    )
    course = models.CharField(
        max_length=50,
        blank=True,
        help_text="Restricts Class Representative candidates to one course"
    )
    slogan = models.CharField(
        max_length=255,
        blank=True,
        help_text="Optional campaign slogan"
    )
    published = models.BooleanField(
        default=False,
        help_text="Whether the candidate is visible to voters"
    )
    vote_count = models.PositiveIntegerField(
        default=0,
        help_text="Cached vote count (best effort)"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['position'], name='candidate_position_idx'),
            models.Index(fields=['published'], name='candidate_published_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.position})"


class VotingCycle(models.Model):
    """
    A named election instance with its own candidate selection.

    Status only moves through the cycle manager (``elections.cycles``):
    draft -> live -> ended. Promoting a cycle ends whichever cycle was live.

    Attributes:
        id: UUID primary key
        name: Cycle name, e.g. "Fall Election"
        status: draft, live or ended
        selected_candidates: {position: [candidate_id, ...]}
        started_at: When the cycle went live
        ended_at: When the cycle was ended or superseded
    """

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        LIVE = 'live', 'Live'
        ENDED = 'ended', 'Ended'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=200,
        help_text="Cycle name"
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.DRAFT,
        help_text="Lifecycle state (changed through the cycle manager only)"
    )
    selected_candidates = models.JSONField(
        default=dict,
        blank=True,
        help_text="Mapping of position to the candidate ids on this cycle's ballot"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    started_at = models.DateTimeField(null=True, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['status'],
                condition=Q(status='live'),
                name='single_live_voting_cycle',
            ),
        ]
        indexes = [
            models.Index(fields=['status'], name='cycle_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.status})"

    @property
    def is_live(self):
        return self.status == self.Status.LIVE

    @property
    def has_selection(self):
        """True when at least one position has at least one candidate."""
        return any(self.selected_candidates.values()) if self.selected_candidates else False

    def candidate_ids(self):
        """All selected candidate ids as strings."""
        return {
            str(candidate_id)
            for ids in (self.selected_candidates or {}).values()
            for candidate_id in ids
        }

    def selected_count(self):
        return sum(len(ids) for ids in (self.selected_candidates or {}).values())

    def is_selected(self, candidate_id, position):
        return str(candidate_id) in {
            str(c) for c in (self.selected_candidates or {}).get(position, [])
        }


class Vote(models.Model):
    """
    One voter's choice for one position within one cycle.

    Attributes:
        id: UUID primary key
        voter_id: Id of the account that cast the vote
        candidate_id: Id of the chosen candidate
        position: Position the vote was cast for
        cycle_id: Cycle the vote belongs to (null for legacy unscoped votes)
        cast_at: Timestamp when the vote was submitted

    Integrity:
        - (voter_id, position, cycle_id) is unique, so concurrent submissions
          from the same voter cannot both be stored
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    voter_id = models.UUIDField(
        db_index=True,
        help_text="Account that cast this vote (kept when the account is removed)"
    )
    candidate_id = models.UUIDField(
        db_index=True,
        help_text="Candidate chosen"
    )
    position = models.CharField(
        max_length=50,
        help_text="Position this vote was cast for"
    )
    cycle_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Voting cycle the vote belongs to"
    )
    cast_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-cast_at']
        constraints = [
            models.UniqueConstraint(
                fields=['voter_id', 'position', 'cycle_id'],
                name='one_vote_per_position_per_cycle',
            ),
        ]
        indexes = [
            models.Index(fields=['cycle_id', 'candidate_id'], name='vote_cycle_candidate_idx'),
        ]

    def __str__(self):
        return f"Vote for {self.candidate_id} ({self.position}) at {self.cast_at}"
