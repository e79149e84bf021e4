"""
Django Admin Configuration for Campus Vote
==========================================

Configures the Django admin interface for:
- Account approval (approve / disapprove actions)
- Candidate management (publish / unpublish actions)
- Voting cycle management (make live / end actions)
- Vote viewing (read-only)

Status changes are routed through ``elections.cycles`` so the admin site
cannot bypass the single-live-cycle rule or the live-cycle delete guard.
"""

from django.contrib import admin, messages  # pyright: ignore[reportMissingModuleSource, reportMissingImports]

from . import accounts, candidates, cycles
from .exceptions import ElectionError
from .forms import CandidateForm
from .models import Account, Candidate, Vote, VotingCycle


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    """
    Admin interface for Account model.

    Pending accounts are approved with the "Approve" action; "Disapprove"
    deletes them (approved and admin accounts are skipped).
    """

    list_display = ('email', 'display_name', 'course', 'student_id', 'approved', 'is_admin', 'date_joined')
    list_filter = ('approved', 'is_admin', 'course')
    search_fields = ('email', 'display_name', 'student_id')
    ordering = ('-date_joined',)
    readonly_fields = ('id', 'date_joined', 'last_login')
    fieldsets = (
        ('Account', {
            'fields': ('id', 'email', 'display_name', 'course', 'student_id')
        }),
        ('Access', {
            'fields': ('approved', 'is_admin', 'is_staff', 'is_active'),
            'description': 'Admin accounts are always approved'
        }),
        ('Activity', {
            'fields': ('date_joined', 'last_login'),
        }),
    )
    actions = ['approve_accounts', 'disapprove_accounts']

    @admin.action(description='Approve selected accounts')
    def approve_accounts(self, request, queryset):
        approved = sum(accounts.approve(account.email) for account in queryset)
        self.message_user(request, f'{approved} account(s) approved.')

    @admin.action(description='Disapprove (delete) selected accounts')
    def disapprove_accounts(self, request, queryset):
        removed = sum(accounts.disapprove(account.email) for account in queryset)
        self.message_user(request, f'{removed} account(s) removed.')


@admin.register(Candidate)
class CandidateAdmin(admin.ModelAdmin):
    """
    Admin interface for Candidate model.

    ``vote_count`` is a cache and is shown read-only.
    """

    form = CandidateForm
    list_display = ('name', 'position', 'party', 'course', 'published', 'vote_count', 'created_at')
    list_filter = ('position', 'published', 'course')
    search_fields = ('name', 'party', 'slogan')
    readonly_fields = ('id', 'vote_count', 'created_at', 'updated_at')
    fieldsets = (
        ('Candidate Information', {
            'fields': ('id', 'name', 'position', 'party', 'course', 'slogan')
        }),
        ('Visibility', {
            'fields': ('published',),
            'description': 'Only published candidates appear on ballots'
        }),
        ('Metadata', {
            'fields': ('vote_count', 'created_at', 'updated_at'),
        }),
    )
    actions = ['publish', 'unpublish']

    @admin.action(description='Publish selected candidates')
    def publish(self, request, queryset):
        for candidate in queryset:
            candidates.set_published(candidate.id, True)
        self.message_user(request, f'{queryset.count()} candidate(s) published.')

    @admin.action(description='Unpublish selected candidates')
    def unpublish(self, request, queryset):
        for candidate in queryset:
            candidates.set_published(candidate.id, False)
        self.message_user(request, f'{queryset.count()} candidate(s) unpublished.')


@admin.register(VotingCycle)
class VotingCycleAdmin(admin.ModelAdmin):
    """
    Admin interface for VotingCycle model.

    Status is read-only here; use the "Make live" and "End" actions.
    Selection can only be edited while the cycle is a draft.
    """

    list_display = ('name', 'status', 'get_selected_count', 'created_at', 'started_at', 'ended_at')
    list_filter = ('status',)
    search_fields = ('name',)
    fieldsets = (
        ('Cycle', {
            'fields': ('id', 'name', 'status')
        }),
        ('Ballot', {
            'fields': ('selected_candidates',),
            'description': 'Mapping of position to candidate ids, e.g. {"President": ["<id>"]}'
        }),
        ('Timeline', {
            'fields': ('created_at', 'started_at', 'ended_at'),
        }),
    )
    actions = ['make_live', 'end_cycles']

    def get_readonly_fields(self, request, obj=None):
        readonly = ['id', 'status', 'created_at', 'started_at', 'ended_at']
        if obj is not None and obj.status != VotingCycle.Status.DRAFT:
            readonly.append('selected_candidates')
        return readonly

    def get_selected_count(self, obj):
        return obj.selected_count()
    get_selected_count.short_description = 'Candidates'

    def save_model(self, request, obj, form, change):
        selection = obj.selected_candidates
        if change:
            obj.save(update_fields=['name', 'updated_at'])
        else:
            obj.selected_candidates = {}
            obj.save()

        if 'selected_candidates' in form.changed_data:
            try:
                cycles.set_selected_candidates(obj.id, selection)
            except ElectionError as e:
                self.message_user(request, e.message, level=messages.ERROR)

    def has_delete_permission(self, request, obj=None):
        """Live cycles must be ended before deletion."""
        if obj is not None and obj.is_live:
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        cycles.delete(obj.id)

    def delete_queryset(self, request, queryset):
        for cycle in queryset:
            try:
                cycles.delete(cycle.id)
            except ElectionError as e:
                self.message_user(request, f'{cycle.name}: {e.message}', level=messages.ERROR)

    @admin.action(description='Make selected cycle live')
    def make_live(self, request, queryset):
        if queryset.count() != 1:
            self.message_user(request, 'Select exactly one cycle to make live.', level=messages.ERROR)
            return
        cycle = queryset.first()
        try:
            cycles.make_live(cycle.id)
        except ElectionError as e:
            self.message_user(request, e.message, level=messages.ERROR)
            return
        self.message_user(request, f'Voting cycle "{cycle.name}" is now live!')

    @admin.action(description='End selected cycles')
    def end_cycles(self, request, queryset):
        for cycle in queryset:
            try:
                cycles.end(cycle.id)
            except ElectionError as e:
                self.message_user(request, f'{cycle.name}: {e.message}', level=messages.ERROR)


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    """
    Admin interface for Vote model.

    IMPORTANT: Votes are READ-ONLY in admin
    - Protects voting integrity
    - Maintains audit trail
    """

    list_display = ('voter_id', 'position', 'candidate_id', 'cycle_id', 'cast_at')
    list_filter = ('position', 'cast_at')
    search_fields = ('position',)
    readonly_fields = ('id', 'voter_id', 'candidate_id', 'position', 'cycle_id', 'cast_at')

    def has_add_permission(self, request):
        """Prevent manual vote creation in admin."""
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        """Prevent vote deletion in admin (audit trail)."""
        return False
