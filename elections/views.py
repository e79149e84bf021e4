"""
JSON API views for the Campus Vote backend
==========================================

HTTP request handlers consumed by the mobile client:
- Registration, session login/logout
- Active cycle polling (the client re-polls every ``poll_interval`` seconds)
- Ballot, vote submission and per-position vote status
- Results
- Admin approval queue

Every ``ElectionError`` raised by a service is rendered as
``{"error": {"code", "message", "retryable", "errors"?}}`` with the
error's HTTP status.
"""

import functools
import json
import logging

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.contrib.auth import login, logout  # pyright: ignore[reportMissingModuleSource]
from django.http import JsonResponse  # pyright: ignore[reportMissingModuleSource]
from django.middleware.csrf import get_token  # pyright: ignore[reportMissingModuleSource]
from django.views.decorators.csrf import csrf_protect, ensure_csrf_cookie  # pyright: ignore[reportMissingModuleSource]
from django.views.decorators.http import require_http_methods  # pyright: ignore[reportMissingModuleSource]

from . import accounts, ballots, cycles
from .exceptions import ElectionError, NotFound, ValidationFailed
from .forms import ApprovalForm, LoginForm, RegistrationForm, VoteForm

logger = logging.getLogger(__name__)


def error_response(error):
    return JsonResponse({'error': error.to_dict()}, status=error.status)


def api_view(view):
    """Render domain errors raised by ``view`` as JSON error responses."""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ElectionError as e:
            logger.debug(f"{view.__name__} -> {e.code}: {e.message}")
            return error_response(e)

    return wrapper


def _payload(request):
    """Request data from a JSON body or a form-encoded POST."""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationFailed('Request body is not valid JSON.') from e
        if not isinstance(data, dict):
            raise ValidationFailed('Request body must be a JSON object.')
        return data
    return request.POST


def _validated(form):
    if not form.is_valid():
        raise ValidationFailed(errors={
            name: [error['message'] for error in errors]
            for name, errors in form.errors.get_json_data().items()
        })
    return form.cleaned_data


def _account_data(account):
    return {
        'id': str(account.id),
        'email': account.email,
        'display_name': account.display_name,
        'course': account.course,
        'student_id': account.student_id,
        'is_admin': account.is_admin,
        'approved': account.approved,
        'date_joined': account.date_joined.isoformat(),
    }


def _cycle_data(cycle):
    if cycle is None:
        return None
    return {
        'id': str(cycle.id),
        'name': cycle.name,
        'status': cycle.status,
        'selected_candidates': cycle.selected_candidates,
        'created_at': cycle.created_at.isoformat(),
        'started_at': cycle.started_at.isoformat() if cycle.started_at else None,
        'ended_at': cycle.ended_at.isoformat() if cycle.ended_at else None,
    }


def _candidate_data(candidate):
    return {
        'id': str(candidate.id),
        'name': candidate.name,
        'position': candidate.position,
        'party': candidate.party,
        'course': candidate.course,
        'slogan': candidate.slogan,
    }


# ============================================================================
# AUTHENTICATION
# ============================================================================

@require_http_methods(["GET"])
@ensure_csrf_cookie
def session(request):
    """Current session state plus a CSRF token for subsequent POSTs."""
    user = request.user
    return JsonResponse({
        'authenticated': user.is_authenticated,
        'account': _account_data(user) if user.is_authenticated else None,
        'csrf_token': get_token(request),
    })


@require_http_methods(["POST"])
@csrf_protect
@api_view
def register(request):
    """
    Create an account awaiting admin approval.

    Returns:
        201 with the new account id
    """
    data = _validated(RegistrationForm(_payload(request)))
    account_id = accounts.register(
        data['email'],
        data['password'],
        {
            'display_name': data['display_name'],
            'course': data['course'],
            'student_id': data['student_id'],
        },
    )
    return JsonResponse({
        'id': str(account_id),
        'approved': False,
        'message': 'Registration successful! Please wait for admin confirmation before logging in.',
    }, status=201)


@require_http_methods(["POST"])
@csrf_protect
@api_view
def login_view(request):
    data = _validated(LoginForm(_payload(request)))
    account = accounts.authenticate(data['email'], data['password'], request=request)
    login(request, account)
    logger.info(f"Login: {account.email}")
    return JsonResponse({'account': _account_data(account)})


@require_http_methods(["POST"])
@csrf_protect
def logout_view(request):
    logout(request)
    return JsonResponse({'authenticated': False})


# ============================================================================
# VOTING
# ============================================================================

@require_http_methods(["GET"])
@api_view
def active_cycle(request):
    """
    Polled by clients to notice cycle changes.

    Returns the live cycle (or null) and the suggested polling interval.
    """
    return JsonResponse({
        'cycle': _cycle_data(cycles.get_active()),
        'poll_interval': settings.ELECTIONS_ACTIVE_CYCLE_POLL_SECONDS,
    })


@require_http_methods(["GET"])
@api_view
def ballot(request):
    """Positions and candidates the logged-in voter can vote for."""
    voter = accounts.require_approved(request.user)
    cycle = cycles.get_active()
    voted = ballots.voted_positions(voter)

    return JsonResponse({
        'cycle': _cycle_data(cycle),
        'positions': [
            {
                'position': position,
                'voted': position in voted,
                'candidates': [_candidate_data(c) for c in members],
            }
            for position, members in ballots.build_ballot(voter, cycle)
        ],
    })


@require_http_methods(["POST"])
@csrf_protect
@api_view
def cast_vote(request):
    """
    Submit one vote.

    Returns:
        201 with the vote id, or an error envelope (already-voted,
        no-active-cycle, not-approved, ...)
    """
    data = _validated(VoteForm(_payload(request)))
    vote_id = ballots.cast_vote(data['candidate_id'], request.user, data['position'])
    return JsonResponse({
        'id': str(vote_id),
        'message': 'Your vote has been recorded.',
    }, status=201)


@require_http_methods(["GET"])
@api_view
def vote_status(request):
    voter = accounts.require_approved(request.user)
    return JsonResponse({
        'has_voted': ballots.has_voted(voter),
        'voted_positions': sorted(ballots.voted_positions(voter)),
    })


@require_http_methods(["GET"])
@api_view
def results(request):
    """
    Ranked results for ``?cycle=<id>``, or for the live / last ended cycle.
    """
    accounts.require_approved(request.user)
    cycle_id = request.GET.get('cycle') or None
    return JsonResponse(ballots.get_results(cycle_id).to_dict())


# ============================================================================
# ACCOUNT APPROVAL (ADMIN)
# ============================================================================

@require_http_methods(["GET"])
@api_view
def pending_accounts(request):
    accounts.require_admin(request.user)
    return JsonResponse({
        'accounts': [_account_data(a) for a in accounts.list_pending()],
    })


@require_http_methods(["GET"])
@api_view
def account_stats(request):
    accounts.require_admin(request.user)
    return JsonResponse(accounts.account_stats())


@require_http_methods(["POST"])
@csrf_protect
@api_view
def approve_account(request):
    accounts.require_admin(request.user)
    email = _validated(ApprovalForm(_payload(request)))['email']
    if not accounts.approve(email):
        raise NotFound(f'No account registered with {email}.')
    logger.info(f"Approval by {request.user.email}: {email}")
    return JsonResponse({'email': email, 'approved': True})


@require_http_methods(["POST"])
@csrf_protect
@api_view
def disapprove_account(request):
    accounts.require_admin(request.user)
    email = _validated(ApprovalForm(_payload(request)))['email']
    if not accounts.disapprove(email):
        raise NotFound(f'No pending account registered with {email}.')
    logger.info(f"Disapproval by {request.user.email}: {email}")
    return JsonResponse({'email': email, 'removed': True})
