"""
URL configuration for the elections API
=======================================

Mounted under ``/api/`` by the project urls.
"""

from django.urls import path  # pyright: ignore[reportMissingModuleSource]
from . import views

app_name = 'elections'

urlpatterns = [
    # Authentication
    path('auth/session/', views.session, name='session'),
    path('auth/register/', views.register, name='register'),
    path('auth/login/', views.login_view, name='login'),
    path('auth/logout/', views.logout_view, name='logout'),

    # Voting
    path('cycles/active/', views.active_cycle, name='active_cycle'),
    path('ballot/', views.ballot, name='ballot'),
    path('votes/', views.cast_vote, name='cast_vote'),
    path('votes/status/', views.vote_status, name='vote_status'),
    path('results/', views.results, name='results'),

    # Admin approval queue
    path('accounts/pending/', views.pending_accounts, name='pending_accounts'),
    path('accounts/stats/', views.account_stats, name='account_stats'),
    path('accounts/approve/', views.approve_account, name='approve_account'),
    path('accounts/disapprove/', views.disapprove_account, name='disapprove_account'),
]
