"""
Main URL Router for the Campus Vote backend
============================================

Routes incoming HTTP requests:
- Django admin panel (candidate, cycle and account management)
- JSON API consumed by the mobile client
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Django admin panel
    path('admin/', admin.site.urls),

    # Election API (register, vote, results, approvals)
    path('api/', include('elections.urls')),
]
