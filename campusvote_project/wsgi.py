"""
WSGI config for the Campus Vote backend
========================================

Exposes the WSGI callable as a module-level variable named ``application``.
Used by Gunicorn or mod_wsgi in production deployments.
"""

import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'campusvote_project.settings')

application = get_wsgi_application()
