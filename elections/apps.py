"""
Django app configuration for the elections module
==================================================

AppConfig subclass that defines the elections app and registers the
lifecycle signal receivers on startup.
"""

from django.apps import AppConfig  # pyright: ignore[reportMissingModuleSource]


class ElectionsConfig(AppConfig):
    """Configuration class for the elections application."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'elections'
    verbose_name = 'Campus Elections'

    def ready(self):
        """Import signals so their receivers are connected."""
        from . import signals  # noqa: F401
