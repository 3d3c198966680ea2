from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Users, events and registrations."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'Event Management'

    def ready(self):
        from . import signals  # noqa: F401
