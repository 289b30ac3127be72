from django.apps import AppConfig


class RemindersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.reminders'

    def ready(self):
        """Import signals when app is ready"""
        import backend.reminders.cache  # noqa: F401
