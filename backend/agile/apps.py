from django.apps import AppConfig


class AgileConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.agile'
