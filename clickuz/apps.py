from django.apps import AppConfig


class ClickuzConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clickuz'
    verbose_name = 'Click'
