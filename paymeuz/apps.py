from django.apps import AppConfig


class PaymeuzConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'paymeuz'
    verbose_name = 'Payme'
