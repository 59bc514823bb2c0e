from django.conf import settings
from django.db import models


class ConfigModel(models.Model):
    """Storefront-wide settings edited from the admin. Only the first row is used."""
    purchase_bonus_percent = models.PositiveSmallIntegerField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Bonus {self.purchase_bonus_percent}%"

    @classmethod
    def get_purchase_bonus_percent(cls):
        row = cls.objects.first()
        if row is None or row.purchase_bonus_percent is None:
            return settings.DEFAULT_PURCHASE_BONUS_PERCENT
        return row.purchase_bonus_percent
