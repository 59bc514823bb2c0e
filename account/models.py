from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import F

from config.validators import PhoneValidator


class UserModel(AbstractUser):
    """Storefront customer. Mini App users are identified by their Telegram id."""

    class Languages(models.TextChoices):
        UZ = 'uz', 'Uzbek'
        RU = 'ru', 'Russian'
        EN = 'en', 'English'

    telegram_id = models.BigIntegerField(unique=True, null=True, blank=True)
    phone = models.CharField(max_length=20, null=True, blank=True, validators=[PhoneValidator()])
    language = models.CharField(max_length=3, choices=Languages.choices, default=Languages.UZ)
    bonus_points = models.PositiveIntegerField(default=0)

    def add_bonus_points(self, points):
        UserModel.objects.filter(pk=self.pk).update(bonus_points=F('bonus_points') + points)
        self.refresh_from_db(fields=['bonus_points'])
        return self.bonus_points

    def __str__(self): return f"{self.id} | {self.telegram_id or self.username} | {self.phone or '-'}"
