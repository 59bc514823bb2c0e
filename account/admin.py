from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from account.models import UserModel


@admin.register(UserModel)
class CustomUserAdmin(BaseUserAdmin):
    model = UserModel
    list_display = ('username', 'telegram_id', 'phone', 'language', 'bonus_points', 'is_active')
    list_filter = ('language', 'is_staff', 'is_active')
    search_fields = ('username', 'phone', 'telegram_id', 'id')
    ordering = ('-date_joined',)

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Storefront', {'fields': ('telegram_id', 'phone', 'language', 'bonus_points')}),
    )
