from django.contrib import admin

from .models import ConfigModel


@admin.register(ConfigModel)
class ConfigModelAdmin(admin.ModelAdmin):
    list_display = ['id', 'purchase_bonus_percent', 'updated_at']

    def has_add_permission(self, request):
        # Single settings row
        return not ConfigModel.objects.exists()
