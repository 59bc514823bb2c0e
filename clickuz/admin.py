from django.contrib import admin

from .models import ClickTransaction


@admin.register(ClickTransaction)
class ClickTransactionAdmin(admin.ModelAdmin):
    list_display = ['id', 'click_trans_id', 'order', 'amount', 'state', 'click_error', 'applied', 'needs_refund',
                    'attempts', 'created_at']
    list_filter = ['state', 'applied', 'needs_refund', 'created_at']
    search_fields = ['click_trans_id', 'click_paydoc_id', 'order__order_number', 'order__click_order_id']
    readonly_fields = [
        'click_trans_id', 'click_paydoc_id', 'order', 'amount', 'state', 'click_error', 'sign_time',
        'complete_time', 'applied', 'needs_refund', 'attempts', 'last_error', 'created_at', 'updated_at',
    ]

    fieldsets = (
        ('Transaction Info', {
            'fields': ('click_trans_id', 'click_paydoc_id', 'order', 'amount', 'state', 'click_error')
        }),
        ('Click Times', {
            'fields': ('sign_time', 'complete_time')
        }),
        ('Order update', {
            'fields': ('applied', 'needs_refund', 'attempts', 'last_error')
        }),
        ('Timestamp', {
            'fields': ('created_at', 'updated_at')
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
