from django.contrib import admin

from .models import PaymeTransaction


@admin.register(PaymeTransaction)
class PaymeTransactionAdmin(admin.ModelAdmin):
    list_display = ['id', 'transaction_id', 'order', 'amount_display', 'state', 'reason', 'created_at']
    list_filter = ['state', 'created_at']
    search_fields = ['transaction_id', 'order__order_number', 'order__payme_order_id']
    readonly_fields = [
        'transaction_id', 'order', 'amount', 'time', 'state', 'reason',
        'create_time', 'perform_time', 'cancel_time', 'created_at', 'updated_at',
    ]

    fieldsets = (
        ('Transaction Info', {
            'fields': ('transaction_id', 'order', 'amount', 'state', 'reason')
        }),
        ('Payme Times', {
            'fields': ('time', 'create_time', 'perform_time', 'cancel_time')
        }),
        ('Timestamp', {
            'fields': ('created_at', 'updated_at')
        }),
    )

    def amount_display(self, obj):
        return f"{obj.amount / 100:,.0f} UZS"

    amount_display.short_description = 'Amount'

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
