from django.contrib import admin

from .models import OrderModel


@admin.register(OrderModel)
class OrderModelAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'user_name', 'total', 'status', 'payme_order_id', 'click_order_id',
                    'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['order_number', 'user_name', 'user_phone', 'payme_order_id', 'click_order_id',
                     'payme_transaction_id']
    readonly_fields = [
        'payme_transaction_id', 'payme_state', 'payme_create_time', 'payme_perform_time',
        'payme_cancel_time', 'payme_cancel_reason',
        'click_trans_id', 'click_paydoc_id', 'click_complete_time', 'click_error',
        'bonus_awarded', 'created_at', 'updated_at',
    ]

    fieldsets = (
        ('Order', {
            'fields': ('order_number', 'status', 'items', 'delivery_info')
        }),
        ('Customer', {
            'fields': ('user', 'user_telegram_id', 'user_name', 'user_phone')
        }),
        ('Amounts', {
            'fields': ('subtotal', 'bonus_discount', 'bonus_points_used', 'delivery_fee', 'total')
        }),
        ('Payme', {
            'fields': ('payme_order_id', 'payme_transaction_id', 'payme_state', 'payme_create_time',
                       'payme_perform_time', 'payme_cancel_time', 'payme_cancel_reason'),
            'classes': ('collapse',)
        }),
        ('Click', {
            'fields': ('click_order_id', 'click_trans_id', 'click_paydoc_id', 'click_complete_time',
                       'click_error'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('bonus_awarded', 'created_at', 'updated_at')
        }),
    )
