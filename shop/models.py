from django.db import models


class OrderModel(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', 'В ожидании'
        APPROVED = 'approved', 'Оплачен'
        REJECTED = 'rejected', 'Отклонен'
        SHIPPED = 'shipped', 'На доставке'
        DELIVERED = 'delivered', 'Доставлен'

    order_number = models.CharField(max_length=64, unique=True)
    user = models.ForeignKey('account.UserModel', on_delete=models.SET_NULL, null=True, blank=True,
                             related_name='orders')
    user_telegram_id = models.BigIntegerField(null=True, blank=True)
    user_name = models.CharField(max_length=255, blank=True, default='')
    user_phone = models.CharField(max_length=20, blank=True, default='')

    items = models.JSONField(default=list, blank=True)
    delivery_info = models.JSONField(default=dict, blank=True)
    subtotal = models.IntegerField(default=0)
    bonus_discount = models.IntegerField(default=0)
    bonus_points_used = models.IntegerField(default=0)
    delivery_fee = models.IntegerField(default=0)
    # so'm
    total = models.IntegerField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)

    # Payme
    payme_order_id = models.CharField(max_length=32, unique=True, null=True, blank=True)
    payme_transaction_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    payme_state = models.SmallIntegerField(null=True, blank=True)
    payme_create_time = models.BigIntegerField(null=True, blank=True)
    payme_perform_time = models.BigIntegerField(null=True, blank=True)
    payme_cancel_time = models.BigIntegerField(null=True, blank=True)
    payme_cancel_reason = models.SmallIntegerField(null=True, blank=True)

    # Click
    click_order_id = models.CharField(max_length=32, unique=True, null=True, blank=True)
    click_trans_id = models.BigIntegerField(null=True, blank=True, db_index=True)
    click_paydoc_id = models.BigIntegerField(null=True, blank=True)
    click_complete_time = models.BigIntegerField(null=True, blank=True)
    click_error = models.IntegerField(null=True, blank=True)

    bonus_awarded = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def get_payme_amount(self):
        return self.total * 100

    def get_click_amount(self):
        return int(round(self.total))

    @property
    def is_paid(self):
        return self.status == self.Status.APPROVED

    @property
    def telegram_chat_id(self):
        if self.user_telegram_id:
            return self.user_telegram_id
        if self.user_id and self.user.telegram_id:
            return self.user.telegram_id
        return None

    def __str__(self):
        return f"#{self.order_number} ({self.status}) {self.total} so'm"
