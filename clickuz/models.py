from django.db import models

from clickuz.keywords import TRANSACTION_STATES, STATE_PREPARED, STATE_CONFIRMED


class ClickTransaction(models.Model):
    """
    Click transaction ledger.

    One row per ``click_trans_id``. The primary key is handed back to Click as
    both ``merchant_prepare_id`` and ``merchant_confirm_id``. ``applied`` stays
    False until the order row reflects the completion, so the row doubles as
    an outbox entry for the deferred order write.
    """

    click_trans_id = models.BigIntegerField(unique=True)
    click_paydoc_id = models.BigIntegerField(null=True, blank=True)
    order = models.ForeignKey('shop.OrderModel', on_delete=models.PROTECT, related_name='click_transactions')

    # so'm
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    state = models.CharField(max_length=16, choices=TRANSACTION_STATES, default=STATE_PREPARED, db_index=True)
    click_error = models.IntegerField(null=True, blank=True)
    sign_time = models.CharField(max_length=32, blank=True, default='')
    complete_time = models.BigIntegerField(null=True, blank=True)

    applied = models.BooleanField(default=False, db_index=True)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default='')
    # Click took the money but the order had already been settled another way
    needs_refund = models.BooleanField(default=False, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'click_transactions'
        ordering = ['-created_at']

    @classmethod
    def has_unapplied_confirmation(cls, order_id):
        return cls.objects.filter(order_id=order_id, state=STATE_CONFIRMED, applied=False).exists()

    def __str__(self):
        return f"{self.click_trans_id} | order {self.order_id} | {self.state}"

    @property
    def is_successful(self):
        return self.state == STATE_CONFIRMED
