from django.db import models

from paymeuz.keywords import TRANSACTION_STATES, CREATE_TRANSACTION


class PaymeTransaction(models.Model):
    """
    Payme transaction ledger.

    One row per Payme transaction id; repeated deliveries of the same id
    read this row instead of touching the order again. Times are Unix
    milliseconds as Payme sends and expects them.
    """

    transaction_id = models.CharField(max_length=64, unique=True)
    order = models.ForeignKey('shop.OrderModel', on_delete=models.PROTECT, related_name='payme_transactions')

    # tiyin
    amount = models.BigIntegerField()
    time = models.BigIntegerField()
    state = models.SmallIntegerField(choices=TRANSACTION_STATES, default=CREATE_TRANSACTION, db_index=True)
    reason = models.SmallIntegerField(null=True, blank=True)

    create_time = models.BigIntegerField()
    perform_time = models.BigIntegerField(default=0)
    cancel_time = models.BigIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payme_transactions'
        ordering = ['-create_time']

    @classmethod
    def has_open_transaction(cls, order_id, created_after):
        """State 1 rows that Payme can still perform."""
        return cls.objects.filter(
            order_id=order_id,
            state=CREATE_TRANSACTION,
            create_time__gt=created_after,
        ).exists()

    def __str__(self):
        return f"{self.transaction_id} | order {self.order_id} | state {self.state}"

    @property
    def is_active(self):
        return self.state == CREATE_TRANSACTION

    def as_check_result(self):
        return {
            'create_time': self.create_time,
            'perform_time': self.perform_time,
            'cancel_time': self.cancel_time,
            'transaction': str(self.pk),
            'state': self.state,
            'reason': self.reason,
        }

    def as_statement_item(self):
        return {
            'id': self.transaction_id,
            'time': self.time,
            'amount': self.amount,
            'account': {'order_id': self.order.payme_order_id},
            'create_time': self.create_time,
            'perform_time': self.perform_time,
            'cancel_time': self.cancel_time,
            'transaction': str(self.pk),
            'state': self.state,
            'reason': self.reason,
        }
