import logging

from django.db import transaction
from django.utils import timezone

from config.models import ConfigModel
from shop.models import OrderModel

logger = logging.getLogger(__name__)


def approve_order(order_id, **fields):
    """
    pending -> approved, together with the gateway bookkeeping in ``fields``.

    The status filter makes the UPDATE conditional, so only one of several
    concurrent deliveries wins. Returns True for the winner.
    """
    updated = OrderModel.objects.filter(
        pk=order_id,
        status=OrderModel.Status.PENDING,
    ).update(status=OrderModel.Status.APPROVED, updated_at=timezone.now(), **fields)
    return updated == 1


def reject_order(order_id, from_statuses=(OrderModel.Status.PENDING,), match=None, **fields):
    """``match`` narrows the UPDATE further, e.g. to the gateway transaction that paid the order."""
    qs = OrderModel.objects.filter(pk=order_id, status__in=from_statuses)
    if match:
        qs = qs.filter(**match)
    updated = qs.update(status=OrderModel.Status.REJECTED, updated_at=timezone.now(), **fields)
    return updated == 1


def update_order_fields(order_id, **fields):
    OrderModel.objects.filter(pk=order_id).update(updated_at=timezone.now(), **fields)


def calculate_purchase_bonus(total, percent=None):
    if percent is None:
        percent = ConfigModel.get_purchase_bonus_percent()
    return int(round(total * percent / 100))


@transaction.atomic
def award_purchase_bonus(order_id):
    """
    Add the purchase bonus to the customer of an approved order.

    Runs at most once per order: the ``bonus_awarded`` flag is flipped with a
    conditional UPDATE before the points are added.
    """
    claimed = OrderModel.objects.filter(
        pk=order_id,
        status=OrderModel.Status.APPROVED,
        bonus_awarded=False,
    ).update(bonus_awarded=True)
    if not claimed:
        logger.info(f"Bonus for order {order_id} already awarded or order not approved")
        return 0

    order = OrderModel.objects.select_related('user').get(pk=order_id)
    if order.user is None:
        logger.warning(f"Order #{order.order_number} has no user, skipping bonus points")
        return 0

    points = calculate_purchase_bonus(order.total)
    if points <= 0:
        return 0

    balance = order.user.add_bonus_points(points)
    logger.info(f"Awarded {points} bonus points to user {order.user_id} for order #{order.order_number}, "
                f"balance {balance}")
    return points


def on_order_approved(order_id, gateway):
    """Schedule the approval side effects once the current transaction commits."""
    from shop.tasks import award_purchase_bonus_task, notify_order_status_task

    def _schedule():
        award_purchase_bonus_task.delay(order_id)
        notify_order_status_task.delay(order_id, gateway)

    transaction.on_commit(_schedule)


def on_order_rejected(order_id, gateway):
    from shop.tasks import notify_order_status_task

    transaction.on_commit(lambda: notify_order_status_task.delay(order_id, gateway))
