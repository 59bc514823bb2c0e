import logging

from celery import shared_task

from shop.models import OrderModel
from shop.services import award_purchase_bonus
from utils.telegram import send_order_status

logger = logging.getLogger(__name__)


@shared_task
def award_purchase_bonus_task(order_id):
    return award_purchase_bonus(order_id)


@shared_task
def notify_order_status_task(order_id, gateway=None):
    order = OrderModel.objects.select_related('user').filter(pk=order_id).first()
    if order is None:
        logger.warning(f"Order {order_id} not found for status notification")
        return False
    return send_order_status(order, gateway)
