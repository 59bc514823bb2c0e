from shop.models import OrderModel


def get_order_by_payme_id(payme_order_id, *, for_update=False):
    if payme_order_id in (None, ''):
        return None
    qs = OrderModel.objects.all()
    if for_update:
        qs = qs.select_for_update()
    return qs.filter(payme_order_id=str(payme_order_id)).first()


def get_order_by_click_id(click_order_id, *, for_update=False):
    if click_order_id in (None, ''):
        return None
    qs = OrderModel.objects.all()
    if for_update:
        qs = qs.select_for_update()
    return qs.filter(click_order_id=str(click_order_id)).first()


def get_order_by_number(order_number):
    return OrderModel.objects.filter(order_number=order_number).first()
