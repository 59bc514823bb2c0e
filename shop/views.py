from drf_yasg.utils import swagger_auto_schema
from rest_framework.views import APIView

from clickuz.services import ClickService
from config.responses import ResponseSuccess, ResponseFail
from paymeuz.payme.service import PaymeService
from .models import OrderModel
from .selectors import get_order_by_number
from .serializers import CheckoutLinkSerializer, CheckoutLinkResponseSerializer


class CheckoutLinkView(APIView):
    """Gateway checkout link for a pending order."""
    authentication_classes = ()
    permission_classes = ()

    @swagger_auto_schema(
        operation_id='order_checkout_link',
        operation_description="Build the Payme or Click checkout URL for an order",
        query_serializer=CheckoutLinkSerializer(),
        responses={
            '200': CheckoutLinkResponseSerializer()
        },
    )
    def get(self, request, order_number):
        serializer = CheckoutLinkSerializer(data=request.query_params)
        if not serializer.is_valid():
            return ResponseFail(data=serializer.errors, request=request.method)

        order = get_order_by_number(order_number)
        if order is None:
            return ResponseFail(data='Order not found', request=request.method)

        if order.status != OrderModel.Status.PENDING:
            return ResponseFail(data='Order is not awaiting payment', request=request.method)

        gateway = serializer.validated_data['gateway']
        return_url = serializer.validated_data.get('return_url')

        if gateway == 'payme':
            if not order.payme_order_id:
                return ResponseFail(data='Order has no Payme id', request=request.method)
            try:
                url = PaymeService().create_checkout_url(order, return_url)
            except ValueError as e:
                return ResponseFail(data=str(e), request=request.method)
            amount = order.get_payme_amount()
        else:
            if not order.click_order_id:
                return ResponseFail(data='Order has no Click id', request=request.method)
            url = ClickService().create_payment_url(order, return_url)
            amount = order.get_click_amount()

        data = CheckoutLinkResponseSerializer({
            'order_number': order.order_number,
            'gateway': gateway,
            'amount': amount,
            'url': url,
        }).data
        return ResponseSuccess(data=data, request=request.method)
