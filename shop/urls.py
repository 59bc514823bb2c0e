from django.urls import path

from .views import CheckoutLinkView

urlpatterns = [
    path('orders/<str:order_number>/checkout/', CheckoutLinkView.as_view(), name='order-checkout-link'),
]
