from rest_framework import serializers

GATEWAY_CHOICES = (
    ('payme', 'Payme'),
    ('click', 'Click'),
)


class CheckoutLinkSerializer(serializers.Serializer):
    gateway = serializers.ChoiceField(choices=GATEWAY_CHOICES)
    return_url = serializers.URLField(required=False)


class CheckoutLinkResponseSerializer(serializers.Serializer):
    order_number = serializers.CharField()
    gateway = serializers.CharField()
    amount = serializers.IntegerField()
    url = serializers.URLField()
