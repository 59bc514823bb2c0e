from rest_framework import serializers

from clickuz.keywords import METHOD_PREPARE, METHOD_COMPLETE


class ClickRequestSerializer(serializers.Serializer):
    click_trans_id = serializers.CharField()
    service_id = serializers.CharField()
    click_paydoc_id = serializers.CharField(required=False, allow_blank=True)
    merchant_trans_id = serializers.CharField()
    merchant_prepare_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    amount = serializers.CharField()
    action = serializers.CharField()
    error = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    error_note = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    sign_time = serializers.CharField()
    sign_string = serializers.CharField()


class ClickCallbackSerializer(ClickRequestSerializer):
    method = serializers.ChoiceField(choices=((METHOD_PREPARE, METHOD_PREPARE), (METHOD_COMPLETE, METHOD_COMPLETE)))
