from rest_framework import serializers


class PaycomOperationSerializer(serializers.Serializer):
    id = serializers.JSONField(required=False, allow_null=True)
    method = serializers.CharField()
    params = serializers.DictField(required=False, default=dict)
