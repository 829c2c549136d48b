"""Serializers for the M-Pesa STK callback envelope."""
from rest_framework import serializers


class CallbackItemSerializer(serializers.Serializer):
    Name  = serializers.CharField()
    Value = serializers.JSONField(required=False, allow_null=True)


class CallbackMetadataSerializer(serializers.Serializer):
    Item = CallbackItemSerializer(many=True, required=False)


class StkCallbackSerializer(serializers.Serializer):
    MerchantRequestID = serializers.CharField()
    CheckoutRequestID = serializers.CharField(required=False, allow_blank=True)
    ResultCode        = serializers.IntegerField()
    ResultDesc        = serializers.CharField(required=False, allow_blank=True, default="")
    CallbackMetadata  = CallbackMetadataSerializer(required=False)

    def get_metadata(self) -> dict:
        """Flatten CallbackMetadata.Item[] into {Name: Value}."""
        meta = self.validated_data.get("CallbackMetadata") or {}
        return {item["Name"]: item.get("Value") for item in meta.get("Item", [])}


def parse_stk_callback(payload):
    """Return a validated StkCallbackSerializer for `Body.stkCallback`, or None."""
    body = payload.get("Body") if isinstance(payload, dict) else None
    callback = body.get("stkCallback") if isinstance(body, dict) else None
    if not isinstance(callback, dict):
        return None
    ser = StkCallbackSerializer(data=callback)
    return ser if ser.is_valid() else None
