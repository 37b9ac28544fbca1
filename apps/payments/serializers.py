"""DRF serializers validating payment webhook bodies."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .domain.notifications import VARIANTS_BY_STATUS, PaymentNotification


class PaymentPayloadSerializer(serializers.Serializer):
    """The provider's `data` object."""

    status = serializers.CharField()
    status_detail = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    currency = serializers.CharField(max_length=3, required=False, allow_null=True)
    payment_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate_status(self, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in VARIANTS_BY_STATUS:
            raise serializers.ValidationError(f"Unsupported payment status: {value}")
        return normalized

    def to_notification(self, provider_event_id: str) -> PaymentNotification:
        data = self.validated_data
        variant = VARIANTS_BY_STATUS[data["status"]]
        return variant(
            provider_event_id=provider_event_id,
            status=data["status"],
            status_detail=data.get("status_detail") or "",
            amount=data.get("amount"),
            currency=data.get("currency"),
            payment_id=data.get("payment_id") or None,
        )


class PaymentWebhookSerializer(serializers.Serializer):
    """Envelope posted to the webhook endpoint."""

    id = serializers.CharField(allow_blank=True, trim_whitespace=True)
    reservation_id = serializers.CharField(allow_blank=True, required=False, default="")
    data = serializers.JSONField()


class AckSerializer(serializers.Serializer):
    provider_event_id = serializers.CharField()
    duplicate = serializers.BooleanField()
    reservation_id = serializers.UUIDField(allow_null=True)
    reservation_status = serializers.CharField(allow_null=True)
