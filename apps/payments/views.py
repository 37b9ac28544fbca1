"""HTTP boundary for payment provider webhooks."""

from __future__ import annotations

import logging

from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.domain.exceptions import (
    BookingError,
    HoldExpired,
    InvalidPaymentEvent,
    InvalidTransition,
    UnknownReservation,
)

from .ingestor import PaymentEventIngestor
from .serializers import AckSerializer, PaymentWebhookSerializer

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    UnknownReservation: status.HTTP_404_NOT_FOUND,
    InvalidPaymentEvent: status.HTTP_400_BAD_REQUEST,
    HoldExpired: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
}


def _error_response(error: BookingError) -> Response:
    code = ERROR_STATUS.get(type(error), status.HTTP_409_CONFLICT)
    return Response({"code": error.code, "detail": error.message}, status=code)


class PaymentWebhookView(APIView):
    """Receives provider notifications. Authentication happens upstream."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]
    ingestor_class = PaymentEventIngestor

    def post(self, request, *args, **kwargs):
        envelope = PaymentWebhookSerializer(data=request.data)
        if not envelope.is_valid():
            return Response(
                {"code": InvalidPaymentEvent.code, "detail": envelope.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = envelope.validated_data
        try:
            ack = self.ingestor_class().ingest(data["id"], data.get("reservation_id", ""), data["data"])
        except BookingError as error:
            logger.warning(f"Payment webhook {data['id']} rejected: {error.code} {error.message}")
            return _error_response(error)

        return Response(AckSerializer(ack.to_dict()).data, status=status.HTTP_200_OK)
