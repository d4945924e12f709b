"""Webhook receiving row changes from the hosted database."""

from __future__ import annotations

import hmac

import structlog
from django.conf import settings  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.application.message_bus import message_bus

from .domain.changes import ChangeEvent
from .domain.events import RowChanged
from .serializers import RowChangeWebhookSerializer

logger = structlog.get_logger(__name__)

SECRET_HEADER = "HTTP_X_WEBHOOK_SECRET"


class RowChangeWebhookView(APIView):
    """Publishes one RowChanged event per accepted payload."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]
    bus = message_bus

    def post(self, request):  # type: ignore
        expected = getattr(settings, "REALTIME_WEBHOOK_SECRET", "")
        provided = request.META.get(SECRET_HEADER, "")
        if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
            logger.warning("realtime.webhook.rejected", remote_addr=request.META.get("REMOTE_ADDR"))
            return Response({"detail": "Invalid webhook secret."}, status=status.HTTP_403_FORBIDDEN)

        serializer = RowChangeWebhookSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning("realtime.webhook.invalid", errors=serializer.errors)
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        change = ChangeEvent.from_webhook(serializer.validated_data)
        self.bus.publish_events([RowChanged(aggregate_id=change.row_id, change=change)])
        logger.info(
            "realtime.webhook.accepted",
            table=change.table,
            type=change.event_type.value,
            row_id=change.row_id,
        )
        return Response({"status": "accepted"}, status=status.HTTP_202_ACCEPTED)
