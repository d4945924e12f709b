"""Serializers for database webhook payloads."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .domain.changes import ChangeType

WATCHED_TABLES = ("bookings", "payments", "escrow")


class RowChangeWebhookSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[change.value for change in ChangeType])
    table = serializers.ChoiceField(choices=WATCHED_TABLES)
    schema = serializers.CharField(default="public")
    record = serializers.DictField(allow_null=True, default=None)
    old_record = serializers.DictField(allow_null=True, default=None)

    def validate(self, attrs):  # type: ignore
        change_type = attrs["type"]
        if change_type == ChangeType.DELETE.value and not attrs.get("old_record"):
            raise serializers.ValidationError({"old_record": "DELETE payloads carry the old row."})
        if change_type != ChangeType.DELETE.value and not attrs.get("record"):
            raise serializers.ValidationError({"record": f"{change_type} payloads carry the new row."})
        return attrs
