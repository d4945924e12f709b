"""Serializers for the booking domain."""

from __future__ import annotations

from datetime import date

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import nights_between

from .domain.entities import BookingRole

MIN_GUESTS = 1
MAX_GUESTS = 10
MIN_NIGHTS = 1
MAX_NIGHTS = 30


class BookingFormSerializer(serializers.Serializer):
    """Dates and party size picked in the booking form."""

    check_in = serializers.DateField(
        error_messages={"required": "Check-in date is required", "null": "Check-in date is required"},
    )
    check_out = serializers.DateField(
        error_messages={"required": "Check-out date is required", "null": "Check-out date is required"},
    )
    guests = serializers.IntegerField(
        default=1,
        min_value=MIN_GUESTS,
        max_value=MAX_GUESTS,
        error_messages={
            "min_value": "At least 1 guest is required",
            "max_value": f"Maximum {MAX_GUESTS} guests allowed",
        },
    )

    def validate_check_in(self, value: date) -> date:
        if value < timezone.localdate():
            raise serializers.ValidationError("Check-in date must be in the future")
        return value

    def validate(self, attrs):  # type: ignore
        check_in: date = attrs["check_in"]
        check_out: date = attrs["check_out"]
        if check_out <= check_in:
            raise serializers.ValidationError({"check_out": "Check-out date must be after check-in date"})
        nights = nights_between(check_in, check_out)
        if not MIN_NIGHTS <= nights <= MAX_NIGHTS:
            raise serializers.ValidationError(
                {"check_out": f"Booking must be between {MIN_NIGHTS} and {MAX_NIGHTS} nights"}
            )
        return attrs


def validate_booking_dates(check_in: date | None, check_out: date | None) -> bool:
    serializer = BookingFormSerializer(data={"check_in": check_in, "check_out": check_out, "guests": 1})
    return serializer.is_valid()


def validate_guests(guests: int) -> bool:
    return MIN_GUESTS <= guests <= MAX_GUESTS


def first_error(serializer: serializers.Serializer) -> str:
    """First human message out of a serializer's error tree"""
    errors = serializer.errors
    while isinstance(errors, (dict, list)) and errors:
        errors = next(iter(errors.values())) if isinstance(errors, dict) else errors[0]
    return str(errors) if errors else "Invalid booking details"


class QuoteRequestSerializer(BookingFormSerializer):
    """Availability and price quote for a listing."""

    listing_id = serializers.CharField()


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, allow_blank=True, default="")
    role = serializers.ChoiceField(
        choices=[role.value for role in BookingRole],
        default=BookingRole.GUEST.value,
    )


class MoneyField(serializers.DecimalField):
    def __init__(self, **kwargs):
        kwargs.setdefault("max_digits", 12)
        kwargs.setdefault("decimal_places", 2)
        kwargs.setdefault("coerce_to_string", True)
        super().__init__(**kwargs)


class PriceBreakdownSerializer(serializers.Serializer):
    base_amount = MoneyField()
    nights = serializers.IntegerField()
    cleaning_fee = MoneyField()
    service_fee = MoneyField()
    taxes = MoneyField()
    total = MoneyField()
    currency = serializers.CharField()


class AvailabilitySerializer(serializers.Serializer):
    is_available = serializers.BooleanField()
    reason = serializers.SerializerMethodField()
    message = serializers.CharField()
    conflicting_dates = serializers.ListField(child=serializers.DateField())

    def get_reason(self, obj):  # type: ignore
        return obj.reason.value if obj.reason else None


class RefundCalculationSerializer(serializers.Serializer):
    policy = serializers.CharField()
    days_until_check_in = serializers.IntegerField()
    original_amount = MoneyField()
    refund_percentage = serializers.IntegerField()
    refund_amount = MoneyField()
    platform_fee = MoneyField()
    host_amount = MoneyField()
    refundable_amount = MoneyField()
    currency = serializers.CharField()


class CancellationResultSerializer(serializers.Serializer):
    booking_id = serializers.CharField()
    status = serializers.CharField()
    refund_amount = MoneyField()
    refund_id = serializers.CharField(allow_null=True)
