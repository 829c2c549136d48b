"""Kenyan phone number validation shared by registration and checkout."""

import re
from rest_framework import serializers

KE_PHONE_PATTERN  = re.compile(r"^(\+?254|0)[17]\d{8}$")
MPESA_MSISDN      = re.compile(r"^254[17]\d{8}$")


def normalize_ke_phone(value):
    """
    Return the number in 2547XXXXXXXX / 2541XXXXXXXX form, or None if it is
    not a Kenyan mobile number.
    """
    if not value:
        return None
    digits = re.sub(r"[\s-]", "", str(value))
    if digits.startswith("+"):
        digits = digits[1:]
    elif digits.startswith("0"):
        digits = "254" + digits[1:]
    return digits if MPESA_MSISDN.match(digits) else None


def validate_ke_phone(value):
    if not KE_PHONE_PATTERN.match(value or ""):
        raise serializers.ValidationError("Enter a valid Kenyan phone number (+254, 07... or 01...).")
