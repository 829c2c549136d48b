"""Authentication: registration, email verification, profile."""

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView
from rest_framework import serializers
from drf_spectacular.utils import extend_schema

from apps.authentication.validators import validate_ke_phone
from apps.notifications.service import NotificationService

logger = logging.getLogger("storefront.auth")

Customer = get_user_model()
notifier = NotificationService()

VERIFY_SALT    = "storefront.email-verification"
VERIFY_MAX_AGE = 60 * 60 * 24


def make_verification_token(customer):
    return signing.dumps({"uid": str(customer.id)}, salt=VERIFY_SALT)


def read_verification_token(token):
    """Return the customer id encoded in the token, or None if invalid/expired."""
    try:
        data = signing.loads(token, salt=VERIFY_SALT, max_age=VERIFY_MAX_AGE)
    except signing.BadSignature:
        return None
    return data.get("uid")


# ── Serializers ───────────────────────────────────────────────────────────────
class CustomerRegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)
    phone    = serializers.CharField(required=False, allow_blank=True, validators=[validate_ke_phone])

    class Meta:
        model  = Customer
        fields = ["email", "full_name", "phone", "password"]

    def create(self, validated_data):
        password = validated_data.pop("password")
        customer = Customer(**validated_data)
        customer.set_password(password)
        customer.save()
        return customer


class CustomerProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model  = Customer
        fields = ["id", "email", "full_name", "phone", "role", "is_email_verified", "created_at"]
        read_only_fields = ["id", "email", "role", "is_email_verified", "created_at"]


# ── Views ─────────────────────────────────────────────────────────────────────
@extend_schema(tags=["Auth"])
class RegisterView(generics.CreateAPIView):
    """POST /api/auth/register/: create an account and email a verification link."""
    queryset           = Customer.objects.all()
    serializer_class   = CustomerRegisterSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer = serializer.save()

        token = make_verification_token(customer)
        notifier.send_email(
            email=customer.email,
            subject="Verify your email address",
            body=(
                f"Hello {customer.full_name},\n\n"
                f"Confirm your email to start shopping:\n"
                f"{settings.CLIENT_URL}/verify-email?token={token}\n\n"
                f"The link expires in 24 hours."
            ),
        )
        return Response(
            {"message": "Account created. Check your inbox to verify your email.", "id": str(customer.id)},
            status=status.HTTP_201_CREATED,
        )


@extend_schema(tags=["Auth"])
class VerifyEmailView(APIView):
    """GET /api/auth/verify-email/?token=...: mark the account's email as verified."""
    permission_classes     = [AllowAny]
    authentication_classes = []

    def get(self, request):
        uid = read_verification_token(request.query_params.get("token", ""))
        if not uid:
            return Response({"error": "Invalid or expired verification link."}, status=400)

        updated = Customer.objects.filter(id=uid).update(is_email_verified=True)
        if not updated:
            return Response({"error": "Account not found."}, status=404)

        logger.info("Email verified for customer %s", uid)
        return Response({"message": "Email verified. You can now place orders."})


@extend_schema(tags=["Auth"])
class ProfileView(generics.RetrieveUpdateAPIView):
    """GET/PATCH /api/auth/me/: retrieve or update own profile."""
    serializer_class   = CustomerProfileSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user
