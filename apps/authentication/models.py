"""
Authentication models.
Customer is the custom User: shoppers and store admins, identified by email.
"""

import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager


class CustomerManager(BaseUserManager):
    def create_user(self, email, password=None, **extra):
        if not email:
            raise ValueError("Email address is required.")
        user = self.model(email=self.normalize_email(email), **extra)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra):
        extra.setdefault("is_staff", True)
        extra.setdefault("is_superuser", True)
        extra.setdefault("role", Customer.Role.ADMIN)
        extra.setdefault("is_email_verified", True)
        return self.create_user(email, password, **extra)


class Customer(AbstractBaseUser, PermissionsMixin):
    """Every account in the store. Checkout requires a verified email."""

    class Role(models.TextChoices):
        CUSTOMER = "CUSTOMER", "Customer"
        ADMIN    = "ADMIN",    "Store Admin"

    id                = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email             = models.EmailField(unique=True)
    full_name         = models.CharField(max_length=120)
    phone             = models.CharField(max_length=15, blank=True)
    role              = models.CharField(max_length=10, choices=Role.choices, default=Role.CUSTOMER)
    is_email_verified = models.BooleanField(default=False)
    is_active         = models.BooleanField(default=True)
    is_staff          = models.BooleanField(default=False)
    created_at        = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD  = "email"
    EMAIL_FIELD     = "email"
    REQUIRED_FIELDS = ["full_name"]

    objects = CustomerManager()

    class Meta:
        verbose_name = "Customer"
        indexes = [models.Index(fields=["role"], name="customer_role_idx")]

    def __str__(self):
        return f"{self.full_name} <{self.email}>"

    @property
    def is_store_admin(self):
        return self.role == self.Role.ADMIN
