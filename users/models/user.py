"""
PATH: users/models/user.py

CUSTOM USER MODEL (STOREFRONT PRINCIPAL)

Identity: email (case-normalized) is the only login identity.

Authorization shape consumed by the order workflow:
- role         one of admin / subadmin / customer
- department   sub-admin scope (e.g. "orders", "marketing")
- permissions  list of fine-grained permission keys (e.g. "manage_orders")
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        email = self.normalize_email((email or "").strip()).lower()
        if not email:
            raise ValueError("Users need an email address")

        extra_fields.setdefault("role", User.ROLE_CUSTOMER)
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.full_clean(exclude=["password"])
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.update(role=User.ROLE_ADMIN, is_staff=True, is_superuser=True)
        return self.create_user(email, password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    ROLE_ADMIN = "admin"
    ROLE_SUBADMIN = "subadmin"
    ROLE_CUSTOMER = "customer"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_SUBADMIN, "Sub-admin"),
        (ROLE_CUSTOMER, "Customer"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)
    department = models.CharField(max_length=50, blank=True)
    permissions = models.JSONField(default=list, blank=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def clean(self):
        if not isinstance(self.permissions, list):
            raise ValidationError({"permissions": "permissions must be a list of keys"})
        if self.role != self.ROLE_SUBADMIN and self.department:
            raise ValidationError({"department": "Only sub-admins are scoped to a department"})

    @property
    def roles(self) -> list[str]:
        return [self.role] if self.role else []

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def has_permission_key(self, key: str) -> bool:
        return key in (self.permissions or [])

    def __str__(self):
        return f"{self.email} ({self.role})"
