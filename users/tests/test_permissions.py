from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from rest_framework.test import APIRequestFactory

from permissions.roles import (
    IsAdmin,
    IsCouponStaff,
    IsOrderStaff,
    IsOwnerOrOrderStaff,
    IsStaff,
)

User = get_user_model()


class PermissionRoleTests(TestCase):
    """
    Tests for role / department permissions.

    GUARANTEES:
    - Admin passes every staff check
    - Sub-admins need BOTH department and permission key
    - Customers only reach their own records
    - Anonymous users denied everywhere
    """

    def setUp(self):
        self.factory = APIRequestFactory()

        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="pass",
            role="admin",
        )
        self.order_subadmin = User.objects.create_user(
            email="orders@example.com",
            password="pass",
            role="subadmin",
            department="orders",
            permissions=["manage_orders"],
        )
        self.unscoped_subadmin = User.objects.create_user(
            email="support@example.com",
            password="pass",
            role="subadmin",
            department="support",
            permissions=["manage_orders"],
        )
        self.marketing = User.objects.create_user(
            email="marketing@example.com",
            password="pass",
            role="subadmin",
            department="marketing",
            permissions=["manage_coupons"],
        )
        self.customer = User.objects.create_user(
            email="customer@example.com",
            password="pass",
        )

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    def _request_for(self, user=None):
        request = self.factory.get("/")
        request.user = user or AnonymousUser()
        return request

    # --------------------------------------------------
    # ADMIN
    # --------------------------------------------------

    def test_admin_permissions(self):
        request = self._request_for(self.admin)

        self.assertTrue(IsAdmin().has_permission(request, None))
        self.assertTrue(IsStaff().has_permission(request, None))
        self.assertTrue(IsOrderStaff().has_permission(request, None))
        self.assertTrue(IsCouponStaff().has_permission(request, None))

    # --------------------------------------------------
    # SUB-ADMIN
    # --------------------------------------------------

    def test_order_subadmin_scoped_to_orders(self):
        request = self._request_for(self.order_subadmin)

        self.assertFalse(IsAdmin().has_permission(request, None))
        self.assertTrue(IsStaff().has_permission(request, None))
        self.assertTrue(IsOrderStaff().has_permission(request, None))
        self.assertFalse(IsCouponStaff().has_permission(request, None))

    def test_permission_key_without_department_is_not_enough(self):
        request = self._request_for(self.unscoped_subadmin)
        self.assertFalse(IsOrderStaff().has_permission(request, None))

    def test_marketing_subadmin_manages_coupons_only(self):
        request = self._request_for(self.marketing)

        self.assertTrue(IsCouponStaff().has_permission(request, None))
        self.assertFalse(IsOrderStaff().has_permission(request, None))

    # --------------------------------------------------
    # CUSTOMER / OWNERSHIP
    # --------------------------------------------------

    def test_customer_has_no_staff_access(self):
        request = self._request_for(self.customer)

        self.assertFalse(IsAdmin().has_permission(request, None))
        self.assertFalse(IsStaff().has_permission(request, None))
        self.assertFalse(IsOrderStaff().has_permission(request, None))

    def test_owner_or_order_staff_object_check(self):
        own = SimpleNamespace(user_id=self.customer.id)
        foreign = SimpleNamespace(user_id=self.admin.id)
        guest = SimpleNamespace(user_id=None)
        perm = IsOwnerOrOrderStaff()

        customer_req = self._request_for(self.customer)
        self.assertTrue(perm.has_object_permission(customer_req, None, own))
        self.assertFalse(perm.has_object_permission(customer_req, None, foreign))
        self.assertFalse(perm.has_object_permission(customer_req, None, guest))

        staff_req = self._request_for(self.order_subadmin)
        self.assertTrue(perm.has_object_permission(staff_req, None, foreign))

    # --------------------------------------------------
    # ANONYMOUS
    # --------------------------------------------------

    def test_anonymous_denied(self):
        request = self._request_for(None)

        self.assertFalse(IsAdmin().has_permission(request, None))
        self.assertFalse(IsStaff().has_permission(request, None))
        self.assertFalse(IsOrderStaff().has_permission(request, None))
        self.assertFalse(IsOwnerOrOrderStaff().has_permission(request, None))
