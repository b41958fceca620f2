# permissions/roles.py

from __future__ import annotations

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS
# =========================================================
ROLE_ADMIN = "admin"
ROLE_SUBADMIN = "subadmin"
ROLE_CUSTOMER = "customer"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_SUBADMIN,
}


# =========================================================
# SUB-ADMIN SCOPE (department + permission keys)
# =========================================================
# A sub-admin only acts on orders when BOTH are present:
#   department == "orders" and "manage_orders" in permissions
DEPARTMENT_ORDERS = "orders"
DEPARTMENT_MARKETING = "marketing"

PERM_MANAGE_ORDERS = "manage_orders"
PERM_MANAGE_COUPONS = "manage_coupons"


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> str | None:
    return getattr(user, "role", None)


def _is_authenticated(user) -> bool:
    return bool(user and getattr(user, "is_authenticated", False))


def is_admin(user) -> bool:
    if not _is_authenticated(user):
        return False
    return get_user_role(user) == ROLE_ADMIN or bool(getattr(user, "is_superuser", False))


def has_department_permission(user, *, department: str, permission: str) -> bool:
    if not _is_authenticated(user) or get_user_role(user) != ROLE_SUBADMIN:
        return False
    perms = getattr(user, "permissions", None) or []
    return (getattr(user, "department", "") or "") == department and permission in perms


def is_order_staff(user) -> bool:
    """
    Admin, or sub-admin scoped to the orders department with manage_orders.
    """
    return is_admin(user) or has_department_permission(
        user,
        department=DEPARTMENT_ORDERS,
        permission=PERM_MANAGE_ORDERS,
    )


def is_coupon_staff(user) -> bool:
    return is_admin(user) or has_department_permission(
        user,
        department=DEPARTMENT_MARKETING,
        permission=PERM_MANAGE_COUPONS,
    )


def is_owner(user, obj) -> bool:
    """
    Ownership check for user-owned records (orders, carts).
    Guest-owned records have no user and are never "owned" by an authenticated principal.
    """
    if not _is_authenticated(user):
        return False
    owner_id = getattr(obj, "user_id", None)
    return owner_id is not None and str(owner_id) == str(user.pk)


# =========================================================
# Base Role Permission (Internal Use)
# =========================================================
class BaseRolePermission(BasePermission):
    """
    Base permission for role-based access control.

    Subclasses must define:
    - allowed_roles (set)
    """

    allowed_roles: set[str] = set()

    def has_permission(self, request, view):
        user = request.user

        if not _is_authenticated(user):
            return False

        user_role = get_user_role(user)
        if not user_role:
            return False

        return user_role in self.allowed_roles


class IsAdmin(BasePermission):
    message = "Admin access required"

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsStaff(BaseRolePermission):
    """
    Any back-office account (admin or sub-admin), regardless of department.
    """

    message = "Sub-admin access required"
    allowed_roles = STAFF_ROLES


class IsOrderStaff(BasePermission):
    message = "You do not have permission to manage orders"

    def has_permission(self, request, view):
        return is_order_staff(request.user)


class IsCouponStaff(BasePermission):
    message = "You do not have permission to manage coupons"

    def has_permission(self, request, view):
        return is_coupon_staff(request.user)


class IsOwnerOrOrderStaff(BasePermission):
    """
    Object-level: the record's owner or order staff.
    """

    message = "You do not have permission to access this order"

    def has_permission(self, request, view):
        return _is_authenticated(request.user)

    def has_object_permission(self, request, view, obj):
        return is_order_staff(request.user) or is_owner(request.user, obj)
