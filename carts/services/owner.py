# carts/services/owner.py

"""
OWNER RESOLUTION (cart + guest checkout)

Priority:
1) authenticated user
2) X-Guest-Session-Id header
3) guest_session_id in query params / body
"""

from __future__ import annotations

from dataclasses import dataclass

from carts.services.exceptions import OwnerRequiredError

GUEST_HEADER = "HTTP_X_GUEST_SESSION_ID"
MAX_GUEST_SESSION_LENGTH = 64


@dataclass(frozen=True)
class Owner:
    user: object = None
    guest_session_id: str = ""

    @property
    def is_guest(self) -> bool:
        return self.user is None

    def as_filter(self) -> dict:
        if self.user is not None:
            return {"user": self.user}
        return {"guest_session_id": self.guest_session_id}


def _clean_session_id(value) -> str:
    value = str(value or "").strip()
    if len(value) > MAX_GUEST_SESSION_LENGTH:
        raise OwnerRequiredError(f"guest_session_id must be at most {MAX_GUEST_SESSION_LENGTH} characters")
    return value


def resolve_owner(request) -> Owner:
    user = getattr(request, "user", None)
    if user is not None and getattr(user, "is_authenticated", False):
        return Owner(user=user)

    session_id = request.META.get(GUEST_HEADER) or request.query_params.get("guest_session_id")
    if not session_id and isinstance(request.data, dict):
        session_id = request.data.get("guest_session_id")

    session_id = _clean_session_id(session_id)
    if not session_id:
        raise OwnerRequiredError()
    return Owner(guest_session_id=session_id)
