# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (MARKETPLACE PARTIES)
# =========================================================
ROLE_CUSTOMER = "customer"
ROLE_VENDOR = "vendor"
ROLE_ADMIN = "admin"


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
# Order placement and status changes are authorized by the order services
# (customer / owning vendor), so they carry no capability here.
CAP_EARNINGS_VIEW_OWN = "earnings.view_own"
CAP_EARNINGS_VIEW_PLATFORM = "earnings.view_platform"


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_CUSTOMER: set(),
    ROLE_VENDOR: {
        CAP_EARNINGS_VIEW_OWN,
    },
    ROLE_ADMIN: {
        # Admins read platform money; they do not drive vendor work.
        CAP_EARNINGS_VIEW_PLATFORM,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def capabilities_for(user) -> set[str]:
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


# =========================================================
# Capability Permission
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        required_capability = CAP_EARNINGS_VIEW_OWN
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return required in capabilities_for(user)
