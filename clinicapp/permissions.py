"""
Custom permission classes for role based access control.

Roles form a small hierarchy: an administrator passes every doctor and
patient check, and a doctor passes every patient check.  Doctor level
checks also require the doctor's profile to still be approved, so an
admin flipping a profile back to pending locks the doctor out on the
next request.
"""
from rest_framework.exceptions import NotAuthenticated
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .exceptions import Forbidden
from .models import Account, STATUS_APPROVED

ADMIN_ROLES = {Account.ROLE_ADMIN}
DOCTOR_ROLES = {Account.ROLE_ADMIN, Account.ROLE_DOCTOR}
PATIENT_ROLES = {Account.ROLE_ADMIN, Account.ROLE_DOCTOR, Account.ROLE_PATIENT}


def doctor_is_approved(user) -> bool:
    """True when ``user`` holds a doctor profile in the approved state."""
    profile = getattr(user, 'doctor_profile', None)
    return bool(profile and profile.status == STATUS_APPROVED)


def has_role(user, roles) -> bool:
    if not (user and user.is_authenticated):
        return False
    role = getattr(user, 'role', None)
    if role not in roles:
        return False
    # admins are never gated on a doctor profile
    if role == Account.ROLE_DOCTOR:
        return doctor_is_approved(user)
    return True


def ensure_role(user, roles) -> None:
    """Raise unless ``user`` satisfies one of ``roles``.

    For views that accept several methods with different requirements.
    """
    if not (user and user.is_authenticated):
        raise NotAuthenticated()
    if not has_role(user, roles):
        raise Forbidden()


class IsAdminRole(BasePermission):
    """Allow access only to administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return has_role(getattr(request, 'user', None), ADMIN_ROLES)


class IsDoctorRole(BasePermission):
    """Approved doctors and administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return has_role(getattr(request, 'user', None), DOCTOR_ROLES)


class IsPatientRole(BasePermission):
    """Patients, approved doctors and administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return has_role(getattr(request, 'user', None), PATIENT_ROLES)


class IsDoctorOrReadOnly(BasePermission):
    """Reads for any signed-in account, writes for doctors and up."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, 'user', None)
        if request.method in SAFE_METHODS:
            return bool(user and user.is_authenticated)
        return has_role(user, DOCTOR_ROLES)
