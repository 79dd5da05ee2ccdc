from django.db import transaction

from clinicapp.exceptions import NotFound
from clinicapp.models import DoctorProfile, DoctorRequest, STATUS_PENDING
from clinicapp.services.audit import log_action


def profile_queryset():
    return DoctorProfile.objects.select_related('account')


def format_doctor(p: DoctorProfile) -> dict:
    return {
        'id': p.id,
        'accountId': p.account_id,
        'email': p.account.email,
        'name': p.account.get_full_name(),
        'specialty': p.specialty,
        'licenseNumber': p.license_number,
        'nationalId': p.national_id,
        'phone': p.phone,
        'licenseDocument': p.license_document or None,
        'status': p.status,
        'accountStatus': p.account.account_status,
        'createdAt': p.created_at.isoformat(),
    }


def format_request(r: DoctorRequest) -> dict:
    # password_hash never leaves the server
    return {
        'id': r.id,
        'email': r.email,
        'name': r.name,
        'specialty': r.specialty,
        'licenseNumber': r.license_number,
        'phone': r.phone,
        'status': r.status,
        'decidedBy': r.decided_by_id,
        'decidedAt': r.decided_at.isoformat() if r.decided_at else None,
        'rejectionReason': r.rejection_reason or None,
        'accountId': r.account_id,
        'createdAt': r.created_at.isoformat(),
    }


def list_doctors(*, status=None, q=None):
    qs = profile_queryset().filter(account__is_active=True)
    if status:
        qs = qs.filter(status=status)
    if q:
        qs = qs.filter(account__name__icontains=q) | qs.filter(specialty__icontains=q)
    return qs.order_by('account__name', 'id')


def pending_doctors():
    return list_doctors(status=STATUS_PENDING)


def get_doctor(profile_id: int) -> DoctorProfile:
    profile = profile_queryset().filter(pk=profile_id).first()
    if profile is None:
        raise NotFound('Doctor profile not found.')
    return profile


def update_doctor(admin, profile_id: int, **fields) -> DoctorProfile:
    """Edit descriptive profile fields; status goes through the onboarding service."""
    with transaction.atomic():
        profile = DoctorProfile.objects.select_for_update().filter(pk=profile_id).first()
        if profile is None:
            raise NotFound('Doctor profile not found.')
        changed = [k for k in ('specialty', 'phone', 'license_number', 'national_id') if k in fields]
        for key in changed:
            setattr(profile, key, fields[key])
        if changed:
            profile.save(update_fields=changed + ['updated_at'])
            log_action(user=admin, action='doctor_profile_update', object_type='doctor_profile',
                       object_id=profile.id, detail={'fields': changed})
    return get_doctor(profile_id)
