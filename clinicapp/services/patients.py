import secrets

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from clinicapp.exceptions import Conflict, InvalidArgument, NotFound
from clinicapp.models import Account, PatientProfile, STATUS_APPROVED, normalize_email
from clinicapp.services.audit import log_action


def format_patient(profile: PatientProfile) -> dict:
    account = profile.account
    return {
        'id': account.id,
        'profileId': profile.id,
        'email': account.email,
        'name': account.get_full_name(),
        'phone': profile.phone,
        'dateOfBirth': profile.date_of_birth.isoformat() if profile.date_of_birth else None,
        'address': profile.address,
        'isActive': account.is_active,
        'createdAt': profile.created_at.isoformat(),
    }


def get_patient(account_id: int) -> PatientProfile:
    profile = PatientProfile.objects.select_related('account').filter(account_id=account_id).first()
    if not profile:
        raise NotFound('patient not found')
    return profile


def create_patient(current_user, *, email, name, phone='', date_of_birth=None, address='', password=None):
    # Validate or generate password
    if password:
        try:
            validate_password(password)
        except ValidationError as e:
            raise InvalidArgument({'password': e.messages})
    else:
        password = secrets.token_urlsafe(12)

    email = normalize_email(email)
    if Account.objects.filter(email=email).exists():
        raise Conflict('An account already uses this email.')

    try:
        with transaction.atomic():
            account = Account.objects.create_user(
                email=email, password=password, name=name,
                role=Account.ROLE_PATIENT, account_status=STATUS_APPROVED,
            )
            profile = PatientProfile.objects.create(
                account=account, phone=phone or '', date_of_birth=date_of_birth, address=address or '',
            )
    except IntegrityError:
        raise Conflict('An account already uses this email.')

    log_action(user=current_user, action='patient_create', object_type='account', object_id=account.id)
    # Return both objects and initial password for admin auditing/notification
    return account, profile, password


def update_patient(current_user, account_id: int, **fields) -> PatientProfile:
    profile = get_patient(account_id)
    if 'name' in fields:
        profile.account.name = fields.pop('name')
        profile.account.save(update_fields=['name'])
    changed = [k for k in ('phone', 'date_of_birth', 'address') if k in fields]
    for key in changed:
        setattr(profile, key, fields[key])
    if changed:
        profile.save(update_fields=changed)
    log_action(user=current_user, action='patient_update', object_type='account', object_id=account_id,
               detail={'fields': changed})
    return profile
