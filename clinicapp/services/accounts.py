"""
Account services: credential checks, registration, sessions, password
reset and the admin side of account management.
"""
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from clinicapp.exceptions import Conflict, InvalidArgument, NotFound, Unauthorized
from clinicapp.models import Account, PatientProfile, STATUS_APPROVED, STATUS_PENDING, normalize_email
from clinicapp.services.audit import log_action

logger = logging.getLogger(__name__)

REGISTER_ROLES = {Account.ROLE_PATIENT, Account.ROLE_USER}
ADMIN_ASSIGNABLE_ROLES = {Account.ROLE_ADMIN, Account.ROLE_DOCTOR, Account.ROLE_PATIENT, Account.ROLE_USER}
RESET_MESSAGE = 'If the email is registered, a reset link has been sent.'


def _check_password(password: str, account: Account | None = None) -> None:
    try:
        validate_password(password, account)
    except ValidationError as e:
        raise InvalidArgument({'password': e.messages})


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def authenticate_credentials(request, email: str, password: str) -> Account:
    """Return the account for ``email``/``password`` or raise ``Unauthorized``.

    Unknown email, wrong password and disabled account all fail with the
    same error.
    """
    account = authenticate(request, username=normalize_email(email), password=password)
    if account is None:
        raise Unauthorized()
    return account


def issue_session(account: Account) -> dict:
    """Mint a refresh/access token pair carrying the role and email claims."""
    refresh = RefreshToken.for_user(account)
    refresh['role'] = account.role
    refresh['email'] = account.email
    access = refresh.access_token
    return {
        'access': str(access),
        'refresh': str(refresh),
        'expiresIn': int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
    }


def register_account(*, email: str, password: str, name: str = '', role: str = Account.ROLE_USER) -> Account:
    """Self service registration for patients and unapproved users."""
    role = role or Account.ROLE_USER
    if role not in REGISTER_ROLES:
        raise InvalidArgument({'role': 'Self registration is limited to patient or user.'})
    email = normalize_email(email)
    if Account.objects.filter(email=email).exists():
        raise Conflict('An account already uses this email.')
    _check_password(password)
    try:
        with transaction.atomic():
            account = Account.objects.create_user(
                email=email, password=password, name=(name or '').strip(), role=role,
                account_status=STATUS_APPROVED if role == Account.ROLE_PATIENT else STATUS_PENDING,
            )
            if role == Account.ROLE_PATIENT:
                PatientProfile.objects.create(account=account)
    except IntegrityError:
        raise Conflict('An account already uses this email.')
    log_action(user=account, action='register', object_type='account', object_id=account.id,
               detail={'role': role})
    return account


def request_password_reset(email: str) -> str:
    """Store a one hour reset token when ``email`` belongs to an account.

    Always returns the same message so callers cannot probe for accounts.
    """
    account = Account.objects.filter(email=normalize_email(email), is_active=True).first()
    if account is not None:
        token = secrets.token_urlsafe(32)
        account.reset_token_hash = _hash_token(token)
        account.reset_expires = timezone.now() + timedelta(hours=1)
        account.save(update_fields=['reset_token_hash', 'reset_expires'])
        log_action(user=account, action='password_reset_request', object_type='account', object_id=account.id)
        # delivery is left to the deployment (mailer, support desk)
        logger.debug('password reset token for account %s: %s', account.id, token)
    return RESET_MESSAGE


def reset_password(token: str, new_password: str) -> Account:
    account = Account.objects.filter(
        reset_token_hash=_hash_token(token or ''), reset_expires__gt=timezone.now(),
    ).first()
    if account is None:
        raise InvalidArgument('Invalid or expired token.')
    _check_password(new_password, account)
    account.set_password(new_password)
    account.reset_token_hash = None
    account.reset_expires = None
    account.save(update_fields=['password', 'reset_token_hash', 'reset_expires'])
    log_action(user=account, action='password_reset', object_type='account', object_id=account.id)
    return account


# ---------------------------------------------------------------------
# Admin account management
# ---------------------------------------------------------------------
def get_account(account_id: int) -> Account:
    account = Account.objects.filter(pk=account_id).first()
    if account is None:
        raise NotFound('Account not found.')
    return account


def create_account(admin: Account, *, email, password, name='', role=Account.ROLE_USER) -> Account:
    if role not in ADMIN_ASSIGNABLE_ROLES:
        raise InvalidArgument({'role': 'Unknown role.'})
    email = normalize_email(email)
    if Account.objects.filter(email=email).exists():
        raise Conflict('An account already uses this email.')
    _check_password(password)
    try:
        with transaction.atomic():
            account = Account.objects.create_user(
                email=email, password=password, name=(name or '').strip(), role=role,
                account_status=STATUS_PENDING if role == Account.ROLE_USER else STATUS_APPROVED,
                is_staff=(role == Account.ROLE_ADMIN),
            )
            if role == Account.ROLE_PATIENT:
                PatientProfile.objects.create(account=account)
    except IntegrityError:
        raise Conflict('An account already uses this email.')
    log_action(user=admin, action='account_create', object_type='account', object_id=account.id,
               detail={'role': role})
    return account


def update_account(admin: Account, account_id: int, **fields) -> Account:
    account = get_account(account_id)
    changed = []
    if fields.get('email'):
        email = normalize_email(fields['email'])
        if email != account.email:
            if Account.objects.filter(email=email).exclude(pk=account.pk).exists():
                raise Conflict('An account already uses this email.')
            account.email = email
            changed.append('email')
    if fields.get('name') is not None:
        account.name = fields['name'].strip()
        changed.append('name')
    if fields.get('role'):
        if fields['role'] not in ADMIN_ASSIGNABLE_ROLES:
            raise InvalidArgument({'role': 'Unknown role.'})
        account.role = fields['role']
        account.is_staff = account.role == Account.ROLE_ADMIN
        changed += ['role', 'is_staff']
    if changed:
        try:
            with transaction.atomic():
                account.save(update_fields=changed)
        except IntegrityError:
            raise Conflict('An account already uses this email.')
        log_action(user=admin, action='account_update', object_type='account', object_id=account.id,
                   detail={'fields': changed})
    return account


def disable_account(admin: Account, account_id: int) -> Account:
    """Accounts are never deleted through the API, only switched off."""
    account = get_account(account_id)
    if account.pk == admin.pk:
        raise InvalidArgument('Administrators cannot disable their own account.')
    if account.is_active:
        account.is_active = False
        account.save(update_fields=['is_active'])
        log_action(user=admin, action='account_disable', object_type='account', object_id=account.id)
    return account
