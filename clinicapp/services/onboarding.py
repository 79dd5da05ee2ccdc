"""
Doctor onboarding workflow.

A doctor application moves ``pending -> approved`` or
``pending -> rejected`` exactly once.  Approval creates the doctor's
account and profile in the same transaction that claims the request, so
either all three rows change or none do.  Claiming is a conditional
update on ``status='pending'``; of two concurrent approvals only one
sees its row updated and the other gets ``NotFound``.

The login gate decides, for a doctor who has proved their password,
whether a session may be issued.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth.hashers import make_password
from django.db import IntegrityError, transaction
from django.utils import timezone

from clinicapp.exceptions import Conflict, Forbidden, InvalidArgument, NotFound
from clinicapp.models import (
    Account,
    APPROVAL_STATUSES,
    DoctorProfile,
    DoctorRequest,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    normalize_email,
)
from clinicapp.services.audit import log_action
from clinicapp.services.notifications import broadcast_admin_event

logger = logging.getLogger(__name__)

GATE_OK = 'ok'
GATE_NEEDS_PROFILE = 'needs_profile'
GATE_AWAITING_APPROVAL = 'awaiting_approval'

_REQUIRED_FIELDS = ('email', 'password', 'name', 'specialty', 'license_number')


@dataclass(frozen=True)
class LoginGate:
    outcome: str
    status: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome == GATE_OK


def _email_in_use(email: str) -> bool:
    if Account.objects.filter(email=email).exists():
        return True
    return DoctorRequest.objects.filter(email=email, status=STATUS_PENDING).exists()


def submit_request(*, email, password, name, specialty, license_number, phone='') -> DoctorRequest:
    """Store a pending doctor application.  No account is created."""
    values = {'email': email, 'password': password, 'name': name,
              'specialty': specialty, 'license_number': license_number}
    missing = [k for k in _REQUIRED_FIELDS if not (values[k] or '').strip()]
    if missing:
        raise InvalidArgument({k: 'This field is required.' for k in missing})

    email = normalize_email(email)
    if _email_in_use(email):
        raise Conflict('An account or pending request already uses this email.')

    try:
        with transaction.atomic():
            req = DoctorRequest.objects.create(
                email=email,
                password_hash=make_password(password),
                name=name.strip(),
                specialty=specialty.strip(),
                license_number=license_number.strip(),
                phone=(phone or '').strip(),
            )
    except IntegrityError:
        # lost the race against a concurrent submission for the same email
        raise Conflict('An account or pending request already uses this email.')

    log_action(user=None, action='doctor_request_submit', object_type='doctor_request',
               object_id=req.id, detail={'email': email})
    broadcast_admin_event('doctor_request.submitted', id=req.id, email=email, applicant=req.name)
    return req


def _claim(request_id: int, admin: Account, new_status: str, reason: str = '') -> DoctorRequest:
    now = timezone.now()
    claimed = DoctorRequest.objects.filter(pk=request_id, status=STATUS_PENDING).update(
        status=new_status, decided_by=admin, decided_at=now, rejection_reason=reason,
    )
    if claimed == 0:
        raise NotFound('No pending doctor request with this id.')
    return DoctorRequest.objects.get(pk=request_id)


def approve_request(request_id: int, admin: Account) -> DoctorRequest:
    """Approve a pending request, creating the doctor's account and profile."""
    try:
        with transaction.atomic():
            req = _claim(request_id, admin, STATUS_APPROVED)
            if Account.objects.filter(email=req.email).exists():
                raise Conflict('An account already uses this email.')
            account = Account(
                email=req.email,
                name=req.name,
                role=Account.ROLE_DOCTOR,
                account_status=STATUS_APPROVED,
                password=req.password_hash,
            )
            account.save()
            DoctorProfile.objects.create(
                account=account,
                specialty=req.specialty,
                license_number=req.license_number,
                phone=req.phone,
                status=STATUS_APPROVED,
            )
            req.account = account
            req.save(update_fields=['account'])
            log_action(user=admin, action='doctor_request_approve', object_type='doctor_request',
                       object_id=req.id, detail={'account': account.id})
            broadcast_admin_event('doctor_request.approved', id=req.id, account=account.id)
    except IntegrityError:
        logger.info('approval of doctor request %s hit a duplicate email', request_id)
        raise Conflict('An account already uses this email.')
    logger.info('doctor request %s approved by %s', request_id, admin.id)
    return req


def reject_request(request_id: int, admin: Account, reason: str = '') -> DoctorRequest:
    """Reject a pending request.  Nothing besides the request changes."""
    with transaction.atomic():
        req = _claim(request_id, admin, STATUS_REJECTED, (reason or '').strip())
        log_action(user=admin, action='doctor_request_reject', object_type='doctor_request',
                   object_id=req.id, detail={'reason': req.rejection_reason})
        broadcast_admin_event('doctor_request.rejected', id=req.id)
    logger.info('doctor request %s rejected by %s', request_id, admin.id)
    return req


def evaluate_login_gate(account: Account) -> LoginGate:
    """Decide whether a doctor who authenticated may receive a session.

    An existing profile always decides.  Without one, the latest
    application for the same email is consulted.
    """
    profile = DoctorProfile.objects.filter(account=account).only('status').first()
    if profile is None:
        latest = (DoctorRequest.objects.filter(email=account.email)
                  .order_by('-created_at', '-id').only('status').first())
        if latest and latest.status in (STATUS_PENDING, STATUS_REJECTED):
            return LoginGate(GATE_AWAITING_APPROVAL, latest.status)
        return LoginGate(GATE_NEEDS_PROFILE)
    if profile.status != STATUS_APPROVED:
        return LoginGate(GATE_AWAITING_APPROVAL, profile.status)
    return LoginGate(GATE_OK, profile.status)


def update_profile_status(profile_id: int, new_status: str, admin: Account) -> DoctorProfile:
    """Override a doctor profile status, keeping the account status in step.

    ``pending`` leaves the account status as it was.
    """
    new_status = (new_status or '').strip().lower()
    if new_status not in APPROVAL_STATUSES:
        raise InvalidArgument({'status': 'Must be one of pending, approved, rejected.'})

    with transaction.atomic():
        profile = DoctorProfile.objects.select_for_update().filter(pk=profile_id).first()
        if profile is None:
            raise NotFound('Doctor profile not found.')
        previous = profile.status
        profile.status = new_status
        profile.save(update_fields=['status', 'updated_at'])
        if new_status != STATUS_PENDING:
            Account.objects.filter(pk=profile.account_id).update(account_status=new_status)
        log_action(user=admin, action='doctor_profile_status', object_type='doctor_profile',
                   object_id=profile.id, detail={'from': previous, 'to': new_status})
        broadcast_admin_event('doctor_profile.status_changed', id=profile.id,
                              account=profile.account_id, status=new_status)
    return profile


def submit_profile(account: Account, *, specialty, national_id='', license_number='', phone='',
                   license_file=None, file_store=None) -> DoctorProfile:
    """Attach a pending doctor profile to an existing account.

    The account's role becomes ``doctor`` and its status ``pending``; an
    admin then decides through :func:`update_profile_status`.
    """
    if account.role == Account.ROLE_ADMIN:
        raise Forbidden('Administrator accounts cannot become doctors.')
    if not (specialty or '').strip():
        raise InvalidArgument({'specialty': 'This field is required.'})
    if DoctorProfile.objects.filter(account=account).exists():
        raise Conflict('A doctor profile already exists for this account.')

    # upload first so a store outage leaves no half created profile behind
    document = ''
    if license_file is not None:
        if file_store is None:
            raise InvalidArgument('no file store configured for licence uploads')
        document = file_store.upload(license_file)

    try:
        with transaction.atomic():
            profile = DoctorProfile.objects.create(
                account=account,
                specialty=specialty.strip(),
                national_id=(national_id or '').strip(),
                license_number=(license_number or '').strip(),
                phone=(phone or '').strip(),
                license_document=document,
                status=STATUS_PENDING,
            )
            account.role = Account.ROLE_DOCTOR
            account.account_status = STATUS_PENDING
            account.save(update_fields=['role', 'account_status'])
            log_action(user=account, action='doctor_profile_submit', object_type='doctor_profile',
                       object_id=profile.id, detail={'document': bool(document)})
            broadcast_admin_event('doctor_profile.submitted', id=profile.id, account=account.id)
    except IntegrityError:
        if document:
            file_store.discard(document)
        raise Conflict('A doctor profile already exists for this account.')
    return profile
