"""Doctor onboarding workflow: requests, approval, rejection and the login gate."""
import pytest
from django.contrib.auth.hashers import check_password
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError, transaction

from clinicapp.exceptions import Conflict, Forbidden, InvalidArgument, NotFound
from clinicapp.models import Account, AuditEvent, DoctorProfile, DoctorRequest, STATUS_APPROVED
from clinicapp.services import notifications, onboarding
from clinicapp.services.file_store import FileStoreClient

pytestmark = pytest.mark.django_db

APPLICATION = {
    'email': 'a@x.com',
    'password': 'secret1',
    'name': 'Ada Heart',
    'specialty': 'Cardiology',
    'license_number': 'L123',
    'phone': '555-0101',
}


def submit(**overrides):
    return onboarding.submit_request(**{**APPLICATION, **overrides})


def test_submit_stores_pending_request_without_account():
    req = submit()
    assert req.status == 'pending'
    assert req.password_hash != 'secret1'
    assert check_password('secret1', req.password_hash)
    assert not Account.objects.filter(email='a@x.com').exists()
    assert DoctorRequest.objects.count() == 1


@pytest.mark.parametrize('field', ['email', 'password', 'name', 'specialty', 'license_number'])
def test_submit_requires_every_mandatory_field(field):
    with pytest.raises(InvalidArgument):
        submit(**{field: '  '})
    assert DoctorRequest.objects.count() == 0


def test_duplicate_pending_submission_conflicts():
    submit()
    with pytest.raises(Conflict):
        submit(email='A@X.com')
    assert DoctorRequest.objects.count() == 1


def test_submission_for_existing_account_conflicts(make_account):
    make_account('a@x.com')
    with pytest.raises(Conflict):
        submit()


def test_resubmission_allowed_after_rejection(admin):
    first = submit()
    onboarding.reject_request(first.id, admin, 'incomplete')
    second = submit()
    assert second.status == 'pending'


def test_pending_email_unique_at_database_level():
    submit()
    with pytest.raises(IntegrityError), transaction.atomic():
        DoctorRequest.objects.create(email='a@x.com', password_hash='x', name='n',
                                     specialty='s', license_number='l')


def test_approve_creates_account_and_profile(admin):
    req = submit()
    approved = onboarding.approve_request(req.id, admin)

    account = Account.objects.get(email='a@x.com')
    assert account.role == Account.ROLE_DOCTOR
    assert account.account_status == STATUS_APPROVED
    assert account.check_password('secret1')
    profile = DoctorProfile.objects.get(account=account)
    assert profile.status == STATUS_APPROVED
    assert (profile.specialty, profile.license_number, profile.phone) == ('Cardiology', 'L123', '555-0101')
    assert approved.status == 'approved'
    assert approved.decided_by == admin
    assert approved.decided_at is not None
    assert approved.account == account
    assert Account.objects.filter(email='a@x.com').count() == 1
    assert DoctorProfile.objects.filter(account__email='a@x.com').count() == 1


def test_scenario_approval_records_acting_admin(make_account):
    admin = make_account('seven@clinic.test', Account.ROLE_ADMIN, id=7)
    req = submit()
    assert DoctorRequest.objects.get(pk=req.id).status == 'pending'

    onboarding.approve_request(req.id, admin)

    account = Account.objects.get(email='a@x.com')
    assert (account.role, account.account_status) == ('doctor', 'approved')
    assert DoctorProfile.objects.get(account=account, specialty='Cardiology').status == 'approved'
    assert DoctorRequest.objects.get(pk=req.id).decided_by_id == 7


def test_second_approval_is_not_found(admin):
    req = submit()
    onboarding.approve_request(req.id, admin)
    with pytest.raises(NotFound):
        onboarding.approve_request(req.id, admin)
    assert Account.objects.filter(email='a@x.com').count() == 1
    assert DoctorProfile.objects.count() == 1


def test_approve_unknown_request_is_not_found(admin):
    with pytest.raises(NotFound):
        onboarding.approve_request(999, admin)


def test_approval_rolls_back_when_email_taken(admin, make_account):
    req = submit()
    # account created behind the workflow's back after submission
    make_account('a@x.com')
    with pytest.raises(Conflict):
        onboarding.approve_request(req.id, admin)
    assert DoctorRequest.objects.get(pk=req.id).status == 'pending'
    assert DoctorProfile.objects.count() == 0
    assert not AuditEvent.objects.filter(action='doctor_request_approve').exists()


def test_reject_creates_nothing(admin):
    req = submit()
    rejected = onboarding.reject_request(req.id, admin, 'licence not verifiable')
    assert rejected.status == 'rejected'
    assert rejected.rejection_reason == 'licence not verifiable'
    assert rejected.decided_by == admin
    assert not Account.objects.filter(email='a@x.com').exists()
    assert DoctorProfile.objects.count() == 0


def test_rejected_request_cannot_be_approved_or_rejected_again(admin):
    req = submit()
    onboarding.reject_request(req.id, admin, '')
    with pytest.raises(NotFound):
        onboarding.approve_request(req.id, admin)
    with pytest.raises(NotFound):
        onboarding.reject_request(req.id, admin, 'again')


# ---------------------------------------------------------------------
# login gate
# ---------------------------------------------------------------------
def test_gate_needs_profile_without_profile_or_request(make_account):
    account = make_account('lone@clinic.test', Account.ROLE_DOCTOR)
    gate = onboarding.evaluate_login_gate(account)
    assert gate.outcome == onboarding.GATE_NEEDS_PROFILE
    assert not gate.allowed


@pytest.mark.parametrize('status', ['pending', 'rejected'])
def test_gate_awaits_approval_for_undecided_profiles(make_account, status):
    account = make_account('p@clinic.test', Account.ROLE_DOCTOR, status=status)
    DoctorProfile.objects.create(account=account, specialty='ENT', status=status)
    gate = onboarding.evaluate_login_gate(account)
    assert gate.outcome == onboarding.GATE_AWAITING_APPROVAL
    assert gate.status == status


def test_gate_ok_for_approved_profile(doctor):
    assert onboarding.evaluate_login_gate(doctor).allowed


def test_gate_consults_request_when_no_profile(make_account, admin):
    req = submit(email='legacy@clinic.test')
    onboarding.reject_request(req.id, admin, '')
    account = make_account('legacy@clinic.test', Account.ROLE_DOCTOR)
    gate = onboarding.evaluate_login_gate(account)
    assert (gate.outcome, gate.status) == (onboarding.GATE_AWAITING_APPROVAL, 'rejected')


def test_existing_profile_wins_over_request(make_account, admin):
    req = submit(email='drift@clinic.test')
    onboarding.reject_request(req.id, admin, '')
    account = make_account('drift@clinic.test', Account.ROLE_DOCTOR)
    DoctorProfile.objects.create(account=account, specialty='ENT', status=STATUS_APPROVED)
    assert onboarding.evaluate_login_gate(account).allowed


# ---------------------------------------------------------------------
# direct status override
# ---------------------------------------------------------------------
def test_update_profile_status_syncs_account(doctor, admin):
    profile = doctor.doctor_profile
    onboarding.update_profile_status(profile.id, 'REJECTED', admin)
    doctor.refresh_from_db()
    profile.refresh_from_db()
    assert profile.status == 'rejected'
    assert doctor.account_status == 'rejected'


def test_update_profile_status_pending_leaves_account(doctor, admin):
    onboarding.update_profile_status(doctor.doctor_profile.id, 'pending', admin)
    doctor.refresh_from_db()
    assert DoctorProfile.objects.get(account=doctor).status == 'pending'
    assert doctor.account_status == 'approved'


def test_update_profile_status_validates(doctor, admin):
    with pytest.raises(InvalidArgument):
        onboarding.update_profile_status(doctor.doctor_profile.id, 'archived', admin)
    with pytest.raises(NotFound):
        onboarding.update_profile_status(12345, 'approved', admin)


# ---------------------------------------------------------------------
# admin feed
# ---------------------------------------------------------------------
@pytest.fixture
def sent(monkeypatch):
    events = []
    monkeypatch.setattr(notifications, '_send', events.append)
    return events


def test_events_go_out_after_commit(admin, sent, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        req = submit()
    with django_capture_on_commit_callbacks(execute=True):
        onboarding.approve_request(req.id, admin)
    assert [e['event'] for e in sent] == ['doctor_request.submitted', 'doctor_request.approved']
    assert sent[0]['data'] == {'id': req.id, 'email': 'a@x.com', 'applicant': 'Ada Heart'}
    assert sent[1]['type'] == 'admin.event'
    assert sent[1]['data']['id'] == req.id


def test_rolled_back_approval_sends_nothing(admin, make_account, sent, django_capture_on_commit_callbacks):
    req = submit()
    make_account('a@x.com')
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(Conflict):
            onboarding.approve_request(req.id, admin)
    assert callbacks == []
    assert sent == []


# ---------------------------------------------------------------------
# profile-first submission
# ---------------------------------------------------------------------
class RecordingStore:
    def __init__(self):
        self.discarded = []

    def upload(self, upload):
        return f'licences/{upload.name}'

    def discard(self, reference):
        self.discarded.append(reference)


def test_admin_cannot_submit_doctor_profile(admin):
    with pytest.raises(Forbidden):
        onboarding.submit_profile(admin, specialty='ENT')
    admin.refresh_from_db()
    assert admin.role == Account.ROLE_ADMIN
    assert not DoctorProfile.objects.exists()


def test_failed_profile_insert_discards_upload(patient, monkeypatch):
    store = RecordingStore()

    def duplicate(**kwargs):
        raise IntegrityError('duplicate key value violates unique constraint')

    monkeypatch.setattr(DoctorProfile.objects, 'create', duplicate)
    with pytest.raises(Conflict):
        onboarding.submit_profile(patient, specialty='ENT', file_store=store,
                                  license_file=SimpleUploadedFile('lic.pdf', b'%PDF-1.4'))
    assert store.discarded == ['licences/lic.pdf']
    patient.refresh_from_db()
    assert patient.role == Account.ROLE_PATIENT


def test_default_storage_discard_removes_file(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    store = FileStoreClient(base_url=None)
    reference = store.upload(SimpleUploadedFile('lic.pdf', b'%PDF-1.4'))
    assert (tmp_path / reference).exists()
    store.discard(reference)
    assert not (tmp_path / reference).exists()
