import pytest
import requests
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from clinicapp.models import Account, AuditEvent, DoctorProfile
from clinicapp.services import accounts as account_service
from clinicapp.services.file_store import FileStoreClient
from clinicapp.throttles import LoginRateThrottle

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def login(client, email, password=PASSWORD):
    return client.post(reverse('login_view'), {'email': email, 'password': password}, format='json')


def test_register_patient_then_login(api_client):
    r = api_client.post(reverse('register_view'),
                        {'email': 'New@Clinic.test', 'password': PASSWORD, 'name': 'Nia', 'role': 'patient'},
                        format='json')
    assert r.status_code == 201
    assert r.data['user']['email'] == 'new@clinic.test'
    assert r.data['user']['accountStatus'] == 'approved'
    assert Account.objects.get(email='new@clinic.test').patient_profile

    r = login(api_client, 'new@clinic.test')
    assert r.status_code == 200
    assert r.data['ok'] is True
    assert r.data['access'] and r.data['refresh']
    assert r.data['role'] == 'patient'
    assert 'doctorStatus' not in r.data


def test_register_rejects_privileged_roles(api_client):
    r = api_client.post(reverse('register_view'),
                        {'email': 'x@clinic.test', 'password': PASSWORD, 'role': 'admin'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid_argument'
    assert not Account.objects.filter(email='x@clinic.test').exists()


def test_register_duplicate_email_conflicts(api_client, patient):
    r = api_client.post(reverse('register_view'),
                        {'email': patient.email, 'password': PASSWORD}, format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'conflict'


def test_bad_credentials_share_one_message(api_client, patient):
    wrong_password = login(api_client, patient.email, 'not-the-password')
    unknown_email = login(api_client, 'ghost@clinic.test')
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.data['error'] == unknown_email.data['error']
    assert AuditEvent.objects.filter(action='login', detail__result='fail').count() == 2


def test_disabled_account_cannot_login(api_client, patient):
    patient.is_active = False
    patient.save()
    assert login(api_client, patient.email).status_code == 401


def test_login_requires_both_fields(api_client):
    r = api_client.post(reverse('login_view'), {'email': 'a@clinic.test'}, format='json')
    assert r.status_code == 400


# ---------------------------------------------------------------------
# doctor login gate over HTTP
# ---------------------------------------------------------------------
def test_doctor_without_profile_is_told_to_submit_one(api_client, make_account):
    make_account('fresh@clinic.test', Account.ROLE_DOCTOR)
    r = login(api_client, 'fresh@clinic.test')
    assert r.status_code == 200
    assert r.data['needsDoctorProfile'] is True
    assert r.data['doctorStatus'] == 'not exist'
    assert 'access' not in r.data


@pytest.mark.parametrize('status', ['pending', 'rejected'])
def test_doctor_awaiting_approval_gets_no_session(api_client, make_account, status):
    account = make_account('wait@clinic.test', Account.ROLE_DOCTOR, status=status)
    DoctorProfile.objects.create(account=account, specialty='ENT', status=status)
    r = login(api_client, 'wait@clinic.test')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'awaiting_approval'
    assert r.data['doctorStatus'] == status
    assert 'access' not in r.data


def test_approved_doctor_login_reports_status(api_client, doctor):
    r = login(api_client, doctor.email)
    assert r.status_code == 200
    assert r.data['role'] == 'doctor'
    assert r.data['doctorStatus'] == 'approved'


def test_request_approval_then_login(api_client, admin, auth_client):
    r = api_client.post(reverse('doctor_requests'), {
        'email': 'apply@clinic.test', 'password': 'secret1', 'name': 'Ada',
        'specialty': 'Cardiology', 'licenseNumber': 'L123',
    }, format='json')
    assert r.status_code == 201
    request_id = r.data['requestId']
    assert login(api_client, 'apply@clinic.test', 'secret1').status_code == 401

    r = auth_client(admin).put(reverse('approve_doctor_request', args=[request_id]))
    assert r.status_code == 200
    assert r.data['request']['status'] == 'approved'
    assert 'passwordHash' not in r.data['request'] and 'password_hash' not in r.data['request']

    r = login(api_client, 'apply@clinic.test', 'secret1')
    assert r.status_code == 200
    assert r.data['user']['id'] == Account.objects.get(email='apply@clinic.test').id
    assert r.data['doctorStatus'] == 'approved'


def test_submitted_profile_waits_for_status_override(api_client, admin, auth_client, monkeypatch):
    uploads = []

    def fake_upload(self, upload):
        uploads.append(upload.name)
        return 'store://licences/lic.pdf'

    monkeypatch.setattr(FileStoreClient, 'upload', fake_upload)
    api_client.post(reverse('register_view'),
                    {'email': 'late@clinic.test', 'password': PASSWORD, 'name': 'Lee'}, format='json')

    r = api_client.post(reverse('auth_doctors_view'), {
        'email': 'late@clinic.test',
        'password': PASSWORD,
        'speciality': 'Dermatology',
        'license_number': 'D-77',
        'licence_file': SimpleUploadedFile('lic.pdf', b'%PDF-1.4 test', content_type='application/pdf'),
    }, format='multipart')
    assert r.status_code == 201
    doctor = r.data['doctor']
    assert doctor['specialty'] == 'Dermatology'
    assert doctor['status'] == 'pending'
    assert doctor['licenseDocument'] == 'store://licences/lic.pdf'
    assert uploads == ['lic.pdf']

    r = login(api_client, 'late@clinic.test')
    assert r.status_code == 403
    assert r.data['doctorStatus'] == 'pending'

    r = auth_client(admin).patch(reverse('doctor_status', args=[doctor['id']]), {'status': 'Approved'}, format='json')
    assert r.status_code == 200
    assert r.data['doctor']['status'] == 'approved'
    assert r.data['doctor']['accountStatus'] == 'approved'

    assert login(api_client, 'late@clinic.test').status_code == 200


def test_profile_submission_checks_credentials(api_client, patient):
    r = api_client.post(reverse('auth_doctors_view'), {
        'email': patient.email, 'password': 'wrong-one', 'specialty': 'ENT',
    }, format='multipart')
    assert r.status_code == 401
    assert not DoctorProfile.objects.exists()


def test_profile_submission_rejects_non_pdf(api_client, patient):
    r = api_client.post(reverse('auth_doctors_view'), {
        'email': patient.email, 'password': PASSWORD, 'specialty': 'ENT',
        'licence_file': SimpleUploadedFile('lic.txt', b'hello', content_type='text/plain'),
    }, format='multipart')
    assert r.status_code == 400
    assert not DoctorProfile.objects.exists()


def test_second_profile_submission_conflicts(api_client, doctor):
    r = api_client.post(reverse('auth_doctors_view'), {
        'email': doctor.email, 'password': PASSWORD, 'specialty': 'ENT',
    }, format='multipart')
    assert r.status_code == 409


# ---------------------------------------------------------------------
# session lifecycle
# ---------------------------------------------------------------------
def test_refresh_and_logout(api_client, patient):
    tokens = login(api_client, patient.email).data

    r = api_client.post(reverse('jwt_refresh_view'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['ok'] is True and r.data['access']

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    r = api_client.post(reverse('jwt_logout_view'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] == 1

    api_client.credentials()
    r = api_client.post(reverse('jwt_refresh_view'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 401


def test_logout_refuses_foreign_refresh_token(auth_client, patient, doctor):
    foreign = account_service.issue_session(doctor)['refresh']
    r = auth_client(patient).post(reverse('jwt_logout_view'), {'refresh': foreign}, format='json')
    assert r.status_code == 400


def test_me_includes_doctor_status(auth_client, doctor):
    r = auth_client(doctor).get(reverse('me_view'))
    assert r.status_code == 200
    assert r.data['user']['email'] == doctor.email
    assert r.data['user']['doctorStatus'] == 'approved'


def test_password_reset_flow(api_client, patient, monkeypatch):
    monkeypatch.setattr(account_service.secrets, 'token_urlsafe', lambda n: 'reset-token-abc')

    known = api_client.post(reverse('forgot_password_view'), {'email': patient.email}, format='json')
    unknown = api_client.post(reverse('forgot_password_view'), {'email': 'ghost@clinic.test'}, format='json')
    assert known.status_code == unknown.status_code == 200
    assert known.data['message'] == unknown.data['message']

    r = api_client.post(reverse('reset_password_view'), {'token': 'wrong', 'password': 'An0ther-Pass!'}, format='json')
    assert r.status_code == 400

    r = api_client.post(reverse('reset_password_view'),
                        {'token': 'reset-token-abc', 'password': 'An0ther-Pass!'}, format='json')
    assert r.status_code == 200
    assert login(api_client, patient.email, 'An0ther-Pass!').status_code == 200
    assert login(api_client, patient.email).status_code == 401

    # tokens are single use
    r = api_client.post(reverse('reset_password_view'),
                        {'token': 'reset-token-abc', 'password': 'Th1rd-Pass!'}, format='json')
    assert r.status_code == 400


def test_login_is_throttled(api_client, patient, monkeypatch):
    monkeypatch.setattr(LoginRateThrottle, 'THROTTLE_RATES', {'login': '2/min'})
    codes = [login(api_client, patient.email, 'nope').status_code for _ in range(3)]
    assert codes == [401, 401, 429]


def test_ampersands_survive_into_approved_profile(api_client, admin, auth_client):
    r = api_client.post(reverse('doctor_requests'), {
        'email': 'amp@clinic.test', 'password': 'secret1', 'name': 'Bo & Co',
        'specialty': 'Ear, Nose & Throat', 'licenseNumber': 'L<1>',
    }, format='json')
    assert r.status_code == 201
    auth_client(admin).put(reverse('approve_doctor_request', args=[r.data['requestId']]))

    profile = DoctorProfile.objects.select_related('account').get(account__email='amp@clinic.test')
    assert profile.specialty == 'Ear, Nose & Throat'
    assert profile.account.name == 'Bo & Co'


def test_admin_cannot_submit_doctor_profile(api_client, admin):
    r = api_client.post(reverse('auth_doctors_view'), {
        'email': admin.email, 'password': PASSWORD, 'specialty': 'ENT',
    }, format='multipart')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'forbidden'
    admin.refresh_from_db()
    assert admin.role == Account.ROLE_ADMIN


def test_file_store_timeout_is_reported_as_unavailable(api_client, patient, monkeypatch):
    def stalled(self, upload):
        raise requests.Timeout('read timed out')

    monkeypatch.setattr(FileStoreClient, 'upload', stalled)
    r = api_client.post(reverse('auth_doctors_view'), {
        'email': patient.email, 'password': PASSWORD, 'specialty': 'ENT',
        'licence_file': SimpleUploadedFile('lic.pdf', b'%PDF-1.4', content_type='application/pdf'),
    }, format='multipart')
    assert r.status_code == 503
    assert r.data['error']['code'] == 'timeout'
    assert not DoctorProfile.objects.exists()
    patient.refresh_from_db()
    assert patient.role == Account.ROLE_PATIENT
