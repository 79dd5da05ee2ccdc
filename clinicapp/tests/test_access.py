"""Role hierarchy and error envelopes."""
import pytest
from django.db import IntegrityError, OperationalError
from django.urls import reverse

from clinicapp.models import Account, DoctorProfile
from clinicapp.services import onboarding

pytestmark = pytest.mark.django_db


def test_missing_token_is_unauthenticated(api_client):
    r = api_client.get(reverse('users'))
    assert r.status_code == 401
    assert r.data == {'ok': False, 'error': {'code': 'unauthenticated', 'message': r.data['error']['message']}}


def test_garbage_token_is_unauthenticated(api_client):
    api_client.credentials(HTTP_AUTHORIZATION='Bearer not.a.jwt')
    r = api_client.get(reverse('me_view'))
    assert r.status_code == 401
    assert r.data['ok'] is False


@pytest.mark.parametrize('role_fixture, expected', [
    ('admin', 200),
    ('doctor', 403),
    ('patient', 403),
])
def test_user_administration_is_admin_only(request, auth_client, role_fixture, expected):
    account = request.getfixturevalue(role_fixture)
    r = auth_client(account).get(reverse('users'))
    assert r.status_code == expected
    if expected == 403:
        assert r.data['error']['code'] == 'forbidden'


@pytest.mark.parametrize('role_fixture, expected', [
    ('admin', 200),
    ('doctor', 200),
    ('patient', 403),
])
def test_patient_list_needs_doctor_or_admin(request, auth_client, role_fixture, expected):
    account = request.getfixturevalue(role_fixture)
    assert auth_client(account).get(reverse('patients')).status_code == expected


def test_admin_passes_every_check(auth_client, admin):
    c = auth_client(admin)
    assert c.get(reverse('pending_doctors')).status_code == 200
    assert c.get(reverse('symptoms_today')).status_code == 200
    assert c.get(reverse('appointments')).status_code == 200


def test_only_admin_lists_doctor_requests(api_client, auth_client, doctor, admin):
    assert api_client.get(reverse('doctor_requests')).status_code == 401
    assert auth_client(doctor).get(reverse('doctor_requests')).status_code == 403
    r = auth_client(admin).get(reverse('doctor_requests'), {'status': 'pending'})
    assert r.status_code == 200
    assert r.data == []


def test_non_admin_cannot_decide_requests(auth_client, doctor):
    r = auth_client(doctor).put(reverse('approve_doctor_request', args=[1]))
    assert r.status_code == 403
    r = auth_client(doctor).patch(reverse('doctor_status', args=[doctor.doctor_profile.id]),
                                  {'status': 'approved'}, format='json')
    assert r.status_code == 403


def test_doctor_sent_back_to_pending_is_locked_out(auth_client, doctor, admin):
    c = auth_client(doctor)
    assert c.get(reverse('symptoms_today')).status_code == 200

    r = auth_client(admin).patch(reverse('doctor_status', args=[doctor.doctor_profile.id]),
                                 {'status': 'pending'}, format='json')
    assert r.status_code == 200
    assert r.data['doctor']['accountStatus'] == 'approved'

    assert c.get(reverse('symptoms_today')).status_code == 403


def test_unknown_status_override_is_rejected(auth_client, admin, doctor):
    r = auth_client(admin).patch(reverse('doctor_status', args=[doctor.doctor_profile.id]),
                                 {'status': 'archived'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid_argument'
    r = auth_client(admin).patch(reverse('doctor_status', args=[9999]), {'status': 'approved'}, format='json')
    assert r.status_code == 404
    assert r.data['error']['code'] == 'not_found'


def test_unapproved_doctor_fails_doctor_checks(auth_client, make_account):
    account = make_account('pend@clinic.test', Account.ROLE_DOCTOR, status='pending')
    DoctorProfile.objects.create(account=account, specialty='ENT', status='pending')
    assert auth_client(account).get(reverse('doctor_symptoms_today', args=[account.id])).status_code == 403


def test_disabled_account_token_stops_working(auth_client, admin, patient):
    c = auth_client(patient)
    assert c.get(reverse('me_view')).status_code == 200
    r = auth_client(admin).delete(reverse('user_detail', args=[patient.id]))
    assert r.status_code == 200
    assert r.data['user']['isActive'] is False
    assert c.get(reverse('me_view')).status_code == 401


def test_admin_cannot_disable_self(auth_client, admin):
    r = auth_client(admin).delete(reverse('user_detail', args=[admin.id]))
    assert r.status_code == 400


def test_approve_twice_over_http(api_client, auth_client, admin):
    r = api_client.post(reverse('doctor_requests'), {
        'email': 'b@clinic.test', 'password': 'secret1', 'name': 'Bo',
        'specialty': 'ENT', 'licenseNumber': 'E1',
    }, format='json')
    request_id = r.data['requestId']
    c = auth_client(admin)
    assert c.put(reverse('approve_doctor_request', args=[request_id])).status_code == 200
    r = c.put(reverse('approve_doctor_request', args=[request_id]))
    assert r.status_code == 404
    assert r.data['error']['code'] == 'not_found'
    r = c.put(reverse('reject_doctor_request', args=[request_id]), {'reason': 'late'}, format='json')
    assert r.status_code == 404


def test_duplicate_request_over_http_conflicts(api_client):
    body = {'email': 'c@clinic.test', 'password': 'secret1', 'name': 'Cy',
            'specialty': 'ENT', 'licenseNumber': 'E2'}
    assert api_client.post(reverse('doctor_requests'), body, format='json').status_code == 201
    r = api_client.post(reverse('doctor_requests'), body, format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'conflict'


def test_request_with_missing_fields_is_invalid(api_client):
    r = api_client.post(reverse('doctor_requests'), {'email': 'd@clinic.test'}, format='json')
    assert r.status_code == 400
    assert set(r.data['error']['message']) >= {'password', 'name', 'specialty', 'licenseNumber'}


def test_reject_over_http_leaves_no_account(api_client, auth_client, admin):
    r = api_client.post(reverse('doctor_requests'), {
        'email': 'e@clinic.test', 'password': 'secret1', 'name': 'Ed',
        'specialty': 'ENT', 'licenseNumber': 'E3',
    }, format='json')
    r = auth_client(admin).put(reverse('reject_doctor_request', args=[r.data['requestId']]),
                               {'reason': 'unverifiable'}, format='json')
    assert r.status_code == 200
    assert r.data['request']['rejectionReason'] == 'unverifiable'
    assert not Account.objects.filter(email='e@clinic.test').exists()


REQUEST_BODY = {'email': 'f@clinic.test', 'password': 'secret1', 'name': 'Fa',
                'specialty': 'ENT', 'licenseNumber': 'E4'}


def test_database_outage_is_reported_as_timeout(api_client, monkeypatch):
    def unreachable(**kwargs):
        raise OperationalError('could not connect to server')

    monkeypatch.setattr(onboarding, 'submit_request', unreachable)
    r = api_client.post(reverse('doctor_requests'), REQUEST_BODY, format='json')
    assert r.status_code == 503
    assert r.data == {'ok': False, 'error': {'code': 'timeout', 'message': 'Store unavailable, try again later.'}}


def test_uncaught_integrity_error_is_a_conflict(api_client, monkeypatch):
    def duplicate(**kwargs):
        raise IntegrityError('duplicate key value violates unique constraint')

    monkeypatch.setattr(onboarding, 'submit_request', duplicate)
    r = api_client.post(reverse('doctor_requests'), REQUEST_BODY, format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'conflict'
