import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinicapp.models import Account, DoctorProfile, STATUS_APPROVED
from clinicapp.services.accounts import issue_session

PASSWORD = 'Str0ng-Pass!42'


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_account(db):
    def _make(email, role=Account.ROLE_PATIENT, *, password=PASSWORD, status=STATUS_APPROVED, **extra):
        return Account.objects.create_user(
            email=email, password=password, name=extra.pop('name', email.split('@')[0]),
            role=role, account_status=status, **extra,
        )
    return _make


@pytest.fixture
def admin(make_account):
    return make_account('admin@clinic.test', Account.ROLE_ADMIN, is_staff=True)


@pytest.fixture
def doctor(make_account):
    account = make_account('doc@clinic.test', Account.ROLE_DOCTOR)
    DoctorProfile.objects.create(account=account, specialty='Cardiology', status=STATUS_APPROVED)
    return account


@pytest.fixture
def patient(make_account):
    return make_account('pat@clinic.test', Account.ROLE_PATIENT)


@pytest.fixture
def auth_client():
    def _client(account):
        c = APIClient()
        c.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_session(account)['access']}")
        return c
    return _client
