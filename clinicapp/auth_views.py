"""
Authentication views.

Login runs doctors through the onboarding login gate before any token
is minted.  These views are kept apart from the authentication class
(see ``clinicapp.authentication``) so that Django REST framework can
load its authentication classes without importing views.
"""
from __future__ import annotations

from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes, throttle_classes
from rest_framework.exceptions import NotAuthenticated
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from .exceptions import AwaitingApproval, InvalidArgument, Unauthorized
from .models import Account
from .serializers.auth import (
    DoctorProfileSubmitSerializer,
    ForgotPasswordSerializer,
    LoginSerializer,
    LogoutSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
)
from .services import accounts as account_service
from .services import onboarding
from .services.audit import log_action
from .services.doctors import format_doctor
from .services.file_store import FileStoreClient, validate_licence_file
from .throttles import LoginRateThrottle, RegisterRateThrottle


def format_user(account: Account) -> dict:
    return {
        'id': account.id,
        'email': account.email,
        'name': account.get_full_name(),
        'role': account.role,
        'accountStatus': account.account_status,
    }


# ---------------------------------------------------------------------
# Email/password login
# ---------------------------------------------------------------------
@swagger_auto_schema(method='post', request_body=LoginSerializer,
                     responses={200: 'session issued', 401: 'invalid credentials',
                                403: 'doctor awaiting approval'})
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    """
    Login with email and password.

    Doctors only get a session once their profile is approved.  A doctor
    account without any profile or application receives
    ``needsDoctorProfile`` instead of tokens.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']
    ip = request.META.get('REMOTE_ADDR')

    try:
        account = account_service.authenticate_credentials(request, email, s.validated_data['password'])
    except Unauthorized:
        # audit failed attempts (email only)
        log_action(user=None, action='login', object_type='account', object_id=None,
                   detail={'result': 'fail', 'email': email, 'ip': ip})
        raise

    if account.role == Account.ROLE_DOCTOR:
        gate = onboarding.evaluate_login_gate(account)
        if gate.outcome == onboarding.GATE_NEEDS_PROFILE:
            return Response({
                'ok': True,
                'needsDoctorProfile': True,
                'user': format_user(account),
                'doctorStatus': 'not exist',
            }, status=200)
        if not gate.allowed:
            log_action(user=account, action='login', object_type='account', object_id=account.id,
                       detail={'result': 'gated', 'doctorStatus': gate.status, 'ip': ip})
            raise AwaitingApproval(extra={'doctorStatus': gate.status})

    log_action(user=account, action='login', object_type='account', object_id=account.id,
               detail={'result': 'ok', 'ip': ip})

    payload: dict[str, object] = {
        'ok': True,
        **account_service.issue_session(account),
        'role': account.role,
        'user': format_user(account),
    }
    if account.role == Account.ROLE_DOCTOR:
        payload['doctorStatus'] = account.doctor_profile.status
    return Response(payload, status=200)


@swagger_auto_schema(method='post', request_body=RegisterSerializer, responses={201: 'account created'})
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([RegisterRateThrottle])
def register_view(request):
    """Self registration for patients and unapproved users."""
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    account = account_service.register_account(**s.validated_data)
    return Response({'ok': True, 'user': format_user(account)}, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response) and resp.status_code == 200:
        return Response({'ok': True, **resp.data})
    # errors already carry the API error envelope
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist current user's refresh tokens (all or a given one)."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = s.validated_data.get('refresh')
    count = 0
    if refresh:
        try:
            token = RefreshToken(refresh)
        except TokenError:
            raise InvalidArgument({'refresh': 'Invalid or expired refresh token.'})
        if str(token.get('user_id')) != str(request.user.id):
            raise InvalidArgument({'refresh': 'Token does not belong to this account.'})
        token.blacklist()
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    log_action(user=request.user, action='logout', object_type='account', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    data = format_user(request.user)
    profile = getattr(request.user, 'doctor_profile', None)
    if profile is not None:
        data['doctorStatus'] = profile.status
    return Response({'ok': True, 'user': data})


# ---------------------------------------------------------------------
# Directory lists (id/name) for pickers in the front-end
# ---------------------------------------------------------------------
def _directory(role):
    qs = Account.objects.filter(role=role, is_active=True).order_by('name', 'id')
    return [{'id': a.id, 'name': a.get_full_name(), 'email': a.email} for a in qs]


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def auth_patients_view(request):
    return Response(_directory(Account.ROLE_PATIENT))


# ---------------------------------------------------------------------
# Profile-first doctor onboarding
# ---------------------------------------------------------------------
def _submit_doctor_profile(request):
    """Attach a doctor profile (and optional licence PDF) to an account."""
    s = DoctorProfileSubmitSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    account = account_service.authenticate_credentials(request, v['email'], v['password'])
    licence = v.get('licence_file')
    if licence is not None:
        validate_licence_file(licence)
    profile = onboarding.submit_profile(
        account,
        specialty=v['specialty'],
        national_id=v['national_id'],
        license_number=v['license_number'],
        phone=v['phone'],
        license_file=licence,
        file_store=FileStoreClient.from_settings(),
    )
    return Response({
        'ok': True,
        'message': 'Doctor profile submitted. Awaiting clinic approval.',
        'doctor': format_doctor(profile),
    }, status=status.HTTP_201_CREATED)


@swagger_auto_schema(method='post', request_body=DoctorProfileSubmitSerializer,
                     responses={201: 'profile pending approval', 409: 'profile exists'})
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
@parser_classes([MultiPartParser, FormParser, JSONParser])
@throttle_classes([LoginRateThrottle])
def auth_doctors_view(request):
    """GET lists active doctors; POST submits a doctor profile.

    The POST side is open since an unapproved doctor holds no session; it
    re-checks the credentials in the form instead.
    """
    if request.method == 'POST':
        return _submit_doctor_profile(request)
    if not (request.user and request.user.is_authenticated):
        raise NotAuthenticated()
    return Response(_directory(Account.ROLE_DOCTOR))


# ---------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------
@swagger_auto_schema(method='post', request_body=ForgotPasswordSerializer)
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([RegisterRateThrottle])
def forgot_password_view(request):
    s = ForgotPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    message = account_service.request_password_reset(s.validated_data['email'])
    return Response({'ok': True, 'message': message})


@swagger_auto_schema(method='post', request_body=ResetPasswordSerializer,
                     responses={200: openapi.Response('password changed'), 400: 'invalid or expired token'})
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def reset_password_view(request):
    s = ResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    account_service.reset_password(s.validated_data['token'], s.validated_data['password'])
    return Response({'ok': True, 'message': 'Password has been reset.'})
