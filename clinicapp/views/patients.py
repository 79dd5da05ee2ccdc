"""
Patient management views.

Doctors and administrators read patient records, administrators create
and disable them, and patients manage their own profile through
``/api/patients/me``.
"""
from __future__ import annotations

from drf_yasg.utils import swagger_auto_schema
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import NotFound
from ..models import Account, PatientProfile
from ..permissions import ADMIN_ROLES, DOCTOR_ROLES, ensure_role
from ..serializers.patient import PatientCreateSerializer, PatientUpdateSerializer
from ..services.accounts import disable_account
from ..services.patients import create_patient, format_patient, get_patient, update_patient


@swagger_auto_schema(method='post', request_body=PatientCreateSerializer)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients(request):
    if request.method == 'POST':
        ensure_role(request.user, ADMIN_ROLES)
        data = PatientCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        v = data.validated_data
        user, profile, initial_password = create_patient(
            request.user,
            email=v['email'],
            name=v['name'],
            phone=v['phone'],
            date_of_birth=v['dateOfBirth'],
            address=v['address'],
            password=v.get('password') or None,
        )
        body = {'ok': True, 'patient': format_patient(profile)}
        if not v.get('password'):
            body['initialPassword'] = initial_password
        return Response(body, status=201)

    ensure_role(request.user, DOCTOR_ROLES)
    qs = PatientProfile.objects.select_related('account').order_by('-created_at')
    if (request.query_params.get('includeDisabled') or '0') not in ['1', 'true', 'True']:
        qs = qs.filter(account__is_active=True)
    return Response([format_patient(p) for p in qs])


@swagger_auto_schema(method='put', request_body=PatientUpdateSerializer)
@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, patient_id: int):
    if request.method == 'GET':
        ensure_role(request.user, DOCTOR_ROLES)
        return Response(format_patient(get_patient(patient_id)))

    ensure_role(request.user, ADMIN_ROLES)
    if request.method == 'PUT':
        data = PatientUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        profile = update_patient(request.user, patient_id, **data.to_service_fields())
        return Response(format_patient(profile))

    get_patient(patient_id)
    disable_account(request.user, patient_id)
    return Response({'ok': True, 'message': 'Patient disabled.'})


@swagger_auto_schema(method='put', request_body=PatientUpdateSerializer)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def my_patient_profile(request):
    if request.user.role != Account.ROLE_PATIENT:
        raise NotFound('No patient profile for this account.')
    profile, _ = PatientProfile.objects.get_or_create(account=request.user)
    if request.method == 'PUT':
        data = PatientUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        profile = update_patient(request.user, request.user.id, **data.to_service_fields())
    return Response(format_patient(profile))
