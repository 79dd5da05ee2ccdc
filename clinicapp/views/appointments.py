"""
Appointment endpoints.

Patients book for themselves; doctors and administrators may book on a
patient's behalf and are the only ones who can change the status.
"""
from __future__ import annotations

from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import Forbidden, InvalidArgument
from ..models import Account, STATUS_APPROVED, STATUS_PENDING
from ..permissions import DOCTOR_ROLES, IsDoctorRole, IsPatientRole, ensure_role, has_role
from ..serializers.clinical import AppointmentCreateSerializer, AppointmentStatusSerializer
from ..services import appointments as appointment_service
from ..services.appointments import appointment_queryset, format_appointment


def _visible_to(user, qs):
    """Patients only see their own appointments."""
    if has_role(user, DOCTOR_ROLES):
        return qs
    return qs.filter(patient=user)


@swagger_auto_schema(method='post', request_body=AppointmentCreateSerializer)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
def appointments(request):
    if request.method == 'POST':
        s = AppointmentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        v = dict(s.validated_data)
        if request.user.role == Account.ROLE_PATIENT:
            if v.get('patient_id') not in (None, request.user.id):
                raise Forbidden('Patients can only book for themselves.')
            v['patient_id'] = request.user.id
        elif not v.get('patient_id'):
            raise InvalidArgument({'patient_id': 'This field is required.'})
        appointment = appointment_service.create_appointment(**v)
        return Response(format_appointment(appointment), status=status.HTTP_201_CREATED)

    qs = _visible_to(request.user, appointment_queryset()).order_by('-created_at')
    return Response([format_appointment(a) for a in qs])


def _by_status(request, value):
    qs = _visible_to(request.user, appointment_queryset().filter(status=value)).order_by('-created_at')
    return Response([format_appointment(a) for a in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def approved_appointments(request):
    return _by_status(request, STATUS_APPROVED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def pending_appointments(request):
    return _by_status(request, STATUS_PENDING)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_appointments(request, doctor_id: int):
    qs = appointment_queryset().filter(doctor_id=doctor_id).order_by('-created_at')
    return Response([format_appointment(a) for a in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def patient_appointments(request, patient_id: int):
    if not has_role(request.user, DOCTOR_ROLES) and patient_id != request.user.id:
        raise Forbidden()
    qs = appointment_queryset().filter(patient_id=patient_id).order_by('-created_at')
    return Response([format_appointment(a) for a in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_statistics(request, doctor_id: int):
    return Response(appointment_service.doctor_statistics(doctor_id))


def _get_visible(request, appointment_id):
    appointment = appointment_service.get_appointment(appointment_id)
    if not has_role(request.user, DOCTOR_ROLES) and appointment.patient_id != request.user.id:
        raise Forbidden()
    return appointment


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def appointment_detail(request, appointment_id: int):
    return Response(format_appointment(_get_visible(request, appointment_id)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def appointment_summary(request, appointment_id: int):
    _get_visible(request, appointment_id)
    return Response(appointment_service.appointment_summary(appointment_id))


@swagger_auto_schema(method='patch', request_body=AppointmentStatusSerializer)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def appointment_status(request, appointment_id: int):
    ensure_role(request.user, DOCTOR_ROLES)
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = appointment_service.set_status(appointment_id, s.validated_data['status'])
    return Response(format_appointment(appointment))
