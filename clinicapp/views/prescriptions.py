from __future__ import annotations

from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import Forbidden, InvalidArgument
from ..models import Account, Appointment, Prescription
from ..permissions import DOCTOR_ROLES, IsDoctorOrReadOnly, has_role
from ..serializers.clinical import PrescriptionSerializer
from ..services.audit import log_action
from ..services.clinical import format_prescription, get_or_404


def _queryset(user):
    qs = Prescription.objects.select_related('patient', 'doctor')
    # patients only ever see their own prescriptions
    if not has_role(user, DOCTOR_ROLES):
        qs = qs.filter(patient=user)
    return qs


def _resolve(request, v: dict, instance: Prescription | None = None) -> dict:
    """Turn validated camelCase input into model fields."""
    fields = {
        'patient_id': v['patientId'],
        'medications': v['medications'],
        'instructions': v.get('instructions', ''),
    }
    if not Account.objects.filter(pk=v['patientId']).exists():
        raise InvalidArgument({'patientId': 'Unknown patient.'})
    doctor_id = v.get('doctorId')
    if request.user.role == Account.ROLE_DOCTOR:
        # doctors prescribe under their own name
        doctor_id = request.user.id
    elif doctor_id is None:
        doctor_id = instance.doctor_id if instance else None
    if not Account.objects.filter(pk=doctor_id, role=Account.ROLE_DOCTOR).exists():
        raise InvalidArgument({'doctorId': 'Unknown doctor.'})
    fields['doctor_id'] = doctor_id
    appointment_id = v.get('appointmentId')
    if appointment_id is not None and not Appointment.objects.filter(pk=appointment_id).exists():
        raise InvalidArgument({'appointmentId': 'Unknown appointment.'})
    fields['appointment_id'] = appointment_id
    if v.get('date'):
        fields['date'] = v['date']
    return fields


@swagger_auto_schema(method='post', request_body=PrescriptionSerializer)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsDoctorOrReadOnly])
def prescriptions(request):
    if request.method == 'POST':
        s = PrescriptionSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        p = Prescription.objects.create(**_resolve(request, s.validated_data))
        log_action(user=request.user, action='prescription_create', object_type='prescription', object_id=p.id)
        p = _queryset(request.user).get(pk=p.id)
        return Response(format_prescription(p), status=status.HTTP_201_CREATED)

    qs = _queryset(request.user).order_by('-date', '-id')
    return Response([format_prescription(p) for p in qs])


@swagger_auto_schema(method='put', request_body=PrescriptionSerializer)
@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsDoctorOrReadOnly])
def prescription_detail(request, prescription_id: int):
    p = get_or_404(_queryset(request.user), prescription_id, 'Prescription')
    if request.method == 'GET':
        return Response(format_prescription(p))
    if request.method == 'PUT':
        s = PrescriptionSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        for key, value in _resolve(request, s.validated_data, p).items():
            setattr(p, key, value)
        p.save()
        log_action(user=request.user, action='prescription_update', object_type='prescription', object_id=p.id)
        return Response(format_prescription(_queryset(request.user).get(pk=p.id)))
    log_action(user=request.user, action='prescription_delete', object_type='prescription', object_id=p.id)
    p.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_prescriptions(request, patient_id: int):
    if not has_role(request.user, DOCTOR_ROLES) and request.user.id != patient_id:
        raise Forbidden()
    qs = _queryset(request.user).filter(patient_id=patient_id).order_by('-date', '-id')
    return Response([format_prescription(p) for p in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_prescriptions(request, doctor_id: int):
    qs = _queryset(request.user).filter(doctor_id=doctor_id).order_by('-date', '-id')
    return Response([format_prescription(p) for p in qs])
