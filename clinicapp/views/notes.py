"""
Clinical notes attached to an appointment: symptoms, perceptions and
medicals.  Any signed-in account may read them, writing takes an
approved doctor or an administrator.
"""
from __future__ import annotations

from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Medical, Perception, Symptom
from ..permissions import IsDoctorRole
from ..serializers.clinical import MedicalCreateSerializer, PerceptionCreateSerializer, SymptomCreateSerializer
from ..services.clinical import (
    ensure_appointment,
    format_medical,
    format_perception,
    format_symptom,
    get_or_404,
    symptoms_for_today,
)
from ..services.audit import log_action


def _create(request, serializer_class, model, formatter):
    s = serializer_class(data=request.data)
    s.is_valid(raise_exception=True)
    v = dict(s.validated_data)
    appointment = ensure_appointment(v.pop('appointment_id'))
    obj = model.objects.create(appointment=appointment, **v)
    log_action(user=request.user, action=f'{model._meta.model_name}_create',
               object_type='appointment', object_id=appointment.id, detail={'id': obj.id})
    return Response(formatter(obj), status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------
# Symptoms
# ---------------------------------------------------------------------
@swagger_auto_schema(method='post', request_body=SymptomCreateSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def create_symptom(request):
    return _create(request, SymptomCreateSerializer, Symptom, format_symptom)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def symptom_detail(request, symptom_id: int):
    return Response(format_symptom(get_or_404(Symptom, symptom_id, 'Symptom')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def symptoms_by_appointment(request, appointment_id: int):
    qs = Symptom.objects.filter(appointment_id=appointment_id).order_by('-created_at')
    return Response([format_symptom(s) for s in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def symptoms_today(request):
    return Response([format_symptom(s) for s in symptoms_for_today()])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_symptoms_today(request, doctor_id: int):
    return Response([format_symptom(s) for s in symptoms_for_today(doctor_id)])


# ---------------------------------------------------------------------
# Perceptions
# ---------------------------------------------------------------------
@swagger_auto_schema(method='post', request_body=PerceptionCreateSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def create_perception(request):
    return _create(request, PerceptionCreateSerializer, Perception, format_perception)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def perceptions_by_appointment(request, appointment_id: int):
    qs = Perception.objects.filter(appointment_id=appointment_id).order_by('-created_at')
    return Response([format_perception(p) for p in qs])


# ---------------------------------------------------------------------
# Medicals
# ---------------------------------------------------------------------
@swagger_auto_schema(method='post', request_body=MedicalCreateSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def create_medical(request):
    return _create(request, MedicalCreateSerializer, Medical, format_medical)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def medical_detail(request, medical_id: int):
    return Response(format_medical(get_or_404(Medical, medical_id, 'Medical')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def medicals_by_appointment(request, appointment_id: int):
    qs = Medical.objects.filter(appointment_id=appointment_id).order_by('-created_at')
    return Response([format_medical(m) for m in qs])
