"""Input serializers for appointments, clinical notes and prescriptions."""
from rest_framework import serializers

from clinicapp.models import APPROVAL_STATUS_CHOICES
from .fields import CleanCharField


class AppointmentCreateSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(required=False)
    doctor_id = serializers.IntegerField()
    date = serializers.DateField()
    time = serializers.TimeField()
    description = CleanCharField(required=False, allow_blank=True, default='')


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=APPROVAL_STATUS_CHOICES)


class SymptomCreateSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField()
    symptom_name = CleanCharField(max_length=255)
    value = CleanCharField(required=False, allow_blank=True, max_length=255, default='')
    description = CleanCharField(required=False, allow_blank=True, default='')


class PerceptionCreateSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField()
    title = CleanCharField(max_length=255)
    note = CleanCharField(required=False, allow_blank=True, default='')


class MedicalCreateSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField()
    medical_name = CleanCharField(max_length=255)
    dosage = CleanCharField(required=False, allow_blank=True, max_length=100, default='')
    frequency = CleanCharField(required=False, allow_blank=True, max_length=100, default='')
    note = CleanCharField(required=False, allow_blank=True, default='')


class MedicationSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    dosage = CleanCharField(required=False, allow_blank=True, max_length=100, default='')
    frequency = CleanCharField(required=False, allow_blank=True, max_length=100, default='')
    duration = CleanCharField(required=False, allow_blank=True, max_length=100, default='')


class PrescriptionSerializer(serializers.Serializer):
    patientId = serializers.IntegerField()
    doctorId = serializers.IntegerField(required=False)
    appointmentId = serializers.IntegerField(required=False, allow_null=True)
    medications = MedicationSerializer(many=True, allow_empty=False)
    instructions = CleanCharField(required=False, allow_blank=True, default='')
    date = serializers.DateField(required=False)


class DoctorUpdateSerializer(serializers.Serializer):
    name = CleanCharField(required=False, max_length=150)
    specialty = CleanCharField(required=False, max_length=100)
    phone = CleanCharField(required=False, allow_blank=True, max_length=32)
    licenseNumber = CleanCharField(required=False, allow_blank=True, max_length=64)
    nationalId = CleanCharField(required=False, allow_blank=True, max_length=64)
