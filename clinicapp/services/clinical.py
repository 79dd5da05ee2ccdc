from django.utils import timezone

from clinicapp.exceptions import NotFound
from clinicapp.models import Appointment, Medical, Perception, Prescription, Symptom


def format_symptom(s: Symptom) -> dict:
    return {
        'id': s.id,
        'appointmentId': s.appointment_id,
        'symptomName': s.symptom_name,
        'value': s.value,
        'description': s.description,
        'createdAt': s.created_at.isoformat(),
    }


def format_perception(p: Perception) -> dict:
    return {
        'id': p.id,
        'appointmentId': p.appointment_id,
        'title': p.title,
        'note': p.note,
        'createdAt': p.created_at.isoformat(),
    }


def format_medical(m: Medical) -> dict:
    return {
        'id': m.id,
        'appointmentId': m.appointment_id,
        'medicalName': m.medical_name,
        'dosage': m.dosage,
        'frequency': m.frequency,
        'note': m.note,
        'createdAt': m.created_at.isoformat(),
    }


def format_prescription(p: Prescription) -> dict:
    return {
        'id': p.id,
        'patientId': p.patient_id,
        'patientName': p.patient.get_full_name(),
        'doctorId': p.doctor_id,
        'doctorName': p.doctor.get_full_name(),
        'appointmentId': p.appointment_id,
        'medications': p.medications,
        'instructions': p.instructions,
        'date': p.date.isoformat(),
        'createdAt': p.created_at.isoformat(),
    }


def get_or_404(source, pk, label):
    """Fetch ``pk`` from a model or queryset, raising ``NotFound`` when absent."""
    qs = source.objects.all() if hasattr(source, 'objects') else source
    obj = qs.filter(pk=pk).first()
    if obj is None:
        raise NotFound(f'{label} not found')
    return obj


def ensure_appointment(appointment_id) -> Appointment:
    return get_or_404(Appointment, appointment_id, 'Appointment')


def symptoms_for_today(doctor_id=None):
    """Symptoms recorded today, optionally limited to one doctor's appointments."""
    qs = Symptom.objects.select_related('appointment').filter(created_at__date=timezone.localdate())
    if doctor_id is not None:
        qs = qs.filter(appointment__doctor_id=doctor_id)
    return qs.order_by('-created_at')
