"""Appointment queries shared by the appointment and clinical note views."""
from __future__ import annotations

from datetime import timedelta

from django.db.models import Count
from django.utils import timezone

from clinicapp.exceptions import InvalidArgument, NotFound
from clinicapp.models import Account, Appointment, APPROVAL_STATUSES, STATUS_PENDING
from clinicapp.services.clinical import format_medical, format_perception, format_symptom


def appointment_queryset():
    return Appointment.objects.select_related('patient', 'doctor')


def format_appointment(a: Appointment) -> dict:
    return {
        'id': a.id,
        'date': a.date.isoformat(),
        'time': a.time.strftime('%H:%M'),
        'description': a.description,
        'status': a.status,
        'createdAt': a.created_at.isoformat(),
        'patientId': a.patient_id,
        'patientName': a.patient.get_full_name(),
        'doctorId': a.doctor_id,
        'doctorName': a.doctor.get_full_name(),
    }


def get_appointment(appointment_id: int) -> Appointment:
    appointment = appointment_queryset().filter(pk=appointment_id).first()
    if appointment is None:
        raise NotFound('Appointment not found')
    return appointment


def create_appointment(*, patient_id, doctor_id, date, time, description='') -> Appointment:
    if not Account.objects.filter(pk=patient_id, is_active=True).exists():
        raise InvalidArgument({'patient_id': 'Unknown patient.'})
    if not Account.objects.filter(pk=doctor_id, role=Account.ROLE_DOCTOR, is_active=True).exists():
        raise InvalidArgument({'doctor_id': 'Unknown doctor.'})
    appointment = Appointment.objects.create(
        patient_id=patient_id, doctor_id=doctor_id, date=date, time=time, description=description or '',
    )
    return get_appointment(appointment.id)


def set_status(appointment_id: int, status: str) -> Appointment:
    if status not in APPROVAL_STATUSES:
        raise InvalidArgument({'status': 'Must be one of pending, approved, rejected.'})
    updated = Appointment.objects.filter(pk=appointment_id).update(status=status)
    if not updated:
        raise NotFound('Appointment not found')
    return get_appointment(appointment_id)


def doctor_statistics(doctor_id: int, today=None) -> dict:
    """Counts per status plus the appointments from yesterday to tomorrow."""
    today = today or timezone.localdate()
    counts = {s: 0 for s in sorted(APPROVAL_STATUSES)}
    rows = Appointment.objects.filter(doctor_id=doctor_id).values('status').annotate(n=Count('id'))
    for row in rows:
        counts[row['status'] or STATUS_PENDING] = row['n']
    window = (appointment_queryset()
              .filter(doctor_id=doctor_id,
                      date__range=(today - timedelta(days=1), today + timedelta(days=1)))
              .order_by('date', 'time'))
    return {'counts': counts, 'todayAppointments': [format_appointment(a) for a in window]}


def appointment_summary(appointment_id: int) -> dict:
    appointment = get_appointment(appointment_id)
    return {
        'appointment': format_appointment(appointment),
        'perceptions': [format_perception(p) for p in appointment.perceptions.order_by('created_at')],
        'symptoms': [format_symptom(s) for s in appointment.symptoms.order_by('created_at')],
        'medicals': [format_medical(m) for m in appointment.medicals.order_by('created_at')],
    }
