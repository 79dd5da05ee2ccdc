"""
URL mappings for the clinic backend API.

Paths mirror the ones the front-end calls.  Trailing slashes are
deliberately omitted (``APPEND_SLASH = False``).  Fixed segments such as
``/pending`` are listed before the ``<int:...>`` routes sharing their
prefix.
"""
from django.urls import path, include

from .auth_views import (
    auth_doctors_view,
    auth_patients_view,
    forgot_password_view,
    jwt_logout_view,
    jwt_refresh_view,
    login_view,
    me_view,
    register_view,
    reset_password_view,
)
from .views import appointments, doctor_requests, doctors, health, notes, patients, prescriptions, users

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    path('api/health', health.healthz, name='health'),

    # auth
    path('api/auth/register', register_view, name='register_view'),
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    path('api/auth/me', me_view, name='me_view'),
    path('api/auth/doctors', auth_doctors_view, name='auth_doctors_view'),
    path('api/auth/patients', auth_patients_view, name='auth_patients_view'),
    path('api/auth/forgot-password', forgot_password_view, name='forgot_password_view'),
    path('api/auth/reset-password', reset_password_view, name='reset_password_view'),

    # doctor onboarding
    path('api/doctor-requests', doctor_requests.doctor_requests, name='doctor_requests'),
    path('api/doctor-requests/<int:request_id>', doctor_requests.doctor_request_detail, name='doctor_request_detail'),
    path('api/doctor-requests/<int:request_id>/approve', doctor_requests.approve_doctor_request, name='approve_doctor_request'),
    path('api/doctor-requests/<int:request_id>/reject', doctor_requests.reject_doctor_request, name='reject_doctor_request'),
    path('api/doctors', doctors.list_doctors, name='list_doctors'),
    path('api/doctors/pending', doctors.pending_doctors, name='pending_doctors'),
    path('api/doctors/<int:doctor_id>', doctors.doctor_detail, name='doctor_detail'),
    path('api/doctors/<int:doctor_id>/status', doctors.doctor_status, name='doctor_status'),

    # account administration
    path('api/users', users.users, name='users'),
    path('api/users/<int:user_id>', users.user_detail, name='user_detail'),

    # patients
    path('api/patients', patients.patients, name='patients'),
    path('api/patients/me', patients.my_patient_profile, name='my_patient_profile'),
    path('api/patients/<int:patient_id>', patients.patient_detail, name='patient_detail'),

    # appointments
    path('api/appointments', appointments.appointments, name='appointments'),
    path('api/appointments/approved', appointments.approved_appointments, name='approved_appointments'),
    path('api/appointments/pending', appointments.pending_appointments, name='pending_appointments'),
    path('api/appointments/doctor/<int:doctor_id>', appointments.doctor_appointments, name='doctor_appointments'),
    path('api/appointments/doctor/<int:doctor_id>/statistic', appointments.doctor_statistics, name='doctor_statistics'),
    path('api/appointments/patient/<int:patient_id>', appointments.patient_appointments, name='patient_appointments'),
    path('api/appointments/<int:appointment_id>', appointments.appointment_detail, name='appointment_detail'),
    path('api/appointments/<int:appointment_id>/summary', appointments.appointment_summary, name='appointment_summary'),
    path('api/appointments/<int:appointment_id>/status', appointments.appointment_status, name='appointment_status'),

    # clinical notes
    path('api/symptoms', notes.create_symptom, name='create_symptom'),
    path('api/symptoms/appointments/today', notes.symptoms_today, name='symptoms_today'),
    path('api/symptoms/doctor/<int:doctor_id>/appointments/today', notes.doctor_symptoms_today, name='doctor_symptoms_today'),
    path('api/symptoms/appointment/<int:appointment_id>', notes.symptoms_by_appointment, name='symptoms_by_appointment'),
    path('api/symptoms/<int:symptom_id>', notes.symptom_detail, name='symptom_detail'),
    path('api/perceptions', notes.create_perception, name='create_perception'),
    path('api/perceptions/appointment/<int:appointment_id>', notes.perceptions_by_appointment, name='perceptions_by_appointment'),
    path('api/medicals', notes.create_medical, name='create_medical'),
    path('api/medicals/appointment/<int:appointment_id>', notes.medicals_by_appointment, name='medicals_by_appointment'),
    path('api/medicals/<int:medical_id>', notes.medical_detail, name='medical_detail'),

    # prescriptions
    path('api/prescriptions', prescriptions.prescriptions, name='prescriptions'),
    path('api/prescriptions/patient/<int:patient_id>', prescriptions.patient_prescriptions, name='patient_prescriptions'),
    path('api/prescriptions/doctor/<int:doctor_id>', prescriptions.doctor_prescriptions, name='doctor_prescriptions'),
    path('api/prescriptions/<int:prescription_id>', prescriptions.prescription_detail, name='prescription_detail'),
]
