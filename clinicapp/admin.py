"""
Django admin registrations for the clinic models.

Superusers can inspect accounts, doctor applications and clinical
records through ``/admin/``.  Status changes that must keep accounts and
doctor profiles in step should go through the API rather than these
forms.
"""

from django.contrib import admin

from .models import (
    Account,
    Appointment,
    AuditEvent,
    DoctorProfile,
    DoctorRequest,
    Medical,
    PatientProfile,
    Perception,
    Prescription,
    Symptom,
)


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'account_status', 'is_active', 'is_staff')
    list_filter = ('role', 'account_status', 'is_active')
    search_fields = ('email', 'name')
    exclude = ('password', 'reset_token_hash', 'reset_expires')
    readonly_fields = ('last_login', 'created_at')


@admin.register(DoctorRequest)
class DoctorRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'email', 'name', 'specialty', 'status', 'decided_by', 'created_at')
    list_filter = ('status',)
    search_fields = ('email', 'name', 'license_number')
    exclude = ('password_hash',)
    readonly_fields = ('account', 'decided_by', 'decided_at')


@admin.register(DoctorProfile)
class DoctorProfileAdmin(admin.ModelAdmin):
    list_display = ('id', 'account', 'specialty', 'status', 'updated_at')
    list_filter = ('status', 'specialty')
    search_fields = ('account__email', 'account__name', 'license_number', 'national_id')


@admin.register(PatientProfile)
class PatientProfileAdmin(admin.ModelAdmin):
    list_display = ('id', 'account', 'phone', 'date_of_birth')
    search_fields = ('account__email', 'account__name', 'phone')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'date', 'time', 'status')
    list_filter = ('status', 'date')
    search_fields = ('patient__email', 'doctor__email')


@admin.register(Symptom)
class SymptomAdmin(admin.ModelAdmin):
    list_display = ('id', 'appointment', 'symptom_name', 'value', 'created_at')
    search_fields = ('symptom_name',)


@admin.register(Perception)
class PerceptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'appointment', 'title', 'created_at')


@admin.register(Medical)
class MedicalAdmin(admin.ModelAdmin):
    list_display = ('id', 'appointment', 'medical_name', 'dosage', 'frequency')
    search_fields = ('medical_name',)


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'appointment', 'date')
    list_filter = ('date',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'user__email')
