"""
Database models for the clinic backend.

These models capture the accounts that can sign in (patients, doctors and
administrators), the doctor onboarding records (requests and profiles)
and the clinical records hanging off appointments.  Doctor onboarding
keeps two status columns in lockstep (``Account.account_status`` and
``DoctorProfile.status``); the database does not enforce that coupling,
the services in :mod:`clinicapp.services.onboarding` do.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.db.models import Q
from django.utils import timezone


STATUS_PENDING = 'pending'
STATUS_APPROVED = 'approved'
STATUS_REJECTED = 'rejected'
APPROVAL_STATUS_CHOICES = (
    (STATUS_PENDING, 'Pending'),
    (STATUS_APPROVED, 'Approved'),
    (STATUS_REJECTED, 'Rejected'),
)
APPROVAL_STATUSES = {STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED}


def normalize_email(value: str | None) -> str:
    """Emails are unique regardless of case, so they are stored lower-cased."""
    return (value or '').strip().lower()


class AccountManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        email = normalize_email(email)
        if not email:
            raise ValueError('email must be set')
        account = self.model(email=email, **extra_fields)
        account.set_password(password)
        account.save(using=self._db)
        return account

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', Account.ROLE_ADMIN)
        extra_fields.setdefault('account_status', STATUS_APPROVED)
        return self._create_user(email, password, **extra_fields)

    def get_by_natural_key(self, username):
        return self.get(email=normalize_email(username))


class Account(AbstractBaseUser, PermissionsMixin):
    """An identity that can authenticate against the API.

    ``role`` and ``account_status`` are independent: a doctor account may
    exist while its status is still pending.  Accounts are never deleted
    through the API; they are disabled by clearing ``is_active``.
    """
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_PATIENT = 'patient'
    ROLE_USER = 'user'
    ROLE_CHOICES = (
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_PATIENT, 'Patient'),
        (ROLE_USER, 'Unapproved user'),
    )

    email = models.EmailField(max_length=255, unique=True)
    name = models.CharField(max_length=150, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_USER, db_index=True)
    account_status = models.CharField(max_length=10, choices=APPROVAL_STATUS_CHOICES, default=STATUS_PENDING)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    # sha256 of the most recent password reset token
    reset_token_hash = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    reset_expires = models.DateTimeField(blank=True, null=True)

    objects = AccountManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    def save(self, *args, **kwargs):
        self.email = normalize_email(self.email)
        super().save(*args, **kwargs)

    def get_full_name(self) -> str:
        return self.name or self.email

    def get_short_name(self) -> str:
        return self.name or self.email

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class DoctorRequest(models.Model):
    """An application to become a doctor, submitted before any account exists.

    The applicant's password is hashed at submission and copied verbatim
    into the account created on approval.  A request leaves ``pending``
    exactly once.
    """
    email = models.EmailField(max_length=255)
    password_hash = models.CharField(max_length=128)
    name = models.CharField(max_length=150)
    specialty = models.CharField(max_length=100)
    license_number = models.CharField(max_length=64)
    phone = models.CharField(max_length=32, blank=True)
    status = models.CharField(max_length=10, choices=APPROVAL_STATUS_CHOICES, default=STATUS_PENDING)
    decided_by = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.SET_NULL, related_name='decided_doctor_requests'
    )
    decided_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    account = models.OneToOneField(
        Account, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctor_request'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['email'],
                condition=Q(status=STATUS_PENDING),
                name='uniq_pending_doctor_request_email',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'created_at'], name='docreq_status_created_idx'),
        ]

    def save(self, *args, **kwargs):
        self.email = normalize_email(self.email)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"DoctorRequest({self.email}, {self.status})"


class DoctorProfile(models.Model):
    """Operational doctor record; its status gates a doctor's sessions."""
    account = models.OneToOneField(Account, on_delete=models.CASCADE, related_name='doctor_profile')
    specialty = models.CharField(max_length=100)
    license_number = models.CharField(max_length=64, blank=True)
    national_id = models.CharField(max_length=64, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    # opaque reference returned by the file store
    license_document = models.CharField(max_length=512, blank=True)
    status = models.CharField(max_length=10, choices=APPROVAL_STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"DoctorProfile({self.account_id}, {self.specialty}, {self.status})"


class PatientProfile(models.Model):
    """Patient specific information kept apart from the account."""
    account = models.OneToOneField(Account, on_delete=models.CASCADE, related_name='patient_profile')
    phone = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"PatientProfile({self.account_id})"


class Appointment(models.Model):
    patient = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='patient_appointments')
    doctor = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='doctor_appointments')
    date = models.DateField()
    time = models.TimeField()
    description = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=APPROVAL_STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'date'], name='appt_doctor_date_idx'),
            models.Index(fields=['patient', 'created_at'], name='appt_patient_created_idx'),
        ]

    def __str__(self) -> str:
        return f"Appointment {self.id} d={self.doctor_id} p={self.patient_id} {self.date} {self.time}"


class Symptom(models.Model):
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='symptoms')
    symptom_name = models.CharField(max_length=255)
    value = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self) -> str:
        return f"{self.symptom_name} (appointment {self.appointment_id})"


class Perception(models.Model):
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='perceptions')
    title = models.CharField(max_length=255)
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.title} (appointment {self.appointment_id})"


class Medical(models.Model):
    """A medication noted during an appointment."""
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='medicals')
    medical_name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=100, blank=True)
    frequency = models.CharField(max_length=100, blank=True)
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.medical_name} (appointment {self.appointment_id})"


class Prescription(models.Model):
    """A prescription issued by a doctor.

    ``medications`` is a list of ``{name, dosage, frequency, duration}``
    objects, matching what the front-end sends.
    """
    patient = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='patient_prescriptions')
    doctor = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='doctor_prescriptions')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescriptions'
    )
    medications = models.JSONField(default=list)
    instructions = models.TextField(blank=True)
    date = models.DateField(default=timezone.localdate)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Prescription {self.id} p={self.patient_id} d={self.doctor_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
