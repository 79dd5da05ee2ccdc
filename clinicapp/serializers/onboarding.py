from rest_framework import serializers

from clinicapp.models import APPROVAL_STATUS_CHOICES
from .fields import CleanCharField


class DoctorRequestCreateSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(min_length=6, max_length=128, trim_whitespace=False, write_only=True)
    name = CleanCharField(max_length=150)
    specialty = CleanCharField(max_length=100)
    licenseNumber = CleanCharField(max_length=64)
    phone = CleanCharField(required=False, allow_blank=True, max_length=32, default='')


class DoctorRequestListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=APPROVAL_STATUS_CHOICES, required=False)


class RejectSerializer(serializers.Serializer):
    reason = CleanCharField(required=False, allow_blank=True, max_length=1000, default='')


class ProfileStatusSerializer(serializers.Serializer):
    # validity is decided by the onboarding service so any casing is accepted
    status = serializers.CharField(max_length=16)
