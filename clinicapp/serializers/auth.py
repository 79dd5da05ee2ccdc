from rest_framework import serializers

from clinicapp.models import Account
from .fields import CleanCharField


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required.')
        return v


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(min_length=6, max_length=128, trim_whitespace=False, write_only=True)
    name = CleanCharField(required=False, allow_blank=True, max_length=150, default='')
    role = serializers.ChoiceField(
        choices=[Account.ROLE_PATIENT, Account.ROLE_USER], required=False, default=Account.ROLE_USER,
    )


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    token = serializers.CharField()
    password = serializers.CharField(min_length=6, max_length=128, trim_whitespace=False, write_only=True)


class DoctorProfileSubmitSerializer(serializers.Serializer):
    """Multipart form for the profile-first doctor flow.

    The caller proves the account with ``email``/``password`` since an
    unapproved doctor cannot hold a session.
    """
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)
    specialty = CleanCharField(required=False, allow_blank=True, max_length=100, default='')
    speciality = CleanCharField(required=False, allow_blank=True, max_length=100, write_only=True)
    national_id = CleanCharField(required=False, allow_blank=True, max_length=64, default='')
    license_number = CleanCharField(required=False, allow_blank=True, max_length=64, default='')
    phone = CleanCharField(required=False, allow_blank=True, max_length=32, default='')
    licence_file = serializers.FileField(required=False, allow_null=True)

    def validate(self, attrs):
        # older clients spell it "speciality"
        alias = attrs.pop('speciality', '')
        attrs['specialty'] = attrs.get('specialty') or alias
        if not attrs['specialty']:
            raise serializers.ValidationError({'specialty': 'This field is required.'})
        return attrs
