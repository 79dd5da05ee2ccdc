from rest_framework import serializers

from .fields import CleanCharField


class PatientCreateSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)
    name = CleanCharField(max_length=150)
    phone = CleanCharField(required=False, allow_blank=True, max_length=32, default='')
    dateOfBirth = serializers.DateField(required=False, allow_null=True, default=None)
    address = CleanCharField(required=False, allow_blank=True, max_length=500, default='')
    password = serializers.CharField(required=False, allow_blank=True, write_only=True, trim_whitespace=False)

    def validate_name(self, v):
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters.')
        return v


class PatientUpdateSerializer(serializers.Serializer):
    name = CleanCharField(required=False, max_length=150)
    phone = CleanCharField(required=False, allow_blank=True, max_length=32)
    dateOfBirth = serializers.DateField(required=False, allow_null=True)
    address = CleanCharField(required=False, allow_blank=True, max_length=500)

    def to_service_fields(self) -> dict:
        v = self.validated_data
        fields = {k: v[k] for k in ('name', 'phone', 'address') if k in v}
        if 'dateOfBirth' in v:
            fields['date_of_birth'] = v['dateOfBirth']
        return fields
