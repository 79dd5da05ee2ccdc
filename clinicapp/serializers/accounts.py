from rest_framework import serializers

from clinicapp.models import Account
from .fields import CleanCharField

ROLE_VALUES = [r for r, _ in Account.ROLE_CHOICES]


class AccountCreateSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(min_length=6, max_length=128, trim_whitespace=False, write_only=True)
    name = CleanCharField(required=False, allow_blank=True, max_length=150, default='')
    role = serializers.ChoiceField(choices=ROLE_VALUES, required=False, default=Account.ROLE_USER)


class AccountUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255, required=False)
    name = CleanCharField(required=False, allow_blank=True, max_length=150)
    role = serializers.ChoiceField(choices=ROLE_VALUES, required=False)


def format_account(a: Account) -> dict:
    return {
        'id': a.id,
        'email': a.email,
        'name': a.name,
        'role': a.role,
        'accountStatus': a.account_status,
        'isActive': a.is_active,
        'createdAt': a.created_at.isoformat(),
    }
