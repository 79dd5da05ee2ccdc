"""
Account administration.

Accounts are never removed: DELETE switches the account off, which also
invalidates its access tokens on the next request.
"""
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Account
from ..permissions import IsAdminRole
from ..serializers.accounts import AccountCreateSerializer, AccountUpdateSerializer, format_account
from ..services import accounts as account_service


@swagger_auto_schema(method='post', request_body=AccountCreateSerializer)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def users(request):
    if request.method == 'POST':
        s = AccountCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        account = account_service.create_account(request.user, **s.validated_data)
        return Response(format_account(account), status=status.HTTP_201_CREATED)

    qs = Account.objects.order_by('id')
    role = request.query_params.get('role')
    if role:
        qs = qs.filter(role=role)
    return Response([format_account(a) for a in qs])


@swagger_auto_schema(method='put', request_body=AccountUpdateSerializer)
@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, user_id: int):
    if request.method == 'GET':
        return Response(format_account(account_service.get_account(user_id)))
    if request.method == 'PUT':
        s = AccountUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        account = account_service.update_account(request.user, user_id, **s.validated_data)
        return Response(format_account(account))
    account = account_service.disable_account(request.user, user_id)
    return Response({'ok': True, 'message': 'Account disabled.', 'user': format_account(account)})
