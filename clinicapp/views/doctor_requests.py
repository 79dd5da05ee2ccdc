"""
Doctor application endpoints.

Anyone may submit an application.  Listing, approving and rejecting are
reserved for administrators.
"""
from __future__ import annotations

from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..exceptions import NotFound
from ..models import DoctorRequest
from ..permissions import ADMIN_ROLES, IsAdminRole, ensure_role
from ..serializers.onboarding import (
    DoctorRequestCreateSerializer,
    DoctorRequestListQuerySerializer,
    RejectSerializer,
)
from ..services import onboarding
from ..services.doctors import format_request
from ..throttles import RegisterRateThrottle

status_param = openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING,
                                 enum=['pending', 'approved', 'rejected'])


def _submit(request):
    s = DoctorRequestCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    req = onboarding.submit_request(
        email=v['email'],
        password=v['password'],
        name=v['name'],
        specialty=v['specialty'],
        license_number=v['licenseNumber'],
        phone=v['phone'],
    )
    return Response({
        'ok': True,
        'message': 'Doctor request submitted successfully. Awaiting admin approval.',
        'requestId': req.id,
    }, status=status.HTTP_201_CREATED)


def _list(request):
    ensure_role(request.user, ADMIN_ROLES)
    q = DoctorRequestListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = DoctorRequest.objects.all()
    if q.validated_data.get('status'):
        qs = qs.filter(status=q.validated_data['status'])
    return Response([format_request(r) for r in qs.order_by('-created_at', '-id')])


@swagger_auto_schema(method='get', manual_parameters=[status_param])
@swagger_auto_schema(method='post', request_body=DoctorRequestCreateSerializer,
                     responses={201: 'request stored', 409: 'email in use'})
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
@throttle_classes([RegisterRateThrottle])
def doctor_requests(request):
    if request.method == 'POST':
        return _submit(request)
    return _list(request)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def doctor_request_detail(request, request_id: int):
    req = DoctorRequest.objects.filter(pk=request_id).first()
    if req is None:
        raise NotFound('Doctor request not found.')
    return Response(format_request(req))


@swagger_auto_schema(method='put', responses={200: 'approved', 404: 'no pending request', 409: 'email in use'})
@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def approve_doctor_request(request, request_id: int):
    req = onboarding.approve_request(request_id, request.user)
    return Response({
        'ok': True,
        'message': 'Doctor request approved.',
        'request': format_request(req),
        'accountId': req.account_id,
    })


@swagger_auto_schema(method='put', request_body=RejectSerializer, responses={200: 'rejected', 404: 'no pending request'})
@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def reject_doctor_request(request, request_id: int):
    s = RejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = onboarding.reject_request(request_id, request.user, s.validated_data['reason'])
    return Response({'ok': True, 'message': 'Doctor request rejected.', 'request': format_request(req)})
