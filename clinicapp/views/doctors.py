from drf_yasg.utils import swagger_auto_schema
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinicapp.permissions import ADMIN_ROLES, IsAdminRole, ensure_role
from clinicapp.serializers.clinical import DoctorUpdateSerializer
from clinicapp.serializers.onboarding import ProfileStatusSerializer
from clinicapp.services import doctors as doctor_service
from clinicapp.services.doctors import format_doctor
from clinicapp.services.onboarding import update_profile_status


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_doctors(request):
    """Return doctor profiles.

    Query params:
      - status: pending|approved|rejected (optional)
      - q: optional search on name or specialty
    """
    q = (request.query_params.get('q') or '').strip() or None
    status_filter = (request.query_params.get('status') or '').strip().lower() or None
    qs = doctor_service.list_doctors(status=status_filter, q=q)
    return Response([format_doctor(p) for p in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def pending_doctors(request):
    return Response([format_doctor(p) for p in doctor_service.pending_doctors()])


@swagger_auto_schema(method='put', request_body=DoctorUpdateSerializer)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def doctor_detail(request, doctor_id: int):
    if request.method == 'GET':
        return Response(format_doctor(doctor_service.get_doctor(doctor_id)))

    ensure_role(request.user, ADMIN_ROLES)
    s = DoctorUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    fields = {k: v[k] for k in ('specialty', 'phone') if k in v}
    if 'licenseNumber' in v:
        fields['license_number'] = v['licenseNumber']
    if 'nationalId' in v:
        fields['national_id'] = v['nationalId']
    profile = doctor_service.update_doctor(request.user, doctor_id, **fields)
    if v.get('name'):
        profile.account.name = v['name']
        profile.account.save(update_fields=['name'])
    return Response(format_doctor(profile))


@swagger_auto_schema(method='patch', request_body=ProfileStatusSerializer,
                     responses={200: 'status changed', 400: 'unknown status', 404: 'no such profile'})
@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def doctor_status(request, doctor_id: int):
    """Override a doctor profile status; the account status follows it."""
    s = ProfileStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    profile = update_profile_status(doctor_id, s.validated_data['status'], request.user)
    return Response({'ok': True, 'doctor': format_doctor(doctor_service.get_doctor(profile.id))})
