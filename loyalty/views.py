"""
JSON API。View 只做三件事：解析输入 → 调 service → 序列化输出。

所有业务异常直接冒泡，由 exception_handler.unified_exception_handler 统一格式化。
请求体一律先过 ensure_object：JSON 数组 / 字符串直接 400，不会在 .get() 上炸成 500。
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .intake import (
    ensure_object,
    parse_client_registration,
    parse_int,
    parse_new_registration,
    parse_redemption_request,
    parse_text,
)
from .serializers import (
    serialize_patient,
    serialize_patient_list,
    serialize_points_award,
    serialize_redemption,
    serialize_redemption_list,
    serialize_registration,
    serialize_registration_list,
    serialize_tier_catalog,
)
from .tiers import get_tier_catalog


class TierCatalogView(APIView):
    """GET /api/tiers/"""

    def get(self, request):
        return Response(serialize_tier_catalog(get_tier_catalog()))


class ClientRegisterView(APIView):
    """POST /api/clients/register/ - 名单客户用姓名 + 订单号注册"""

    def post(self, request):
        data = parse_client_registration(request.data)
        patient = services.register_client(data)
        patient = services.get_patient_detail(patient.id)
        return Response(serialize_patient(patient), status=status.HTTP_201_CREATED)


class RegistrationListCreateView(APIView):
    """GET / POST /api/registrations/"""

    def get(self, request):
        registrations = services.list_registrations(status=request.query_params.get('status'))
        return Response(serialize_registration_list(registrations))

    def post(self, request):
        data = parse_new_registration(request.data)
        registration = services.submit_registration(data)
        return Response(serialize_registration(registration), status=status.HTTP_201_CREATED)


class RegistrationApproveView(APIView):
    """POST /api/registrations/<id>/approve/"""

    def post(self, request, registration_id):
        registration = services.approve_registration(registration_id)
        return Response(serialize_registration(registration))


class RegistrationRejectView(APIView):
    """POST /api/registrations/<id>/reject/  body: {"reason": "..."}"""

    def post(self, request, registration_id):
        body = ensure_object(request.data)
        reason = parse_text(body.get('reason'), 'reason')
        registration = services.reject_registration(registration_id, reason)
        return Response(serialize_registration(registration))


class PatientSearchView(APIView):
    """GET /api/patients/?q=... - 按姓名 / 邮箱 / 会员号搜索"""

    def get(self, request):
        patients = services.search_patients(request.query_params.get('q'))
        return Response(serialize_patient_list(patients))


class PatientDetailView(APIView):
    """GET /api/patients/<id>/ - 会员卡：等级进度 + 福利账本"""

    def get(self, request, patient_id):
        return Response(serialize_patient(services.get_patient_detail(patient_id)))


class PatientPointsView(APIView):
    """
    POST /api/patients/<id>/points/
      {"points": 150}                         → 按等级倍率发放
      {"balance": 900, "reason": "..."}       → 管理员修正
    """

    def post(self, request, patient_id):
        body = ensure_object(request.data)
        if 'balance' in body:
            patient = services.adjust_points(
                patient_id,
                parse_int(body.get('balance'), 'balance'),
                parse_text(body.get('reason'), 'reason'),
            )
            return Response(serialize_points_award(patient, 0))

        patient, credited = services.award_points(patient_id, parse_int(body.get('points'), 'points'))
        return Response(serialize_points_award(patient, credited))


class RedemptionListCreateView(APIView):
    """
    GET  /api/redemptions/?patient_id=&status=   兑换列表 + 各状态计数
    POST /api/redemptions/                       创建 pending 兑换
    """

    def get(self, request):
        patient_id = request.query_params.get('patient_id')
        redemptions = services.list_redemptions(
            patient_id=patient_id, status=request.query_params.get('status'),
        )
        counts = services.redemption_status_counts(patient_id=patient_id)
        return Response(serialize_redemption_list(redemptions, counts))

    def post(self, request):
        data = parse_redemption_request(request.data)
        redemption = services.create_redemption(data)
        return Response(serialize_redemption(redemption), status=status.HTTP_201_CREATED)


class RedemptionCompleteView(APIView):
    """POST /api/redemptions/<id>/complete/ - 扣减账本"""

    def post(self, request, redemption_id):
        return Response(serialize_redemption(services.complete_redemption(redemption_id)))


class RedemptionCancelView(APIView):
    """POST /api/redemptions/<id>/cancel/"""

    def post(self, request, redemption_id):
        return Response(serialize_redemption(services.cancel_redemption(redemption_id)))
