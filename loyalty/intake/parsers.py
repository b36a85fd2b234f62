"""
原始请求 dict → intake dataclass。

前端（React）提交 camelCase（fullName / controlNumber / confirmPassword），
后台管理脚本提交 snake_case，两种命名都接受。这里只做取值和 strip，校验在 validation.py。
"""

import re
from typing import Any

from ..exceptions import ValidationError
from .types import AddressData, ClientRegistrationData, NewRegistrationData, RedemptionRequestData

INT_RE = re.compile(r"^-?\d+$")


def _pick(raw: dict, *keys: str, default: Any = "") -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def _text(raw: dict, *keys: str) -> str:
    return str(_pick(raw, *keys) or "").strip()


def _field_error(field_name: str, message: str) -> ValidationError:
    return ValidationError(
        message="Request validation failed.",
        detail={"errors": [{"field": field_name, "message": message}]},
    )


def ensure_object(raw: Any) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError(
            message="Request body must be a JSON object.",
            code="INVALID_PAYLOAD",
        )
    return raw


def parse_int(value: Any, field_name: str) -> int:
    """
    严格整数：JSON 整数或纯数字字符串。

    1.9 不会被截断成 1，true / false 也不算整数（bool 是 int 的子类）。
    """
    if isinstance(value, bool):
        raise _field_error(field_name, "Must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and INT_RE.match(value.strip()):
        return int(value.strip())
    raise _field_error(field_name, "Must be an integer.")


def parse_text(value: Any, field_name: str) -> str:
    """可选文本字段：None → ''，非字符串（数字、列表…）直接拒绝。"""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _field_error(field_name, "Must be a string.")
    return value.strip()


def parse_client_registration(raw: Any) -> ClientRegistrationData:
    raw = ensure_object(raw)
    confirm = _pick(raw, "confirmPassword", "confirm_password", default=None)
    return ClientRegistrationData(
        full_name=_text(raw, "fullName", "full_name"),
        control_number=_text(raw, "controlNumber", "control_number"),
        password=str(_pick(raw, "password") or ""),
        confirm_password=None if confirm is None else str(confirm),
    )


def parse_new_registration(raw: Any) -> NewRegistrationData:
    raw = ensure_object(raw)
    address = raw.get("address") or {}
    if not isinstance(address, dict):
        address = {}
    confirm = _pick(raw, "confirmPassword", "confirm_password", default=None)

    return NewRegistrationData(
        full_name=_text(raw, "fullName", "full_name"),
        email=_text(raw, "email"),
        phone=_text(raw, "phone"),
        date_of_birth=_text(raw, "dateOfBirth", "date_of_birth"),
        emergency_contact=_text(raw, "emergencyContact", "emergency_contact"),
        emergency_phone=_text(raw, "emergencyPhone", "emergency_phone"),
        password=str(_pick(raw, "password") or ""),
        confirm_password=None if confirm is None else str(confirm),
        address=AddressData(
            street=_text(address, "street"),
            city=_text(address, "city"),
            state=_text(address, "state"),
            zip_code=_text(address, "zipCode", "zip_code"),
            country=_text(address, "country") or "Philippines",
        ),
        dentist_id=_text(raw, "dentistId", "dentist_id"),
    )


def parse_redemption_request(raw: Any) -> RedemptionRequestData:
    raw = ensure_object(raw)
    points = parse_int(_pick(raw, "pointsUsed", "points_used", default=0), "points_used")

    return RedemptionRequestData(
        patient_id=_text(raw, "patientId", "patient_id"),
        dentist_id=_text(raw, "dentistId", "dentist_id"),
        benefit_type=_text(raw, "benefitType", "benefit_type"),
        service_name=_text(raw, "serviceName", "service_name"),
        service_id=_text(raw, "serviceId", "service_id") or None,
        points_used=points,
        notes=_text(raw, "notes"),
    )
