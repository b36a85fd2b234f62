"""
输入校验。

每个 validate_* 收集全部字段错误，一次性抛出 ValidationError：
    detail = {"errors": [{"field": "...", "message": "..."}, ...]}
前端按 field 把错误显示在对应输入框下面，用户修改后重新提交。
"""

import re
from datetime import date

from ..exceptions import ValidationError
from ..models import BENEFIT_KINDS
from .types import ClientRegistrationData, NewRegistrationData, RedemptionRequestData

# ── 共用校验正则 ───────────────────────────────────────────────────────────
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\(?([0-9]{3})\)?[-. ]?([0-9]{3})[-. ]?([0-9]{4})$")

CLIENT_PASSWORD_MIN_LENGTH = 4
NEW_CLIENT_PASSWORD_MIN_LENGTH = 6

REQUIRED = "This field is required."


def _raise_if_errors(errors):
    if errors:
        raise ValidationError(
            message="Request validation failed.",
            code="VALIDATION_ERROR",
            detail={"errors": errors},
        )


def _check_password(errors, password, confirm_password, min_length, required_confirmation):
    if not password:
        errors.append({"field": "password", "message": REQUIRED})
    elif len(password) < min_length:
        errors.append({
            "field": "password",
            "message": f"Password must be at least {min_length} characters long.",
        })

    if required_confirmation and not confirm_password:
        errors.append({"field": "confirm_password", "message": REQUIRED})
    elif confirm_password is not None and password != confirm_password:
        errors.append({"field": "confirm_password", "message": "Passwords do not match."})


def validate_client_registration(data: ClientRegistrationData) -> None:
    errors = []

    if not data.full_name.strip():
        errors.append({"field": "full_name", "message": "Full name is required."})
    if not data.control_number.strip():
        errors.append({"field": "control_number", "message": "Control number is required."})

    _check_password(
        errors, data.password, data.confirm_password,
        CLIENT_PASSWORD_MIN_LENGTH, required_confirmation=False,
    )
    _raise_if_errors(errors)


def validate_new_registration(data: NewRegistrationData) -> None:
    errors = []

    # Step 1: personal information
    if not data.full_name.strip():
        errors.append({"field": "full_name", "message": REQUIRED})
    if not data.email.strip():
        errors.append({"field": "email", "message": REQUIRED})
    elif not EMAIL_RE.match(data.email.strip()):
        errors.append({"field": "email", "message": "Please enter a valid email address."})
    if not data.phone.strip():
        errors.append({"field": "phone", "message": REQUIRED})
    elif not PHONE_RE.match(data.phone.strip()):
        errors.append({"field": "phone", "message": "Please enter a valid phone number."})
    if not data.date_of_birth:
        errors.append({"field": "date_of_birth", "message": REQUIRED})
    else:
        try:
            date.fromisoformat(data.date_of_birth)
        except ValueError:
            errors.append({"field": "date_of_birth", "message": "Date of birth must be YYYY-MM-DD."})

    # Step 2: address & emergency contact
    for name in ("street", "city", "state", "zip_code"):
        if not getattr(data.address, name).strip():
            errors.append({"field": f"address.{name}", "message": REQUIRED})
    if not data.emergency_contact.strip():
        errors.append({"field": "emergency_contact", "message": REQUIRED})
    if not data.emergency_phone.strip():
        errors.append({"field": "emergency_phone", "message": REQUIRED})
    elif not PHONE_RE.match(data.emergency_phone.strip()):
        errors.append({"field": "emergency_phone", "message": "Please enter a valid phone number."})

    # Step 3: password
    _check_password(
        errors, data.password, data.confirm_password,
        NEW_CLIENT_PASSWORD_MIN_LENGTH, required_confirmation=True,
    )
    _raise_if_errors(errors)


def validate_redemption_request(data: RedemptionRequestData) -> None:
    errors = []

    if not data.patient_id:
        errors.append({"field": "patient_id", "message": REQUIRED})
    if not data.dentist_id:
        errors.append({"field": "dentist_id", "message": REQUIRED})
    if data.benefit_type not in BENEFIT_KINDS:
        errors.append({
            "field": "benefit_type",
            "message": f"Unknown benefit type: {data.benefit_type!r}.",
        })
    if data.points_used < 0:
        errors.append({"field": "points_used", "message": "Points used cannot be negative."})

    _raise_if_errors(errors)
