"""
Intake dataclass: 业务逻辑唯一认识的标准输入格式。

parsers.py 把前端提交的原始 dict（camelCase 或 snake_case 都接受）转成这些结构，
业务层（services.py）只消费这些结构，永远不碰原始请求数据。
"""

from dataclasses import dataclass, field


@dataclass
class ClientRegistrationData:
    """名单客户自助注册：姓名 + 订单号（control number）+ 密码。"""

    full_name: str
    control_number: str
    password: str
    confirm_password: str | None = None


@dataclass
class AddressData:
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "Philippines"


@dataclass
class NewRegistrationData:
    """非名单新客户注册，提交后等待管理员审核。"""

    full_name: str
    email: str
    phone: str
    date_of_birth: str            # ISO 8601: "YYYY-MM-DD"
    emergency_contact: str
    emergency_phone: str
    password: str
    confirm_password: str | None = None
    address: AddressData = field(default_factory=AddressData)
    dentist_id: str = ""


@dataclass
class RedemptionRequestData:
    patient_id: str
    dentist_id: str
    benefit_type: str
    service_name: str = ""
    service_id: str | None = None
    points_used: int = 0
    notes: str = ""
