import logging
from datetime import date
from decimal import Decimal, ROUND_FLOOR

from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from .exceptions import (
    BenefitExhaustedError,
    BenefitExpiredError,
    BlockError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .intake import (
    ClientRegistrationData,
    NewRegistrationData,
    RedemptionRequestData,
    validate_client_registration,
    validate_new_registration,
    validate_redemption_request,
)
from .ledger import apply_redemption, get_benefit_grants, is_expired
from .models import (
    BENEFIT_CATEGORIES,
    BENEFIT_KIND_CHOICES,
    BenefitStatus,
    ClientRecord,
    Patient,
    PendingRegistration,
    Redemption,
    Service,
)

logger = logging.getLogger(__name__)

BENEFIT_NAMES = dict(BENEFIT_KIND_CHOICES)


# ===================================================================
# Lookups
# ===================================================================

def _get_or_404(queryset, object_id, code, label):
    try:
        return queryset.get(id=object_id)
    except (queryset.model.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(
            message=f'{label} not found',
            code=code,
            detail={'id': str(object_id)},
        )


def get_patient(patient_id, for_update=False):
    """Get patient by ID. Raises NotFoundError if not found."""
    queryset = Patient.objects.select_for_update() if for_update else Patient.objects.all()
    return _get_or_404(queryset, patient_id, 'PATIENT_NOT_FOUND', 'Patient')


def get_patient_detail(patient_id):
    queryset = Patient.objects.prefetch_related('dental_benefits', 'services')
    return _get_or_404(queryset, patient_id, 'PATIENT_NOT_FOUND', 'Patient')


def get_registration(registration_id, for_update=False):
    queryset = PendingRegistration.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    return _get_or_404(queryset, registration_id, 'REGISTRATION_NOT_FOUND', 'Registration')


def get_redemption(redemption_id, for_update=False):
    queryset = Redemption.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    return _get_or_404(queryset, redemption_id, 'REDEMPTION_NOT_FOUND', 'Redemption')


def list_registrations(status=None):
    queryset = PendingRegistration.objects.order_by('-created_at')
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def _redemptions_for(patient_id=None):
    queryset = Redemption.objects.all()
    if patient_id:
        # 先查患者：不存在或 id 格式错误统一 404，而不是在 filter 里炸掉
        queryset = queryset.filter(patient=get_patient(patient_id))
    return queryset


def list_redemptions(patient_id=None, status=None):
    queryset = _redemptions_for(patient_id).select_related('patient').order_by('-redemption_date')
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def redemption_status_counts(patient_id=None):
    """Dashboard 计数：{'pending': n, 'completed': n, 'cancelled': n}，不受 status 过滤影响。"""
    counts = {status: 0 for status, _ in Redemption.STATUS_CHOICES}
    rows = _redemptions_for(patient_id).values('status').annotate(total=Count('id')).order_by()
    for row in rows:
        counts[row['status']] = row['total']
    return counts


def search_patients(query):
    """
    按姓名 / 邮箱 / 会员号模糊搜索（忽略大小写的包含匹配）。

    空查询返回全部患者。
    """
    queryset = Patient.objects.order_by('name', 'membership_id')
    query = (query or '').strip()
    if query:
        queryset = queryset.filter(
            Q(name__icontains=query) | Q(email__icontains=query) | Q(membership_id__icontains=query)
        )
    return queryset


def _clean_reason(reason):
    """审计原因：None → ''；非字符串按输入错误处理，不做 str() 兜底。"""
    if reason is None:
        return ''
    if not isinstance(reason, str):
        raise ValidationError(
            message='Request validation failed.',
            detail={'errors': [{'field': 'reason', 'message': 'Must be a string.'}]},
        )
    return reason.strip()


def _ensure_pending(obj, action, label):
    """终态（approved / rejected / completed / cancelled）不允许再流转。"""
    if obj.status != 'pending':
        raise ConflictError(
            message=f"{label} is already {obj.status} and cannot be {action}.",
            code='INVALID_TRANSITION',
            detail={'id': str(obj.id), 'current_status': obj.status, 'action': action},
        )


# ===================================================================
# Registration Matcher: 名单客户自助注册
# ===================================================================

def match_client(full_name, control_number, roster=None):
    """
    在名单中查找客户。

    条件（与前端旧逻辑一致，故意不做加强）：
    - order_number 与 control_number 忽略大小写完全相等
    - billing_name（小写）包含 full_name 按空格切分后的第一个词（小写）
    多条记录共用同一订单号时，按迭代顺序取第一条。不修改名单。
    """
    if roster is None:
        roster = ClientRecord.objects.filter(order_number__iexact=control_number).order_by('id')

    wanted_number = control_number.lower()
    first_token = full_name.lower().split(' ')[0]

    same_number = [c for c in roster if c.order_number.lower() == wanted_number]
    if len(same_number) > 1:
        logger.warning(
            "[match_client] %d roster entries share order number %s; first name match wins",
            len(same_number), control_number,
        )

    for client in same_number:
        if first_token in client.billing_name.lower():
            return client
    return None


def _grant_initial_benefits(patient, today):
    expiry = date(today.year, 12, 31)
    BenefitStatus.objects.bulk_create([
        BenefitStatus(patient=patient, kind=kind, total=total, remaining=total, expiry_date=expiry)
        for kind, total in get_benefit_grants().items()
    ])


def register_client(data: ClientRegistrationData, now=None):
    """
    名单客户注册：校验 → 匹配 → 标记已注册 → 创建 Patient + 初始福利。
    Raises ValidationError / NotFoundError / ConflictError。
    """
    validate_client_registration(data)
    now = now or timezone.now()

    with transaction.atomic():
        client = match_client(data.full_name, data.control_number)
        if client is None:
            raise NotFoundError(
                message='Client not found. Please check your name and control number.',
                code='CLIENT_NOT_FOUND',
                detail={'control_number': data.control_number},
            )

        # 重新加锁读取，防止同一名单记录被注册两次
        client = ClientRecord.objects.select_for_update().get(pk=client.pk)
        if client.has_registered:
            raise ConflictError(
                message='This account is already registered. Please use the login screen.',
                code='ALREADY_REGISTERED',
                detail={'control_number': client.order_number},
            )

        client.has_registered = True
        client.password = make_password(data.password)
        client.registered_at = now
        client.save(update_fields=['has_registered', 'password', 'registered_at'])

        patient = Patient.objects.create(
            client=client,
            name=client.billing_name,
            email=client.email,
            phone=client.billing_phone,
            emergency_contact='Not provided',
            emergency_phone='Not provided',
            membership_id=client.order_number,
            member_since=now.date(),
        )
        _grant_initial_benefits(patient, now.date())

        # 快照写入在事务提交后异步执行，失败只重试不回滚
        from loyalty.tasks import persist_client_snapshot
        client_id = client.id
        transaction.on_commit(lambda: persist_client_snapshot.delay(client_id))

    logger.info("[register_client] roster %s registered as patient %s", client.order_number, patient.id)
    return patient


# ===================================================================
# Registration Workflow: pending → approved / rejected
# ===================================================================

def submit_registration(data: NewRegistrationData):
    validate_new_registration(data)

    registration = PendingRegistration.objects.create(
        full_name=data.full_name,
        email=data.email,
        phone=data.phone,
        date_of_birth=date.fromisoformat(data.date_of_birth),
        street=data.address.street,
        city=data.address.city,
        state=data.address.state,
        zip_code=data.address.zip_code,
        country=data.address.country,
        emergency_contact=data.emergency_contact,
        emergency_phone=data.emergency_phone,
        password=make_password(data.password),
        dentist_id=data.dentist_id,
        status='pending',
    )
    logger.info("[submit_registration] registration %s pending review", registration.id)
    return registration


def approve_registration(registration_id, now=None):
    """pending → approved。不创建患者，患者开户是外部步骤。"""
    with transaction.atomic():
        registration = get_registration(registration_id, for_update=True)
        _ensure_pending(registration, 'approved', 'Registration')

        registration.status = 'approved'
        registration.decided_at = now or timezone.now()
        registration.save(update_fields=['status', 'decided_at'])

    logger.info("[approve_registration] registration %s approved", registration.id)
    return registration


def reject_registration(registration_id, reason, now=None):
    """pending → rejected。reason 必填，保留用于审计。"""
    reason = _clean_reason(reason)
    if not reason:
        raise ValidationError(
            message='A rejection reason is required.',
            code='REJECTION_REASON_REQUIRED',
            detail={'errors': [{'field': 'reason', 'message': 'This field is required.'}]},
        )

    with transaction.atomic():
        registration = get_registration(registration_id, for_update=True)
        _ensure_pending(registration, 'rejected', 'Registration')

        registration.status = 'rejected'
        registration.rejection_reason = reason
        registration.decided_at = now or timezone.now()
        registration.save(update_fields=['status', 'rejection_reason', 'decided_at'])

    logger.info("[reject_registration] registration %s rejected: %s", registration.id, reason)
    return registration


# ===================================================================
# Redemption Workflow: pending → completed / cancelled
# ===================================================================

def _expiry_enforced():
    return getattr(settings, 'LOYALTY_ENFORCE_BENEFIT_EXPIRY', True)


def create_redemption(data: RedemptionRequestData, now=None):
    """创建 pending 兑换记录。此时不动账本。"""
    validate_redemption_request(data)

    patient = get_patient(data.patient_id)
    if not patient.is_active:
        raise BlockError(
            message='This membership is inactive.',
            code='PATIENT_INACTIVE',
            detail={'patient_id': str(patient.id)},
        )

    service = None
    if data.service_id:
        service = _get_or_404(patient.services.all(), data.service_id, 'SERVICE_NOT_FOUND', 'Service')

    service_name = data.service_name or (service.name if service else BENEFIT_NAMES[data.benefit_type])

    redemption = Redemption.objects.create(
        patient=patient,
        dentist_id=data.dentist_id,
        service=service,
        service_name=service_name,
        benefit_type=data.benefit_type,
        points_used=data.points_used,
        notes=data.notes,
        status='pending',
        redemption_date=now or timezone.now(),
    )
    logger.info("[create_redemption] redemption %s pending (%s for patient %s)",
                redemption.id, redemption.benefit_type, patient.id)
    return redemption


def complete_redemption(redemption_id, today=None, now=None):
    """
    pending → completed，唯一会扣减账本的地方。

    整个过程在一个事务里，按 兑换记录 → 患者 → 福利 的顺序加锁（按患者互斥），
    两个并发的完成操作不会同时看到 remaining > 0。
    任何一步失败（过期 / 用完）都会回滚：兑换仍是 pending，账本不变。
    """
    now = now or timezone.now()
    today = today or timezone.localdate()

    with transaction.atomic():
        redemption = get_redemption(redemption_id, for_update=True)
        _ensure_pending(redemption, 'completed', 'Redemption')

        get_patient(redemption.patient_id, for_update=True)
        benefit = (
            BenefitStatus.objects.select_for_update()
            .filter(patient_id=redemption.patient_id, kind=redemption.benefit_type)
            .first()
        )
        if benefit is None:
            raise BenefitExhaustedError(
                message=f'{BENEFIT_NAMES[redemption.benefit_type]} is not part of this membership.',
                detail={'benefit_type': redemption.benefit_type, 'total': 0, 'remaining': 0},
            )

        if _expiry_enforced() and is_expired(benefit, today):
            raise BenefitExpiredError(
                message=f'{BENEFIT_NAMES[benefit.kind]} expired on {benefit.expiry_date.isoformat()}.',
                detail={'benefit_type': benefit.kind, 'expiry_date': benefit.expiry_date.isoformat()},
            )

        apply_redemption(benefit, used_on=today)
        benefit.save(update_fields=['remaining', 'last_used'])

        service = redemption.service
        if service is None:
            service = Service.objects.create(
                patient_id=redemption.patient_id,
                name=redemption.service_name,
                category=BENEFIT_CATEGORIES[redemption.benefit_type],
                provider=redemption.dentist_id,
                notes=redemption.notes,
                completed=True,
                benefit_used=True,
                date=today,
            )
            redemption.service = service
        else:
            service.completed = True
            service.benefit_used = True
            service.date = service.date or today
            service.save(update_fields=['completed', 'benefit_used', 'date'])

        redemption.status = 'completed'
        redemption.completed_at = now
        redemption.save(update_fields=['status', 'completed_at', 'service', 'updated_at'])

    logger.info("[complete_redemption] redemption %s completed, %s remaining=%d",
                redemption.id, benefit.kind, benefit.remaining)
    return redemption


def cancel_redemption(redemption_id):
    """pending → cancelled，无条件，不动账本。"""
    with transaction.atomic():
        redemption = get_redemption(redemption_id, for_update=True)
        _ensure_pending(redemption, 'cancelled', 'Redemption')

        redemption.status = 'cancelled'
        redemption.save(update_fields=['status', 'updated_at'])

    logger.info("[cancel_redemption] redemption %s cancelled", redemption.id)
    return redemption


# ===================================================================
# Points
# ===================================================================

def award_points(patient_id, base_points):
    """
    按当前等级倍率发放积分。返回 (patient, credited)。

    credited = floor(base_points × multiplier)，用 Decimal 计算避免浮点误差。
    """
    if base_points < 0:
        raise ValidationError(
            message='Points to award cannot be negative.',
            code='INVALID_POINTS',
            detail={'points': base_points},
        )

    with transaction.atomic():
        patient = get_patient(patient_id, for_update=True)
        before = patient.membership_tier
        multiplier = Decimal(str(patient.tier_progress.current_tier.multiplier))
        credited = int((Decimal(base_points) * multiplier).to_integral_value(rounding=ROUND_FLOOR))

        patient.loyalty_points += credited
        patient.save(update_fields=['loyalty_points', 'updated_at'])

    after = patient.membership_tier
    if after != before:
        logger.info("[award_points] patient %s promoted %s → %s", patient.id, before, after)
    return patient, credited


def adjust_points(patient_id, new_balance, reason):
    """管理员修正积分余额，唯一允许减少积分的入口。"""
    reason = _clean_reason(reason)
    errors = []
    if new_balance < 0:
        errors.append({'field': 'points', 'message': 'Balance cannot be negative.'})
    if not reason:
        errors.append({'field': 'reason', 'message': 'This field is required.'})
    if errors:
        raise ValidationError(message='Request validation failed.', detail={'errors': errors})

    with transaction.atomic():
        patient = get_patient(patient_id, for_update=True)
        previous = patient.loyalty_points
        patient.loyalty_points = new_balance
        patient.save(update_fields=['loyalty_points', 'updated_at'])

    logger.warning("[adjust_points] patient %s balance %d → %d (%s)", patient.id, previous, new_balance, reason)
    return patient
