"""
Response serializers: ORM 对象 → JSON-able dict。

只负责「输出格式化」，不做任何解析或校验。
输入解析和校验在 loyalty/intake/。
等级、福利状态、使用百分比都是读取时推导的，这里每次现算，从不存库。
"""

from .formatting import format_currency, format_date, format_phone_number, format_relative_time
from .ledger import benefit_status, ledger_summary


def _iso(value):
    return value.isoformat() if value else None


def serialize_tier(tier):
    return tier.to_dict() if tier else None


def serialize_tier_catalog(catalog):
    return {'tiers': [serialize_tier(tier) for tier in catalog]}


def serialize_tier_progress(progress):
    return {
        'current_tier': progress.current_tier.name,
        'next_tier': progress.next_tier.name if progress.next_tier else None,
        'points_to_next': progress.points_to_next,
        'progress_percentage': progress.progress_percentage,
        'multiplier': progress.current_tier.multiplier,
    }


def serialize_benefit(benefit):
    return {
        'type': benefit.kind,
        'name': benefit.get_kind_display(),
        'total': benefit.total,
        'remaining': benefit.remaining,
        'used': benefit.used,
        'status': benefit_status(benefit),
        'last_used': _iso(benefit.last_used),
        'expiry_date': _iso(benefit.expiry_date),
    }


def serialize_service(service):
    return {
        'id': str(service.id),
        'name': service.name,
        'description': service.description,
        'category': service.category,
        'cost': str(service.cost),
        'cost_display': format_currency(service.cost),
        'points_earned': service.points_earned,
        'completed': service.completed,
        'date': _iso(service.date),
        'date_display': format_date(service.date) if service.date else None,
        'date_relative': format_relative_time(service.date) if service.date else None,
        'benefit_used': service.benefit_used,
        'provider': service.provider,
        'notes': service.notes,
    }


def serialize_patient(patient):
    """患者卡片：身份 + 等级进度 + 福利账本 + 服务历史。"""
    benefits = list(patient.dental_benefits.all())
    progress = patient.tier_progress
    return {
        'id': str(patient.id),
        'name': patient.name,
        'email': patient.email,
        'phone': patient.phone,
        'phone_display': format_phone_number(patient.phone),
        'membership_id': patient.membership_id,
        'loyalty_points': patient.loyalty_points,
        'membership_tier': progress.current_tier.name,
        'points_to_next_tier': progress.points_to_next,
        'tier_progress': serialize_tier_progress(progress),
        'is_active': patient.is_active,
        'member_since': _iso(patient.member_since),
        'dental_benefits': [serialize_benefit(b) for b in benefits],
        'benefits_summary': ledger_summary(benefits),
        'services': [serialize_service(s) for s in patient.services.all()],
    }


def serialize_points_award(patient, credited):
    return {
        'patient_id': str(patient.id),
        'credited': credited,
        'loyalty_points': patient.loyalty_points,
        'membership_tier': patient.membership_tier,
    }


def serialize_registration(registration):
    return {
        'id': str(registration.id),
        'full_name': registration.full_name,
        'email': registration.email,
        'phone': registration.phone,
        'date_of_birth': _iso(registration.date_of_birth),
        'address': {
            'street': registration.street,
            'city': registration.city,
            'state': registration.state,
            'zip_code': registration.zip_code,
            'country': registration.country,
        },
        'emergency_contact': registration.emergency_contact,
        'emergency_phone': registration.emergency_phone,
        'dentist_id': registration.dentist_id or None,
        'status': registration.status,
        'rejection_reason': registration.rejection_reason,
        'created_at': _iso(registration.created_at),
        'decided_at': _iso(registration.decided_at),
    }


def serialize_registration_list(registrations):
    results = [serialize_registration(r) for r in registrations]
    return {
        'count': len(results),
        'registrations': results,
    }


def serialize_redemption(redemption):
    return {
        'id': str(redemption.id),
        'patient_id': str(redemption.patient_id),
        'dentist_id': redemption.dentist_id,
        'service_id': str(redemption.service_id) if redemption.service_id else None,
        'service_name': redemption.service_name,
        'benefit_type': redemption.benefit_type,
        'points_used': redemption.points_used,
        'status': redemption.status,
        'notes': redemption.notes,
        'redemption_date': _iso(redemption.redemption_date),
        'completed_at': _iso(redemption.completed_at),
    }


def serialize_redemption_list(redemptions, status_counts):
    results = [serialize_redemption(r) for r in redemptions]
    return {
        'count': len(results),
        'status_counts': status_counts,
        'redemptions': results,
    }


def serialize_patient_summary(patient):
    """搜索结果行：不带福利和服务历史。"""
    return {
        'id': str(patient.id),
        'name': patient.name,
        'email': patient.email,
        'membership_id': patient.membership_id,
        'loyalty_points': patient.loyalty_points,
        'membership_tier': patient.membership_tier,
        'is_active': patient.is_active,
    }


def serialize_patient_list(patients):
    results = [serialize_patient_summary(p) for p in patients]
    return {
        'count': len(results),
        'patients': results,
    }


def serialize_client_snapshot(client):
    """写入 best-effort 存储的名单快照，不包含密码。"""
    return {
        'order_number': client.order_number,
        'billing_name': client.billing_name,
        'email': client.email,
        'billing_phone': client.billing_phone,
        'has_registered': client.has_registered,
        'registered_at': _iso(client.registered_at),
    }
