"""
福利账本（Benefit Ledger）。

每位患者有 4 种固定的年度牙科福利，每种记录 total / remaining。
本模块只做内存里的计算和变更，不碰数据库：
  - 调用方（services.py）负责加锁、保存、以及过期检查
  - 任何对象只要有 total / remaining / last_used / expiry_date 属性即可
    （BenefitStatus model 或测试里的简单对象）

不变量：0 <= remaining <= total；used 由 remaining < total 推导，从不单独存储。
"""

from django.conf import settings

from .exceptions import BenefitExhaustedError
from .tiers import round_percent

AVAILABLE = 'available'
PARTIAL = 'partial'
USED = 'used'

# 名单客户注册时的初始福利额度
DEFAULT_BENEFIT_GRANTS = {
    'oralProphylaxis': 2,
    'toothExtraction': 1,
    'lightCureFilling': 3,
    'fluorideTreatment': 2,
}


def get_benefit_grants():
    """settings.LOYALTY_BENEFIT_GRANTS 可覆盖默认额度。"""
    return dict(getattr(settings, 'LOYALTY_BENEFIT_GRANTS', None) or DEFAULT_BENEFIT_GRANTS)


def benefit_status(benefit):
    """available / partial / used，每次读取时推导。"""
    if benefit.remaining == 0:
        return USED
    if benefit.remaining < benefit.total:
        return PARTIAL
    return AVAILABLE


def usage_percentage(benefits):
    """所有福利合计的使用百分比。total 合计为 0 时返回 0。"""
    benefits = list(benefits)
    total = sum(b.total for b in benefits)
    used = sum(b.total - b.remaining for b in benefits)
    return round_percent(used, total)


def ledger_summary(benefits):
    benefits = list(benefits)
    total = sum(b.total for b in benefits)
    used = sum(b.total - b.remaining for b in benefits)
    return {
        'total': total,
        'used': used,
        'remaining': total - used,
        'usage_percentage': round_percent(used, total),
        'all_used': total - used == 0,
    }


def is_expired(benefit, today):
    """只是信息性判断，账本本身不会因过期而拒绝兑换。"""
    return benefit.expiry_date is not None and benefit.expiry_date < today


def apply_redemption(benefit, used_on=None):
    """
    消耗一次福利：remaining - 1，记录 last_used。

    remaining == 0 时抛 BenefitExhaustedError，benefit 保持不变
    （不 clamp 到 0，更不允许变成负数）。
    """
    if benefit.remaining <= 0:
        raise BenefitExhaustedError(
            message='This benefit has been fully used for the year.',
            detail={
                'benefit_type': getattr(benefit, 'kind', None),
                'total': benefit.total,
                'remaining': benefit.remaining,
            },
        )

    benefit.remaining -= 1
    if used_on is not None:
        benefit.last_used = used_on
    return benefit
