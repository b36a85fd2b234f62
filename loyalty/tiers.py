"""
会员等级计算（Tier Calculator）。

纯函数：积分 → 当前等级 / 下一等级 / 距下一等级积分 / 进度百分比。
等级目录（catalog）是注入的配置，不是模块级常量：
  - 默认目录 DEFAULT_TIER_CATALOG
  - settings.LOYALTY_TIERS 可覆盖（list[dict]），加载时校验
"""

from dataclasses import dataclass, field
from typing import Sequence

from django.conf import settings

from .exceptions import ValidationError


@dataclass(frozen=True)
class TierInfo:
    name: str
    min_points: int
    max_points: int | None = None     # 最高等级没有上限
    multiplier: float = 1.0           # 积分倍率，award_points 使用
    benefits: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'min_points': self.min_points,
            'max_points': self.max_points,
            'multiplier': self.multiplier,
            'benefits': list(self.benefits),
        }


@dataclass(frozen=True)
class TierProgress:
    current_tier: TierInfo
    next_tier: TierInfo | None
    points_to_next: int
    progress_percentage: int


DEFAULT_TIER_CATALOG: tuple[TierInfo, ...] = (
    TierInfo(
        name='Bronze',
        min_points=0,
        max_points=999,
        multiplier=1.0,
        benefits=(
            'Basic appointment reminders',
            'Birthday discount (10%)',
            '1x points on all services',
            'Priority scheduling for regular appointments',
        ),
    ),
    TierInfo(
        name='Silver',
        min_points=1000,
        max_points=2999,
        multiplier=1.2,
        benefits=(
            'Extended appointment reminders',
            'Birthday discount (15%)',
            '1.2x points on all services',
            'Priority scheduling',
            'Complimentary consultation once per year',
        ),
    ),
    TierInfo(
        name='Gold',
        min_points=3000,
        max_points=7499,
        multiplier=1.5,
        benefits=(
            'Premium appointment reminders',
            'Birthday discount (20%)',
            '1.5x points on all services',
            'Priority scheduling and expedited service',
            'Complimentary consultations (2x per year)',
            'Access to exclusive dental care packages',
            '10% discount on all cosmetic procedures',
        ),
    ),
    TierInfo(
        name='Platinum',
        min_points=7500,
        multiplier=2.0,
        benefits=(
            'VIP appointment reminders and concierge service',
            'Birthday discount (25%)',
            '2x points on all services',
            'Highest priority scheduling',
            'Unlimited complimentary consultations',
            'Exclusive access to new treatments',
            '15% discount on all cosmetic procedures',
            'Complimentary annual dental checkup',
            'Family member benefits extension',
        ),
    ),
)


def round_percent(part, whole):
    """
    100 × part / whole，四舍五入到整数（half-up）。

    只用整数运算，避免 Python round() 的银行家舍入。part / whole 均为非负整数。
    """
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def validate_catalog(catalog: Sequence[TierInfo]) -> tuple[TierInfo, ...]:
    """
    校验并按 min_points 升序返回等级目录。

    配置错误（空目录 / min_points 重复 / 最低等级不从 0 开始）抛 ValidationError。
    """
    if not catalog:
        raise ValidationError(message='Tier catalog is empty.', code='INVALID_TIER_CATALOG')

    ordered = tuple(sorted(catalog, key=lambda tier: tier.min_points))

    seen = {}
    for tier in ordered:
        if tier.min_points in seen:
            raise ValidationError(
                message=(
                    f"Tiers '{seen[tier.min_points]}' and '{tier.name}' "
                    f"share min_points={tier.min_points}."
                ),
                code='INVALID_TIER_CATALOG',
                detail={'min_points': tier.min_points},
            )
        seen[tier.min_points] = tier.name

    if ordered[0].min_points != 0:
        raise ValidationError(
            message=f"Lowest tier '{ordered[0].name}' must start at 0 points.",
            code='INVALID_TIER_CATALOG',
            detail={'min_points': ordered[0].min_points},
        )

    return ordered


def get_tier_catalog() -> tuple[TierInfo, ...]:
    """读取 settings.LOYALTY_TIERS（未配置则用默认目录），校验后返回。"""
    configured = getattr(settings, 'LOYALTY_TIERS', None)
    if not configured:
        return validate_catalog(DEFAULT_TIER_CATALOG)

    catalog = [
        TierInfo(
            name=item['name'],
            min_points=int(item['min_points']),
            max_points=item.get('max_points'),
            multiplier=float(item.get('multiplier', 1.0)),
            benefits=tuple(item.get('benefits', ())),
        )
        for item in configured
    ]
    return validate_catalog(catalog)


def compute_tier_progress(points: int, catalog: Sequence[TierInfo] | None = None) -> TierProgress:
    """
    根据积分计算等级进度。

    - current_tier: 最后一个 min_points <= points 的等级（最高符合条件的等级）
    - next_tier:    目录中紧挨着的上一级，最高等级时为 None
    - 负积分直接拒绝（INVALID_POINTS），不做 clamp
    """
    if points < 0:
        raise ValidationError(
            message='Loyalty points cannot be negative.',
            code='INVALID_POINTS',
            detail={'points': points},
        )

    tiers = validate_catalog(catalog) if catalog is not None else get_tier_catalog()

    current_index = 0
    for index, tier in enumerate(tiers):
        if points >= tier.min_points:
            current_index = index

    current = tiers[current_index]
    next_tier = tiers[current_index + 1] if current_index + 1 < len(tiers) else None

    if next_tier is None:
        return TierProgress(
            current_tier=current,
            next_tier=None,
            points_to_next=0,
            progress_percentage=100,
        )

    band = next_tier.min_points - current.min_points
    return TierProgress(
        current_tier=current,
        next_tier=next_tier,
        points_to_next=next_tier.min_points - points,
        progress_percentage=round_percent(points - current.min_points, band),
    )


def tier_for_points(points: int, catalog: Sequence[TierInfo] | None = None) -> TierInfo:
    return compute_tier_progress(points, catalog).current_tier
