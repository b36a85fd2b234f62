"""
展示用格式化：货币（PHP）、日期、相对时间、电话号码。

所有和"现在"有关的函数都接受 now 参数，测试时注入固定时间。
"""

import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

CURRENCY_SYMBOL = '₱'


def format_currency(amount):
    """1234.5 → '₱1,234.50'。负数 → '-₱1,234.50'。"""
    value = Decimal(str(amount)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    sign = '-' if value < 0 else ''
    return f'{sign}{CURRENCY_SYMBOL}{abs(value):,.2f}'


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def format_date(value):
    """'2024-01-15' → 'January 15, 2024'。"""
    d = _as_date(value)
    return f'{d:%B} {d.day}, {d.year}'


def format_relative_time(value, now=None):
    now = _as_date(now or timezone.localdate())
    days = (now - _as_date(value)).days

    if days <= 0:
        return 'Today'
    if days == 1:
        return 'Yesterday'
    if days < 7:
        return f'{days} days ago'
    if days < 30:
        return f'{days // 7} weeks ago'
    if days < 365:
        return f'{days // 30} months ago'
    return f'{days // 365} years ago'


def format_phone_number(phone):
    digits = re.sub(r'\D', '', phone or '')
    if len(digits) != 10:
        return phone
    return f'({digits[:3]}) {digits[3:6]}-{digits[6:]}'
