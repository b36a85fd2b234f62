import pytest
from datetime import date, datetime
from decimal import Decimal

from loyalty.formatting import format_currency, format_date, format_phone_number, format_relative_time


class TestFormatCurrency:

    @pytest.mark.parametrize('amount, expected', [
        (0, '₱0.00'),
        (1234.5, '₱1,234.50'),
        (Decimal('1500.00'), '₱1,500.00'),
        ('2500', '₱2,500.00'),
        (1000000, '₱1,000,000.00'),
        (-75.255, '-₱75.26'),
    ])
    def test_format(self, amount, expected):
        assert format_currency(amount) == expected


class TestFormatDate:

    def test_iso_string(self):
        assert format_date('2024-01-15') == 'January 15, 2024'

    def test_datetime(self):
        assert format_date(datetime(2024, 3, 5, 14, 30)) == 'March 5, 2024'

    def test_date(self):
        assert format_date(date(2023, 12, 31)) == 'December 31, 2023'


class TestFormatRelativeTime:
    NOW = date(2024, 6, 30)

    @pytest.mark.parametrize('value, expected', [
        (date(2024, 6, 30), 'Today'),
        (date(2024, 7, 5), 'Today'),          # 未来日期也算今天
        (date(2024, 6, 29), 'Yesterday'),
        (date(2024, 6, 27), '3 days ago'),
        (date(2024, 6, 16), '2 weeks ago'),
        (date(2024, 4, 1), '3 months ago'),
        (date(2022, 6, 1), '2 years ago'),
    ])
    def test_buckets(self, value, expected):
        assert format_relative_time(value, now=self.NOW) == expected

    def test_accepts_iso_string(self):
        assert format_relative_time('2024-06-29T08:00:00', now=self.NOW) == 'Yesterday'


class TestFormatPhoneNumber:

    def test_ten_digits(self):
        assert format_phone_number('5552223333') == '(555) 222-3333'

    def test_already_formatted(self):
        assert format_phone_number('555.222.3333') == '(555) 222-3333'

    def test_other_lengths_unchanged(self):
        assert format_phone_number('+63 917 123 4567') == '+63 917 123 4567'
        assert format_phone_number('') == ''
