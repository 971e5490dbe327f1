"""
Unit tests for report bucketing and product ranking.
"""

import pytest
from datetime import datetime, date
from decimal import Decimal

from storemanager.exceptions import ValidationError
from storemanager.services.report_service import (
    bucket_key, group_sales_by_period, rank_products, summarize,
    normalize_period, period_start, PERIODS
)


class TestBucketKey:

    @pytest.mark.parametrize('period,expected', [
        ('daily', '2024-01-05'),
        ('weekly', '2024-01-01'),
        ('monthly', '2024-01'),
        ('yearly', '2024'),
    ])
    def test_keys(self, period, expected):
        assert bucket_key(datetime(2024, 1, 5, 14, 30), period) == expected

    def test_weekly_key_is_iso_monday(self):
        # Sunday 2024-01-07 still belongs to the week of Monday 2024-01-01
        assert bucket_key(datetime(2024, 1, 7, 23, 59), 'weekly') == '2024-01-01'
        assert bucket_key(datetime(2024, 1, 8, 0, 0), 'weekly') == '2024-01-08'

    def test_weekly_key_crosses_year_boundary(self):
        assert bucket_key(date(2025, 1, 1), 'weekly') == '2024-12-30'

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            bucket_key(datetime(2024, 1, 5), 'hourly')


class TestGroupSalesByPeriod:

    def test_monthly_scenario(self):
        rows = [
            (datetime(2024, 1, 5, 9), Decimal('10'), Decimal('2')),
            (datetime(2024, 1, 5, 18), Decimal('20'), Decimal('4')),
            (datetime(2024, 1, 20, 12), Decimal('30'), Decimal('6')),
            (datetime(2024, 2, 1, 8), Decimal('40'), Decimal('8')),
        ]

        buckets = group_sales_by_period(rows, 'monthly')

        assert [b['key'] for b in buckets] == ['2024-01', '2024-02']
        assert buckets[0]['sales_count'] == 3
        assert buckets[0]['total_amount'] == Decimal('60')
        assert buckets[0]['profit'] == Decimal('12')
        assert buckets[1]['sales_count'] == 1
        assert buckets[1]['total_amount'] == Decimal('40')

    @pytest.mark.parametrize('period', PERIODS)
    def test_buckets_partition_rows(self, period):
        rows = [
            (datetime(2023, 12, 31, 23), Decimal('5.50'), Decimal('1.10')),
            (datetime(2024, 1, 1, 0), Decimal('7.25'), Decimal('2.00')),
            (datetime(2024, 1, 3, 10), Decimal('3.00'), Decimal('0.50')),
            (datetime(2024, 3, 15, 10), Decimal('12.00'), Decimal('4.00')),
        ]

        buckets = group_sales_by_period(rows, period)

        assert sum(b['sales_count'] for b in buckets) == len(rows)
        assert sum(b['total_amount'] for b in buckets) == sum(r[1] for r in rows)
        for bucket in buckets:
            members = [r for r in rows if bucket_key(r[0], period) == bucket['key']]
            assert bucket['sales_count'] == len(members)
            assert bucket['profit'] == sum(r[2] for r in members)

    def test_buckets_sorted_ascending(self):
        rows = [
            (datetime(2024, 3, 1), 1, 0),
            (datetime(2023, 7, 1), 1, 0),
            (datetime(2024, 1, 1), 1, 0),
        ]

        keys = [b['key'] for b in group_sales_by_period(rows, 'daily')]

        assert keys == sorted(keys)

    def test_no_rows(self):
        assert group_sales_by_period([], 'daily') == []


class TestRankProducts:

    def test_groups_by_name_and_sorts_by_revenue(self):
        items = [
            ('Tea', 2, Decimal('20'), Decimal('5')),
            ('Coffee', 1, Decimal('50'), Decimal('15')),
            ('Tea', 4, Decimal('40'), Decimal('10')),
        ]

        ranked = rank_products(items)

        assert [p['product_name'] for p in ranked] == ['Tea', 'Coffee']
        assert ranked[0]['total_quantity'] == 6
        assert ranked[0]['total_revenue'] == Decimal('60')
        assert ranked[0]['total_profit'] == Decimal('15')

    def test_keeps_top_ten(self):
        items = [(f'Product {i:02d}', 1, Decimal(i), Decimal('1')) for i in range(1, 16)]

        ranked = rank_products(items)

        assert len(ranked) == 10
        assert ranked[0]['product_name'] == 'Product 15'
        assert ranked[-1]['product_name'] == 'Product 06'


class TestSummarize:

    def test_stats(self):
        rows = [
            (datetime(2024, 1, 1), Decimal('90'), Decimal('26')),
            (datetime(2024, 1, 2), Decimal('30'), Decimal('10')),
        ]

        stats = summarize(rows)

        assert stats['total_revenue'] == Decimal('120')
        assert stats['total_profit'] == Decimal('36')
        assert stats['total_sales'] == 2
        assert stats['average_order_value'] == Decimal('60.00')

    def test_empty_stats(self):
        stats = summarize([])

        assert stats['total_sales'] == 0
        assert stats['average_order_value'] == Decimal('0')


class TestPeriods:

    def test_default_period(self):
        assert normalize_period(None) == 'daily'
        assert normalize_period(' Weekly ') == 'weekly'

    def test_invalid_period(self):
        with pytest.raises(ValidationError):
            normalize_period('hourly')

    @pytest.mark.parametrize('period,days', [
        ('daily', 30), ('weekly', 84), ('monthly', 360), ('yearly', 1825)
    ])
    def test_trailing_windows(self, period, days):
        now = datetime(2024, 6, 30, 12, 0)
        assert (now - period_start(period, now)).days == days
