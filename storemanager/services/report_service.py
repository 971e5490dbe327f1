"""
Reports service - period-bucketed sales series, product ranking and totals.

A report covers a trailing window that depends on the period:

    daily    last 30 days, one bucket per calendar day
    weekly   last 12 weeks, one bucket per ISO week (keyed by its Monday)
    monthly  last 12 months (360 days), one bucket per YYYY-MM
    yearly   last 5 years, one bucket per YYYY

The grouping helpers are pure functions over (created_at, amount, profit)
rows so they can be exercised without a database.
"""
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storemanager.models import Sale, SaleItem
from storemanager.exceptions import ValidationError, BusinessLogicError
from storemanager.services.cache_service import get_cache

logger = logging.getLogger(__name__)

REPORTS_CACHE_MODULE = 'reports'
DEFAULT_PERIOD = 'daily'
TOP_PRODUCTS_LIMIT = 10

PERIOD_WINDOW_DAYS = {
    'daily': 30,
    'weekly': 12 * 7,
    'monthly': 12 * 30,
    'yearly': 5 * 365,
}
PERIODS = tuple(PERIOD_WINDOW_DAYS)

ZERO = Decimal('0.00')


def normalize_period(period: Optional[str]) -> str:
    """Empty means daily; anything outside PERIODS is rejected."""
    period = (period or DEFAULT_PERIOD).strip().lower()
    if period not in PERIOD_WINDOW_DAYS:
        raise ValidationError(f"Invalid period '{period}'. Use one of: {', '.join(PERIODS)}")
    return period


def period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """Start of the trailing window for a period."""
    now = now or datetime.now()
    return now - timedelta(days=PERIOD_WINDOW_DAYS[period])


def bucket_key(dt: Union[datetime, date], period: str) -> str:
    """
    Sortable bucket key of a timestamp.

    Examples:
        bucket_key(datetime(2024, 1, 5, 14, 0), 'daily')   -> '2024-01-05'
        bucket_key(datetime(2024, 1, 5, 14, 0), 'weekly')  -> '2024-01-01'
        bucket_key(datetime(2024, 1, 5, 14, 0), 'monthly') -> '2024-01'
        bucket_key(datetime(2024, 1, 5, 14, 0), 'yearly')  -> '2024'
    """
    day = dt.date() if isinstance(dt, datetime) else dt
    if period == 'daily':
        return day.isoformat()
    if period == 'weekly':
        return (day - timedelta(days=day.weekday())).isoformat()
    if period == 'monthly':
        return f"{day.year:04d}-{day.month:02d}"
    if period == 'yearly':
        return f"{day.year:04d}"
    raise ValueError(f"Unknown period: {period}")


def group_sales_by_period(rows: Iterable[Tuple[datetime, Any, Any]], period: str) -> List[Dict[str, Any]]:
    """
    Group (created_at, total_amount, profit) rows into buckets.

    Returns a list of {'key', 'total_amount', 'profit', 'sales_count'} sorted
    ascending by key.
    """
    buckets: Dict[str, Dict[str, Any]] = {}
    for created_at, amount, profit in rows:
        key = bucket_key(created_at, period)
        bucket = buckets.setdefault(key, {
            'key': key,
            'total_amount': ZERO,
            'profit': ZERO,
            'sales_count': 0,
        })
        bucket['total_amount'] += Decimal(str(amount or 0))
        bucket['profit'] += Decimal(str(profit or 0))
        bucket['sales_count'] += 1
    return [buckets[key] for key in sorted(buckets)]


def rank_products(items: Iterable[Tuple[str, int, Any, Any]], limit: int = TOP_PRODUCTS_LIMIT) -> List[Dict[str, Any]]:
    """
    Group (product_name, quantity, total_price, profit) rows by product name.

    Sorted by revenue descending (ties by name), top `limit` kept.
    """
    products: Dict[str, Dict[str, Any]] = {}
    for name, quantity, total_price, profit in items:
        entry = products.setdefault(name, {
            'product_name': name,
            'total_quantity': 0,
            'total_revenue': ZERO,
            'total_profit': ZERO,
        })
        entry['total_quantity'] += int(quantity or 0)
        entry['total_revenue'] += Decimal(str(total_price or 0))
        entry['total_profit'] += Decimal(str(profit or 0))

    ranked = sorted(products.values(), key=lambda p: (-p['total_revenue'], p['product_name']))
    return ranked[:limit]


def summarize(rows: Iterable[Tuple[datetime, Any, Any]]) -> Dict[str, Any]:
    """Total revenue, total profit, sale count and average order value."""
    total_revenue = ZERO
    total_profit = ZERO
    total_sales = 0
    for _, amount, profit in rows:
        total_revenue += Decimal(str(amount or 0))
        total_profit += Decimal(str(profit or 0))
        total_sales += 1

    average = (total_revenue / total_sales).quantize(Decimal('0.01')) if total_sales else ZERO
    return {
        'total_revenue': total_revenue,
        'total_profit': total_profit,
        'total_sales': total_sales,
        'average_order_value': average,
    }


def _build_report(session: Session, owner_id: int, period: str, now: datetime) -> Dict[str, Any]:
    start_dt = period_start(period, now)

    sales = session.query(
        Sale.created_at, Sale.total_amount, Sale.profit
    ).filter(
        Sale.owner_id == owner_id,
        Sale.created_at >= start_dt
    ).order_by(Sale.created_at).all()

    items = session.query(
        SaleItem.product_name, SaleItem.quantity, SaleItem.total_price, SaleItem.profit
    ).join(
        Sale, Sale.id == SaleItem.sale_id
    ).filter(
        Sale.owner_id == owner_id,
        Sale.created_at >= start_dt
    ).all()

    return {
        'period': period,
        'start_date': start_dt.date().isoformat(),
        'series': group_sales_by_period(sales, period),
        'top_products': rank_products(items),
        'stats': summarize(sales),
    }


def get_report_data(session: Session, owner_id: int, period: Optional[str] = None,
                    now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Report for an owner and period.

    Cached per (owner, period) for CACHE_REPORTS_TTL seconds when computed for
    the current time; checkout invalidates the owner's reports.
    """
    period = normalize_period(period)

    def loader():
        try:
            return _build_report(session, owner_id, period, now or datetime.now())
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error building {period} report for owner {owner_id}: {e}", exc_info=True)
            raise BusinessLogicError('The report could not be loaded. Please try again.')

    if now is not None:
        return loader()

    try:
        cache = get_cache()
    except RuntimeError:
        return loader()

    ttl = current_app.config.get('CACHE_REPORTS_TTL') if has_app_context() else None
    return cache.memoize(owner_id, REPORTS_CACHE_MODULE, period, loader, ttl=ttl)
