"""
Dashboard service.
Provides the aggregated counters and lists for the dashboard view.

Each query runs on its own: a failing query is logged, the session is rolled
back and a default is used, so the remaining counters still render. Failed
sections are reported in the `errors` list of the result.
"""
import logging
from datetime import datetime, date, time, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storemanager.models import Product, Sale

logger = logging.getLogger(__name__)

LOW_STOCK_LIMIT = 10
RECENT_SALES_LIMIT = 5


def get_today_datetime_range(today: Optional[date] = None) -> Tuple[datetime, datetime]:
    """
    Get datetime range for today (local server time).

    Returns:
        tuple: (start_dt, end_dt) where start is 00:00:00 and end is the next midnight
    """
    today = today or date.today()
    start_dt = datetime.combine(today, time.min)
    end_dt = start_dt + timedelta(days=1)
    return start_dt, end_dt


def _run(session: Session, section: str, query_fn: Callable[[], Any], default: Any,
         errors: List[str]) -> Any:
    try:
        return query_fn()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Dashboard query '{section}' failed: {e}", exc_info=True)
        errors.append(section)
        return default


def _sales_summary(session: Session, owner_id: int, start_dt: datetime,
                   end_dt: Optional[datetime] = None) -> Tuple[Decimal, int]:
    query = session.query(
        func.coalesce(func.sum(Sale.total_amount), 0),
        func.count(Sale.id)
    ).filter(
        Sale.owner_id == owner_id,
        Sale.created_at >= start_dt
    )
    if end_dt is not None:
        query = query.filter(Sale.created_at < end_dt)
    total, count = query.one()
    return Decimal(str(total or 0)), int(count or 0)


def get_dashboard_data(session: Session, owner_id: int, now: Optional[datetime] = None,
                       window_days: int = 30) -> Dict[str, Any]:
    """
    Get all dashboard data for an owner.

    Returns:
        dict with keys:
            - product_count: int
            - today_total: Decimal
            - today_count: int
            - window_total: Decimal (sales over the trailing window_days)
            - window_days: int
            - low_stock_products: list of Product (lowest quantity first)
            - recent_sales: list of Sale (newest first)
            - errors: list of section names that failed to load
    """
    now = now or datetime.now()
    errors: List[str] = []

    # 1. Product count
    product_count = _run(
        session, 'product_count',
        lambda: session.query(func.count(Product.id)).filter(
            Product.owner_id == owner_id
        ).scalar() or 0,
        0, errors
    )

    # 2. Today's sales
    start_dt, end_dt = get_today_datetime_range(now.date())
    today_total, today_count = _run(
        session, 'today_sales',
        lambda: _sales_summary(session, owner_id, start_dt, end_dt),
        (Decimal('0'), 0), errors
    )

    # 3. Trailing window
    window_start = now - timedelta(days=window_days)
    window_total, _ = _run(
        session, 'window_sales',
        lambda: _sales_summary(session, owner_id, window_start),
        (Decimal('0'), 0), errors
    )

    # 4. Low stock
    low_stock_products = _run(
        session, 'low_stock',
        lambda: session.query(Product).filter(
            Product.owner_id == owner_id,
            Product.quantity <= Product.min_quantity
        ).order_by(Product.quantity.asc(), Product.name.asc()).limit(LOW_STOCK_LIMIT).all(),
        [], errors
    )

    # 5. Recent sales
    recent_sales = _run(
        session, 'recent_sales',
        lambda: session.query(Sale).filter(
            Sale.owner_id == owner_id
        ).order_by(Sale.created_at.desc(), Sale.id.desc()).limit(RECENT_SALES_LIMIT).all(),
        [], errors
    )

    if errors:
        logger.warning(f"Dashboard for owner {owner_id} rendered with failed sections: {errors}")

    return {
        'product_count': product_count,
        'today_total': today_total,
        'today_count': today_count,
        'window_total': window_total,
        'window_days': window_days,
        'low_stock_products': low_stock_products,
        'recent_sales': recent_sales,
        'errors': errors,
    }
