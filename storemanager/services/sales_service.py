"""
Sales service with transactional checkout.

Checkout writes the invoice number, the sale, its items and the stock
decrements in a single transaction. Stock is decremented with a conditional
UPDATE (quantity >= sold) so a concurrent sale can never drive it negative;
any failure rolls back every step and leaves the cart untouched.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from storemanager.models import Product, Sale, SaleItem
from storemanager.exceptions import (
    StoreError, BusinessLogicError, NotFoundError, InsufficientStockError, CheckoutError
)
from storemanager.services.cart_service import Cart, CartLine
from storemanager.services.catalog_service import get_sellable_products, PRODUCTS_CACHE_MODULE
from storemanager.services.invoice_service import generate_invoice_number
from storemanager.services.report_service import REPORTS_CACHE_MODULE
from storemanager.services.cache_service import invalidate_owner_cache

logger = logging.getLogger(__name__)


def load_cart(session: Session, owner_id: int, payload: Optional[Dict[str, Any]]) -> Cart:
    """Rebuild the owner's cart against the current sellable products."""
    return Cart.from_session(payload, get_sellable_products(session, owner_id))


def checkout(session: Session, cart: Cart, owner_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Commit the cart as a sale (owner-scoped).

    Steps, all inside one transaction:
    1. Reserve an invoice number
    2. Insert the Sale with the cart totals
    3. Insert one SaleItem per cart line
    4. Decrement each product's quantity by the sold amount

    On success the cart is cleared and the invoice snapshot is returned:
    sale_id, invoice_number, total_amount, profit, created_at and items (the
    pre-checkout line snapshot).

    Raises:
        BusinessLogicError: empty cart or missing owner
        InsufficientStockError: a product no longer has enough stock
        CheckoutError: any database failure (nothing is persisted)
    """
    if not owner_id:
        raise BusinessLogicError('owner_id is required')
    if cart.is_empty():
        raise BusinessLogicError('The cart is empty. Add products before completing the sale.')

    lines = cart.lines
    total_amount, profit = cart.totals()
    created_at = now or datetime.now()

    try:
        # 1. Invoice number
        invoice_number = generate_invoice_number(session, owner_id, issued_at=created_at)

        # 2. Sale
        sale = Sale(
            owner_id=owner_id,
            invoice_number=invoice_number,
            total_amount=total_amount,
            profit=profit,
            created_at=created_at
        )
        session.add(sale)
        session.flush()
        sale_id = sale.id

        # 3. Sale items
        for line in lines:
            session.add(SaleItem(
                sale_id=sale_id,
                product_id=line.product_id,
                product_name=line.product.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total,
                profit=line.profit
            ))

        # 4. Stock
        for line in lines:
            _decrement_stock(session, owner_id, line)

        session.commit()

    except StoreError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Checkout failed for owner {owner_id}: {e}", exc_info=True)
        raise CheckoutError()

    invoice = {
        'sale_id': sale_id,
        'invoice_number': invoice_number,
        'total_amount': total_amount,
        'profit': profit,
        'created_at': created_at,
        'items': cart.snapshot(),
    }

    cart.clear()
    invalidate_owner_cache(owner_id, PRODUCTS_CACHE_MODULE, REPORTS_CACHE_MODULE)
    logger.info(
        f"Sale completed: owner={owner_id}, sale_id={sale_id}, "
        f"invoice={invoice_number}, lines={len(lines)}, total={total_amount}"
    )
    return invoice


def _decrement_stock(session: Session, owner_id: int, line: CartLine) -> None:
    """Conditional decrement; raises when the row no longer has enough stock."""
    updated = session.query(Product).filter(
        Product.id == line.product_id,
        Product.owner_id == owner_id,
        Product.quantity >= line.quantity
    ).update(
        {Product.quantity: Product.quantity - line.quantity},
        synchronize_session=False
    )

    if updated != 1:
        available = session.query(Product.quantity).filter(
            Product.id == line.product_id,
            Product.owner_id == owner_id
        ).scalar()
        raise InsufficientStockError(line.product.name, line.quantity, available or 0)


def get_sale(session: Session, owner_id: int, sale_id: int) -> Sale:
    """Fetch one sale with its items or raise NotFoundError."""
    sale = session.query(Sale).options(joinedload(Sale.items)).filter(
        Sale.id == sale_id,
        Sale.owner_id == owner_id
    ).first()
    if not sale:
        raise NotFoundError('Sale not found.')
    return sale


def sale_totals_match(sale: Sale) -> bool:
    """Item totals and profits add up to the sale's own figures."""
    items_total = sum((item.total_price for item in sale.items), Decimal('0'))
    items_profit = sum((item.profit for item in sale.items), Decimal('0'))
    return items_total == sale.total_amount and items_profit == sale.profit
