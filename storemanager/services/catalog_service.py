"""
Catalog service - product snapshot, search, low stock, and product writes.

Every function receives the owner id explicitly; nothing here reads the
request context.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storemanager.models import Product, PRODUCT_CATEGORIES
from storemanager.exceptions import BusinessLogicError, NotFoundError, ValidationError
from storemanager.services.cache_service import get_cache, invalidate_owner_cache

logger = logging.getLogger(__name__)

PRODUCTS_CACHE_MODULE = 'products'


class ProductSnapshot:
    """
    Detached, read-only copy of a product row.

    Used by the catalog list and as the stock ceiling source of the cart, so
    it can be cached and rebuilt without a live session.
    """

    def __init__(self, id, name, category, quantity, purchase_price, selling_price,
                 min_quantity=5, created_at=None):
        self.id = int(id)
        self.name = name
        self.category = category
        self.quantity = int(quantity)
        self.purchase_price = Decimal(str(purchase_price))
        self.selling_price = Decimal(str(selling_price))
        self.min_quantity = int(min_quantity)
        self.created_at = created_at

    @classmethod
    def from_model(cls, product: Product) -> 'ProductSnapshot':
        return cls(
            id=product.id,
            name=product.name,
            category=product.category,
            quantity=product.quantity,
            purchase_price=product.purchase_price,
            selling_price=product.selling_price,
            min_quantity=product.min_quantity,
            created_at=product.created_at,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductSnapshot':
        created_at = data.get('created_at')
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            id=data['id'],
            name=data['name'],
            category=data['category'],
            quantity=data['quantity'],
            purchase_price=data['purchase_price'],
            selling_price=data['selling_price'],
            min_quantity=data.get('min_quantity', 5),
            created_at=created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'quantity': self.quantity,
            'purchase_price': self.purchase_price,
            'selling_price': self.selling_price,
            'min_quantity': self.min_quantity,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity

    @property
    def unit_profit(self) -> Decimal:
        return self.selling_price - self.purchase_price

    def __repr__(self):
        return f"<ProductSnapshot(id={self.id}, name='{self.name}', quantity={self.quantity})>"


# =====================================================
# READS
# =====================================================

def _load_products(session: Session, owner_id: int) -> List[ProductSnapshot]:
    products = session.query(Product).filter(
        Product.owner_id == owner_id
    ).order_by(Product.created_at.desc(), Product.id.desc()).all()
    return [ProductSnapshot.from_model(p) for p in products]


def get_products(session: Session, owner_id: int) -> List[ProductSnapshot]:
    """
    Product snapshot for an owner, newest first.

    Served from the cache when available; the cache is invalidated by every
    product write and every checkout.
    """
    try:
        cache = get_cache()
    except RuntimeError:
        # Cache not initialised (CLI / scripts)
        return _load_products(session, owner_id)

    ttl = current_app.config.get('CACHE_PRODUCTS_TTL') if has_app_context() else None
    rows = cache.memoize(
        owner_id, PRODUCTS_CACHE_MODULE, 'all',
        lambda: [p.to_dict() for p in _load_products(session, owner_id)],
        ttl=ttl,
    )
    return [ProductSnapshot.from_dict(row) for row in rows]


def get_sellable_products(session: Session, owner_id: int) -> List[ProductSnapshot]:
    """Products with stock, ordered by name (the POS selector)."""
    products = session.query(Product).filter(
        Product.owner_id == owner_id,
        Product.quantity > 0
    ).order_by(Product.name).all()
    return [ProductSnapshot.from_model(p) for p in products]


def filter_products(products: Iterable[ProductSnapshot], search_term: Optional[str]) -> List[ProductSnapshot]:
    """Case-insensitive substring match on name or category; empty term keeps all."""
    products = list(products)
    term = (search_term or '').strip().lower()
    if not term:
        return products
    return [
        p for p in products
        if term in (p.name or '').lower() or term in (p.category or '').lower()
    ]


def low_stock(products: Iterable[ProductSnapshot]) -> List[ProductSnapshot]:
    """Products whose quantity is at or below their minimum."""
    return [p for p in products if p.quantity <= p.min_quantity]


def get_product(session: Session, owner_id: int, product_id: int) -> Product:
    """Fetch one product of the owner or raise NotFoundError."""
    product = session.query(Product).filter(
        Product.id == product_id,
        Product.owner_id == owner_id
    ).first()
    if not product:
        raise NotFoundError('Product not found.')
    return product


# =====================================================
# WRITES
# =====================================================

def _parse_int(value, field: str, minimum: int, errors: List[str]) -> Optional[int]:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        errors.append(f'{field} must be a whole number')
        return None
    if number < minimum:
        errors.append(f'{field} must be at least {minimum}')
        return None
    return number


def _parse_price(value, field: str, errors: List[str]) -> Optional[Decimal]:
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        errors.append(f'{field} must be a valid number')
        return None
    if not number.is_finite():
        errors.append(f'{field} must be a valid number')
        return None
    if number < 0:
        errors.append(f'{field} must be greater than or equal to 0')
        return None
    return number.quantize(Decimal('0.01'))


def validate_product_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate raw product fields and return the cleaned values."""
    errors: List[str] = []

    name = (data.get('name') or '').strip()
    if not name:
        errors.append('Name is required')

    category = (data.get('category') or '').strip()
    if category not in PRODUCT_CATEGORIES:
        errors.append('Category must be one of: ' + ', '.join(PRODUCT_CATEGORIES))

    quantity = _parse_int(data.get('quantity'), 'Quantity', 0, errors)
    min_quantity = _parse_int(data.get('min_quantity', 5), 'Minimum quantity', 1, errors)
    purchase_price = _parse_price(data.get('purchase_price'), 'Purchase price', errors)
    selling_price = _parse_price(data.get('selling_price'), 'Selling price', errors)

    if errors:
        raise ValidationError(', '.join(errors), errors=errors)

    return {
        'name': name,
        'category': category,
        'quantity': quantity,
        'min_quantity': min_quantity,
        'purchase_price': purchase_price,
        'selling_price': selling_price,
    }


def create_product(session: Session, owner_id: int, data: Dict[str, Any]) -> Product:
    """Validate and insert one product owned by owner_id."""
    cleaned = validate_product_data(data)
    try:
        product = Product(owner_id=owner_id, created_at=datetime.now(), **cleaned)
        session.add(product)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating product for owner {owner_id}: {e}", exc_info=True)
        raise BusinessLogicError('The product could not be saved. Please try again.')

    invalidate_owner_cache(owner_id, PRODUCTS_CACHE_MODULE)
    logger.info(f"Product created: owner={owner_id}, product_id={product.id}")
    return product


def update_product(session: Session, owner_id: int, product_id: int, data: Dict[str, Any]) -> Product:
    """Validate and overwrite the editable fields of a product."""
    product = get_product(session, owner_id, product_id)
    cleaned = validate_product_data(data)
    try:
        for field, value in cleaned.items():
            setattr(product, field, value)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating product {product_id}: {e}", exc_info=True)
        raise BusinessLogicError('The product could not be updated. Please try again.')

    invalidate_owner_cache(owner_id, PRODUCTS_CACHE_MODULE)
    return product


def delete_product(session: Session, owner_id: int, product_id: int) -> str:
    """Delete a product and return its name. Nothing changes on failure."""
    product = get_product(session, owner_id, product_id)
    product_name = product.name
    try:
        session.delete(product)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Product {product_id} still referenced: {e}")
        raise BusinessLogicError(f'Product "{product_name}" could not be deleted because it is still referenced.')
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting product {product_id}: {e}", exc_info=True)
        raise BusinessLogicError(f'Product "{product_name}" could not be deleted. Please try again.')

    invalidate_owner_cache(owner_id, PRODUCTS_CACHE_MODULE)
    logger.info(f"Product deleted: owner={owner_id}, product_id={product_id}")
    return product_name
