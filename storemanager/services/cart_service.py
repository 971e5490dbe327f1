"""
Cart service - the in-progress selection of products for a sale.

A Cart is rebuilt on every request from the session payload and the current
sellable-product snapshot, which supplies prices and stock ceilings. All
mutations validate first and only then touch state, so a rejected operation
leaves the cart exactly as it was.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from storemanager.exceptions import BusinessLogicError, NotFoundError, InsufficientStockError
from storemanager.services.catalog_service import ProductSnapshot

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


class CartLine:
    """One (product, quantity) pair of the cart."""

    def __init__(self, product: ProductSnapshot, quantity: int):
        self.product = product
        self.quantity = int(quantity)

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def unit_price(self) -> Decimal:
        return self.product.selling_price

    @property
    def total(self) -> Decimal:
        return (self.product.selling_price * self.quantity).quantize(Decimal('0.01'))

    @property
    def profit(self) -> Decimal:
        return ((self.product.selling_price - self.product.purchase_price) * self.quantity).quantize(Decimal('0.01'))

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data copy of the line, kept with the last invoice."""
        return {
            'product_id': self.product.id,
            'product_name': self.product.name,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'total': self.total,
            'profit': self.profit,
        }

    def __repr__(self):
        return f"<CartLine(product_id={self.product_id}, quantity={self.quantity})>"


class Cart:
    """
    Ordered set of cart lines keyed by product id.

    Args:
        products: Product snapshots the cart may draw from, by id or as an
            iterable. A product's quantity is the ceiling for its line.
    """

    def __init__(self, products: Optional[Any] = None):
        if products is None:
            products = {}
        if not isinstance(products, Mapping):
            products = {p.id: p for p in products}
        self._products: Dict[int, ProductSnapshot] = dict(products)
        self._lines: Dict[int, CartLine] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def get_line(self, product_id: int) -> Optional[CartLine]:
        return self._lines.get(int(product_id))

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self):
        return len(self._lines)

    def __contains__(self, product_id):
        return int(product_id) in self._lines

    def totals(self) -> Tuple[Decimal, Decimal]:
        """(sum of line totals, sum of line profits)."""
        total = sum((line.total for line in self._lines.values()), ZERO)
        profit = sum((line.profit for line in self._lines.values()), ZERO)
        return total, profit

    def snapshot(self) -> List[Dict[str, Any]]:
        return [line.snapshot() for line in self._lines.values()]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _resolve(self, product_id: int) -> ProductSnapshot:
        product = self._products.get(int(product_id))
        if product is None:
            raise NotFoundError('Product not found or out of stock.')
        return product

    def add_line(self, product_id: int, requested_qty: int) -> CartLine:
        """Add a product, merging into its existing line if present."""
        requested_qty = _as_quantity(requested_qty)
        if requested_qty < 1:
            raise BusinessLogicError('Quantity must be at least 1.')

        product = self._resolve(product_id)
        existing = self._lines.get(product.id)
        new_qty = requested_qty + (existing.quantity if existing else 0)

        if new_qty > product.quantity:
            raise InsufficientStockError(product.name, new_qty, product.quantity)

        line = CartLine(product, new_qty)
        self._lines[product.id] = line
        return line

    def set_line_quantity(self, product_id: int, new_qty: int) -> Optional[CartLine]:
        """Overwrite a line's quantity; zero or less removes the line."""
        new_qty = _as_quantity(new_qty)
        if new_qty <= 0:
            self.remove_line(product_id)
            return None

        product = self._resolve(product_id)
        if product.id not in self._lines:
            raise NotFoundError(f'"{product.name}" is not in the cart.')
        if new_qty > product.quantity:
            raise InsufficientStockError(product.name, new_qty, product.quantity)

        line = CartLine(product, new_qty)
        self._lines[product.id] = line
        return line

    def remove_line(self, product_id: int) -> None:
        self._lines.pop(int(product_id), None)

    def clear(self) -> None:
        self._lines.clear()

    # ------------------------------------------------------------------
    # Session payload
    # ------------------------------------------------------------------

    def to_session(self) -> Dict[str, Any]:
        """JSON-safe payload: {'items': {product_id: {'qty': n}}}."""
        return {
            'items': {
                str(line.product_id): {'qty': line.quantity}
                for line in self._lines.values()
            }
        }

    @classmethod
    def from_session(cls, payload: Optional[Dict[str, Any]], products: Iterable[ProductSnapshot]) -> 'Cart':
        """
        Rebuild a cart against the current product snapshot.

        Lines whose product is no longer sellable are dropped. Quantities are
        restored as stored; the checkout's conditional stock update is the
        final guard against stock that shrank in the meantime.
        """
        cart = cls(products)
        items = (payload or {}).get('items', {})
        for product_id_str, item in items.items():
            try:
                product_id = int(product_id_str)
                qty = int(item.get('qty', 0))
            except (TypeError, ValueError, AttributeError):
                logger.warning(f"Discarding malformed cart item {product_id_str!r}: {item!r}")
                continue
            product = cart._products.get(product_id)
            if product is None or qty <= 0:
                logger.info(f"Dropping cart line for unavailable product {product_id}")
                continue
            cart._lines[product_id] = CartLine(product, qty)
        return cart


def _as_quantity(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise BusinessLogicError('Quantity must be a whole number.')
