"""
Unit tests for the cart engine.
"""

import pytest
from decimal import Decimal

from storemanager.exceptions import BusinessLogicError, NotFoundError, InsufficientStockError
from storemanager.services.cart_service import Cart
from storemanager.services.catalog_service import ProductSnapshot


def snapshot(id, selling, purchase, quantity, name=None):
    return ProductSnapshot(
        id=id,
        name=name or f'Product {id}',
        category='Groceries',
        quantity=quantity,
        purchase_price=purchase,
        selling_price=selling,
    )


@pytest.fixture
def products():
    return [
        snapshot(1, '30.00', '20.00', 5, name='Rice 1kg'),
        snapshot(2, '10.00', '8.00', 20, name='Sparkling water'),
    ]


@pytest.fixture
def cart(products):
    return Cart(products)


class TestAddLine:
    """Tests for adding products to the cart."""

    def test_add_new_line(self, cart):
        line = cart.add_line(1, 2)

        assert line.quantity == 2
        assert len(cart) == 1
        assert 1 in cart

    def test_add_merges_existing_line(self, cart):
        cart.add_line(2, 3)
        cart.add_line(2, 4)

        assert len(cart) == 1
        assert cart.get_line(2).quantity == 7

    def test_add_accepts_numeric_strings(self, cart):
        cart.add_line('1', '2')

        assert cart.get_line(1).quantity == 2

    def test_add_over_stock_is_rejected_and_cart_unchanged(self, cart):
        """Stock 5, requesting 6 -> rejected, cart unchanged."""
        with pytest.raises(InsufficientStockError) as exc:
            cart.add_line(1, 6)

        assert exc.value.available == 5
        assert cart.is_empty()

    def test_merge_over_stock_keeps_previous_quantity(self, cart):
        cart.add_line(1, 4)

        with pytest.raises(InsufficientStockError):
            cart.add_line(1, 2)

        assert cart.get_line(1).quantity == 4

    def test_add_exactly_available_stock(self, cart):
        cart.add_line(1, 5)

        assert cart.get_line(1).quantity == 5

    @pytest.mark.parametrize('qty', [0, -1])
    def test_add_non_positive_quantity_is_rejected(self, cart, qty):
        with pytest.raises(BusinessLogicError):
            cart.add_line(1, qty)
        assert cart.is_empty()

    def test_add_non_numeric_quantity_is_rejected(self, cart):
        with pytest.raises(BusinessLogicError):
            cart.add_line(1, 'two')

    def test_add_unknown_product(self, cart):
        with pytest.raises(NotFoundError):
            cart.add_line(99, 1)


class TestSetLineQuantity:
    """Tests for overwriting line quantities."""

    def test_set_quantity(self, cart):
        cart.add_line(2, 1)
        cart.set_line_quantity(2, 10)

        assert cart.get_line(2).quantity == 10

    def test_set_zero_removes_line(self, cart):
        cart.add_line(2, 1)
        result = cart.set_line_quantity(2, 0)

        assert result is None
        assert 2 not in cart

    def test_set_over_stock_is_rejected(self, cart):
        cart.add_line(1, 1)

        with pytest.raises(InsufficientStockError):
            cart.set_line_quantity(1, 6)

        assert cart.get_line(1).quantity == 1

    def test_set_on_product_not_in_cart(self, cart):
        with pytest.raises(NotFoundError):
            cart.set_line_quantity(1, 2)
        assert cart.is_empty()


class TestRemoveAndClear:

    def test_remove_is_idempotent(self, cart):
        cart.add_line(1, 1)

        cart.remove_line(1)
        cart.remove_line(1)

        assert cart.is_empty()

    def test_clear(self, cart):
        cart.add_line(1, 1)
        cart.add_line(2, 1)
        cart.clear()

        assert cart.is_empty()
        assert cart.totals() == (Decimal('0'), Decimal('0'))


class TestTotals:
    """Totals are the sum of quantity x selling price and quantity x unit profit."""

    def test_totals_scenario(self, cart):
        cart.add_line(1, 2)
        cart.add_line(2, 3)

        total, profit = cart.totals()

        assert total == Decimal('90')
        assert profit == Decimal('26')

    def test_totals_equal_sum_of_lines(self, cart):
        cart.add_line(1, 3)
        cart.add_line(2, 7)

        total, profit = cart.totals()

        assert total == sum(line.quantity * line.product.selling_price for line in cart.lines)
        assert profit == sum(
            line.quantity * (line.product.selling_price - line.product.purchase_price)
            for line in cart.lines
        )

    def test_snapshot_lines(self, cart):
        cart.add_line(1, 2)

        assert cart.snapshot() == [{
            'product_id': 1,
            'product_name': 'Rice 1kg',
            'quantity': 2,
            'unit_price': Decimal('30.00'),
            'total': Decimal('60.00'),
            'profit': Decimal('20.00'),
        }]


class TestSessionPayload:
    """Tests for rebuilding the cart from the Flask session."""

    def test_session_payload_shape(self, cart):
        cart.add_line(2, 3)

        assert cart.to_session() == {'items': {'2': {'qty': 3}}}

    def test_from_session_restores_lines(self, cart, products):
        cart.add_line(1, 2)
        cart.add_line(2, 3)

        restored = Cart.from_session(cart.to_session(), products)

        assert restored.totals() == cart.totals()

    def test_from_session_drops_unavailable_products(self, products):
        payload = {'items': {'1': {'qty': 1}, '42': {'qty': 3}}}

        restored = Cart.from_session(payload, products)

        assert [line.product_id for line in restored.lines] == [1]

    def test_from_session_drops_malformed_items(self, products):
        payload = {'items': {'abc': {'qty': 1}, '2': {'qty': 'x'}, '1': {'qty': 2}}}

        restored = Cart.from_session(payload, products)

        assert [line.product_id for line in restored.lines] == [1]

    def test_from_empty_session(self, products):
        assert Cart.from_session(None, products).is_empty()
