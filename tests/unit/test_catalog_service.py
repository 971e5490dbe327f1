"""
Tests for the catalog service: search, low stock, validation and writes.
"""

import pytest
from decimal import Decimal

from storemanager.models import Product
from storemanager.exceptions import ValidationError, NotFoundError
from storemanager.services.catalog_service import (
    ProductSnapshot, filter_products, low_stock, validate_product_data,
    get_products, create_product, update_product, delete_product, get_product
)


def snapshot(id, name, quantity=10, min_quantity=5, category='Groceries'):
    return ProductSnapshot(id=id, name=name, category=category, quantity=quantity,
                           purchase_price='1.00', selling_price='2.00', min_quantity=min_quantity)


def valid_data(**overrides):
    data = {
        'name': 'Green Tea',
        'category': 'Beverages',
        'quantity': '12',
        'min_quantity': '3',
        'purchase_price': '4.5',
        'selling_price': '7.25',
    }
    data.update(overrides)
    return data


class TestFilterProducts:

    def test_empty_term_keeps_everything(self):
        products = [snapshot(1, 'Rice'), snapshot(2, 'Milk')]
        assert filter_products(products, '') == products
        assert filter_products(products, None) == products

    def test_matches_name_or_category_case_insensitive(self):
        products = [
            snapshot(1, 'Basmati Rice'),
            snapshot(2, 'Milk', category='Dairy'),
            snapshot(3, 'Orange Juice', category='Beverages'),
        ]

        assert [p.id for p in filter_products(products, 'RICE')] == [1]
        assert [p.id for p in filter_products(products, 'dairy')] == [2]
        assert [p.id for p in filter_products(products, '  bev ')] == [3]
        assert filter_products(products, 'bread') == []


class TestLowStock:

    @pytest.mark.parametrize('quantity,min_quantity,expected', [
        (5, 5, True),
        (0, 5, True),
        (6, 5, False),
        (10, 5, False),
    ])
    def test_threshold_is_inclusive(self, quantity, min_quantity, expected):
        product = snapshot(1, 'Sugar', quantity=quantity, min_quantity=min_quantity)
        assert (product in low_stock([product])) is expected
        assert product.is_low_stock is expected


class TestValidateProductData:

    def test_cleans_values(self):
        cleaned = validate_product_data(valid_data(name='  Green Tea  '))

        assert cleaned['name'] == 'Green Tea'
        assert cleaned['quantity'] == 12
        assert cleaned['min_quantity'] == 3
        assert cleaned['purchase_price'] == Decimal('4.50')
        assert cleaned['selling_price'] == Decimal('7.25')

    def test_collects_every_error(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_product_data(valid_data(
                name=' ', category='Toys', quantity='-1', purchase_price='abc'
            ))

        errors = exc_info.value.errors
        assert 'Name is required' in errors
        assert any(e.startswith('Category must be one of') for e in errors)
        assert 'Quantity must be at least 0' in errors
        assert 'Purchase price must be a valid number' in errors
        assert exc_info.value.status_code == 400

    def test_rejects_negative_price_and_zero_minimum(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_product_data(valid_data(selling_price='-2', min_quantity='0'))

        assert 'Selling price must be greater than or equal to 0' in exc_info.value.errors
        assert 'Minimum quantity must be at least 1' in exc_info.value.errors

    def test_rejects_fractional_quantity(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_product_data(valid_data(quantity='1.5'))

        assert exc_info.value.errors == ['Quantity must be a whole number']


class TestProductWrites:

    def test_create_product(self, session, user1):
        product = create_product(session, user1.id, valid_data())

        stored = session.query(Product).filter_by(id=product.id).one()
        assert stored.owner_id == user1.id
        assert stored.name == 'Green Tea'
        assert stored.selling_price == Decimal('7.25')
        assert stored.created_at is not None

    def test_invalid_create_persists_nothing(self, session, user1):
        with pytest.raises(ValidationError):
            create_product(session, user1.id, valid_data(name=''))

        assert session.query(Product).count() == 0

    def test_products_are_newest_first(self, session, user1, product_factory):
        from datetime import datetime
        product_factory(user1.id, name='Old', created_at=datetime(2024, 1, 1))
        product_factory(user1.id, name='New', created_at=datetime(2024, 6, 1))

        assert [p.name for p in get_products(session, user1.id)] == ['New', 'Old']

    def test_update_product(self, session, user1, product_a):
        update_product(session, user1.id, product_a.id, valid_data(name='Renamed', quantity='2'))

        stored = get_product(session, user1.id, product_a.id)
        assert stored.name == 'Renamed'
        assert stored.quantity == 2
        assert stored.is_low_stock

    def test_delete_product(self, session, user1, product_a):
        product_id = product_a.id

        assert delete_product(session, user1.id, product_id) == 'Product A'
        assert session.query(Product).filter_by(id=product_id).first() is None

    def test_other_owner_cannot_touch_product(self, session, user1, user2, product_a):
        with pytest.raises(NotFoundError):
            update_product(session, user2.id, product_a.id, valid_data())
        with pytest.raises(NotFoundError):
            delete_product(session, user2.id, product_a.id)

        assert get_product(session, user1.id, product_a.id).name == 'Product A'
        assert get_products(session, user2.id) == []
