import pytest
from datetime import datetime
from decimal import Decimal
import uuid

from storemanager import create_app
from storemanager.database import get_session, create_all, drop_all
from storemanager.models import AppUser, Product, Sale, SaleItem


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function', autouse=True)
def app_context(app):
    """Fresh schema and an application context for every test."""
    with app.app_context():
        create_all()
        yield
        get_session().remove()
        drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Database session for testing."""
    session = get_session()
    yield session
    session.rollback()


def make_user(session, email=None, password='password123', full_name='Store Owner'):
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(
        email=email or f'owner-{suffix}@test.com',
        full_name=full_name,
        active=True
    )
    user.set_password(password)
    session.add(user)
    session.commit()
    return user


def make_product(session, owner_id, name='Product', quantity=10, purchase_price='10.00',
                 selling_price='15.00', min_quantity=5, category='Groceries', created_at=None):
    product = Product(
        owner_id=owner_id,
        name=name,
        category=category,
        quantity=quantity,
        purchase_price=Decimal(purchase_price),
        selling_price=Decimal(selling_price),
        min_quantity=min_quantity,
        created_at=created_at or datetime.now()
    )
    session.add(product)
    session.commit()
    return product


def make_sale(session, owner_id, created_at, total_amount, profit, invoice_number=None, items=()):
    """Insert a completed sale directly; items are (name, quantity, unit_price, total, profit)."""
    sale = Sale(
        owner_id=owner_id,
        invoice_number=invoice_number or f'INV-TEST-{uuid.uuid4().hex[:8]}',
        total_amount=Decimal(str(total_amount)),
        profit=Decimal(str(profit)),
        created_at=created_at
    )
    for name, quantity, unit_price, total, item_profit in items:
        sale.items.append(SaleItem(
            product_name=name,
            quantity=quantity,
            unit_price=Decimal(str(unit_price)),
            total_price=Decimal(str(total)),
            profit=Decimal(str(item_profit))
        ))
    session.add(sale)
    session.commit()
    return sale


@pytest.fixture(scope='function')
def user1(session):
    """Create first store owner."""
    return make_user(session, full_name='User One')


@pytest.fixture(scope='function')
def user2(session):
    """Create second store owner for isolation tests."""
    return make_user(session, full_name='User Two')


@pytest.fixture(scope='function')
def product_a(session, user1):
    """Selling 30.00, purchase 20.00, 5 in stock."""
    return make_product(session, user1.id, name='Product A', quantity=5,
                        purchase_price='20.00', selling_price='30.00')


@pytest.fixture(scope='function')
def product_b(session, user1):
    """Selling 10.00, purchase 6.00, 20 in stock."""
    return make_product(session, user1.id, name='Product B', quantity=20,
                        purchase_price='6.00', selling_price='10.00', category='Beverages')


@pytest.fixture(scope='function')
def authenticated_client(client, user1):
    """Create authenticated client for user1."""
    with client.session_transaction() as sess:
        sess['user_id'] = user1.id
    return client


@pytest.fixture(scope='function')
def product_factory(session):
    """make_product bound to the test session."""
    return lambda owner_id, **kwargs: make_product(session, owner_id, **kwargs)


@pytest.fixture(scope='function')
def sale_factory(session):
    """make_sale bound to the test session."""
    return lambda owner_id, created_at, total_amount, profit, **kwargs: make_sale(
        session, owner_id, created_at, total_amount, profit, **kwargs
    )
