"""
Pytest fixtures for MeatMaster backend tests.

Provides test database setup, two-tenant isolation fixtures, and test client.
"""

from decimal import Decimal

import pytest
from meatmaster import create_app
from meatmaster.extensions import db
from meatmaster.models import Tenant, User, Category, Product, Customer


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ALLOW_NEGATIVE_STOCK': True,
        'LEDGER_HISTORY_LIMIT': 100,
        'RECENT_SALES_LIMIT': 5,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema. Core DELETE bypasses the ORM
        # immutability listeners.
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """Create Tenant A (first tenant)."""
    tenant = Tenant(name="Açougue Alfa", slug="alfa")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Create Tenant B (second tenant)."""
    tenant = Tenant(name="Casa de Carnes Beta", slug="beta")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def user_a(db_session, tenant_a):
    """Cashier in Tenant A."""
    user = User(tenant_id=tenant_a.id, username="caixa", name="Operador A", role="cashier")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def user_b(db_session, tenant_b):
    """Cashier in Tenant B."""
    user = User(tenant_id=tenant_b.id, username="caixa", name="Operador B", role="cashier")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def category_a(db_session, tenant_a):
    category = Category(tenant_id=tenant_a.id, name="Carnes Bovinas", slug="bovinos")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def picanha(db_session, tenant_a, category_a):
    """Picanha Premium: R$ 89,90/kg, 50 kg on hand, no promotion."""
    product = Product(
        tenant_id=tenant_a.id,
        name="Picanha Premium",
        price_cents=8990,
        unit="kg",
        category_id=category_a.id,
        stock_quantity=Decimal("50"),
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def costela(db_session, tenant_a, category_a):
    """Costela Gaúcha: R$ 39,90/kg list, R$ 34,90/kg promotional."""
    product = Product(
        tenant_id=tenant_a.id,
        name="Costela Gaúcha",
        price_cents=3990,
        promotional_price_cents=3490,
        unit="kg",
        category_id=category_a.id,
        stock_quantity=Decimal("100"),
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def carvao(db_session, tenant_a):
    """Carvão 5kg: R$ 15,00 per unit."""
    product = Product(
        tenant_id=tenant_a.id,
        name="Carvão 5kg",
        price_cents=1500,
        unit="un",
        stock_quantity=Decimal("200"),
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, tenant_b):
    """Product owned by Tenant B."""
    product = Product(
        tenant_id=tenant_b.id,
        name="Fraldinha",
        price_cents=5990,
        unit="kg",
        stock_quantity=Decimal("30"),
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer_a(db_session, tenant_a):
    customer = Customer(tenant_id=tenant_a.id, name="João Silva", email="joao@email.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, tenant_b):
    customer = Customer(tenant_id=tenant_b.id, name="Maria Oliveira")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def headers_a(tenant_a):
    return {'X-Tenant-ID': str(tenant_a.id)}


@pytest.fixture(scope='function')
def headers_b(tenant_b):
    return {'X-Tenant-ID': str(tenant_b.id)}
