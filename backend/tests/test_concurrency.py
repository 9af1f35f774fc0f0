# Overview: Pytest coverage for concurrent sales against one product on a file-backed store.

import threading
from decimal import Decimal

import pytest

from meatmaster import create_app
from meatmaster.extensions import db
from meatmaster.models import Tenant, Product, Sale, InventoryLogEntry
from meatmaster.services import catalog_service, ledger_service, sales_service
from meatmaster.validation import BasketLine, SaleRequest

THREADS = 4
SALES_PER_THREAD = 20


@pytest.fixture
def file_app(tmp_path):
    """
    Separate app on a SQLite file: every thread gets its own connection,
    unlike the shared in-memory database of the main fixtures.
    """
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.sqlite3'}",
        'ALLOW_NEGATIVE_STOCK': True,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def seeded(file_app):
    tenant = Tenant(name="Açougue Concorrente", slug="concorrente")
    db.session.add(tenant)
    db.session.commit()

    product = catalog_service.create_product(
        tenant_id=tenant.id,
        patch={"name": "Picanha Premium", "price_cents": 8990, "unit": "kg", "stock_quantity": Decimal("1000")},
    )
    return tenant.id, product.id


class TestConcurrentSales:

    def test_parallel_sales_serialize(self, file_app, seeded):
        """Every sale commits and stock stays equal to opening stock plus the ledger."""
        tenant_id, product_id = seeded
        errors = []

        def sell():
            with file_app.app_context():
                try:
                    for _ in range(SALES_PER_THREAD):
                        sales_service.create_sale(
                            tenant_id,
                            SaleRequest(
                                lines=(BasketLine(product_id, Decimal("1")),),
                                payment_method="cash",
                            ),
                        )
                except Exception as exc:
                    errors.append(exc)
                finally:
                    db.session.remove()

        workers = [threading.Thread(target=sell) for _ in range(THREADS)]
        for w in workers:
            w.start()
        for w in workers:
            w.join(timeout=60)

        assert errors == []

        db.session.expire_all()
        total_sales = THREADS * SALES_PER_THREAD
        assert db.session.query(Sale).filter_by(tenant_id=tenant_id).count() == total_sales
        assert db.session.query(InventoryLogEntry).filter_by(
            tenant_id=tenant_id, type="sale"
        ).count() == total_sales
        assert db.session.get(Product, product_id).stock_quantity == Decimal("1000") - total_sales

        recon = ledger_service.stock_reconciliation(tenant_id, product_id)
        assert recon["balanced"] is True
        assert recon["stock_quantity"] == "920"
