# Overview: Pytest coverage for the inventory ledger.

from decimal import Decimal

import pytest

from meatmaster.extensions import db
from meatmaster.models import Product, InventoryLogEntry
from meatmaster.services import ledger_service, catalog_service, sales_service
from meatmaster.services.ledger_service import LedgerError
from meatmaster.services.catalog_service import ProductNotFound
from meatmaster.services.tenant_service import UnknownActor
from meatmaster.validation import BasketLine, SaleRequest


def adjust(tenant_id, product_id, delta, movement_type, **kwargs):
    return ledger_service.manual_adjust(
        tenant_id=tenant_id,
        product_id=product_id,
        actor_user_id=kwargs.pop("actor_user_id", None),
        delta=Decimal(delta),
        movement_type=movement_type,
        **kwargs,
    )


class TestManualAdjust:

    def test_entry_increases_stock(self, db_session, tenant_a, user_a, picanha):
        entry = adjust(tenant_a.id, picanha.id, "10.5", "entry", reason="Fornecedor", actor_user_id=user_a.id)

        assert db_session.get(Product, picanha.id).stock_quantity == Decimal("60.5")
        assert entry.type == "entry"
        assert entry.user_id == user_a.id
        assert entry.sale_id is None
        assert entry.reason == "Fornecedor"

    def test_exit_and_adjustment(self, db_session, tenant_a, picanha):
        adjust(tenant_a.id, picanha.id, "-2", "exit", reason="Perda")
        adjust(tenant_a.id, picanha.id, "0.75", "adjustment", reason="Contagem")

        assert db_session.get(Product, picanha.id).stock_quantity == Decimal("48.75")
        assert db_session.query(InventoryLogEntry).filter_by(product_id=picanha.id).count() == 2

    @pytest.mark.parametrize("delta,movement_type", [
        ("-1", "entry"),
        ("1", "exit"),
        ("0", "adjustment"),
        ("1", "sale"),
        ("1", "transfer"),
    ])
    def test_invalid_movements_rejected(self, db_session, tenant_a, picanha, delta, movement_type):
        with pytest.raises(LedgerError):
            adjust(tenant_a.id, picanha.id, delta, movement_type)

        assert db_session.get(Product, picanha.id).stock_quantity == Decimal("50")
        assert db_session.query(InventoryLogEntry).count() == 0

    def test_foreign_product_not_found(self, db_session, tenant_a, product_b):
        with pytest.raises(ProductNotFound):
            adjust(tenant_a.id, product_b.id, "5", "entry")

        assert db_session.get(Product, product_b.id).stock_quantity == Decimal("30")

    def test_foreign_actor_rejected(self, db_session, tenant_a, user_b, picanha):
        with pytest.raises(UnknownActor):
            adjust(tenant_a.id, picanha.id, "5", "entry", actor_user_id=user_b.id)

        assert db_session.query(InventoryLogEntry).count() == 0

    def test_foreign_actor_checked_inside_transaction(self, db_session, tenant_a, user_b, picanha):
        """The actor lookup runs in the adjustment's unit of work, so its failure rolls it back."""
        db_session.get(Product, picanha.id).name = "Picanha Pendente"

        with pytest.raises(UnknownActor):
            adjust(tenant_a.id, picanha.id, "5", "entry", actor_user_id=user_b.id)

        assert not db_session.dirty
        assert db_session.get(Product, picanha.id).name == "Picanha Premium"

    def test_negative_stock_guard(self, db_session, tenant_a, picanha):
        with pytest.raises(LedgerError):
            adjust(tenant_a.id, picanha.id, "-51", "exit", allow_negative_stock=False)
        assert db_session.get(Product, picanha.id).stock_quantity == Decimal("50")

        adjust(tenant_a.id, picanha.id, "-51", "exit")
        assert db_session.get(Product, picanha.id).stock_quantity == Decimal("-1")


class TestOpeningStock:

    def test_create_product_books_opening_entry(self, db_session, tenant_a, user_a):
        product = catalog_service.create_product(
            tenant_id=tenant_a.id,
            patch={"name": "Alcatra", "price_cents": 6490, "unit": "kg", "stock_quantity": Decimal("12.5")},
            actor_user_id=user_a.id,
        )

        assert product.stock_quantity == Decimal("12.5")
        assert product.initial_stock_quantity == Decimal("0")

        entries = db_session.query(InventoryLogEntry).filter_by(product_id=product.id).all()
        assert len(entries) == 1
        assert entries[0].type == "entry"
        assert entries[0].quantity_change == Decimal("12.5")
        assert entries[0].user_id == user_a.id

        assert ledger_service.stock_reconciliation(tenant_a.id, product.id)["balanced"] is True

    def test_create_product_without_stock_writes_no_entry(self, db_session, tenant_a):
        product = catalog_service.create_product(
            tenant_id=tenant_a.id,
            patch={"name": "Sal Grosso", "price_cents": 890},
        )

        assert product.stock_quantity == Decimal("0")
        assert product.min_stock_level == Decimal("5")
        assert db_session.query(InventoryLogEntry).count() == 0


class TestHistory:

    def test_newest_first_with_names(self, db_session, tenant_a, user_a, picanha, costela):
        adjust(tenant_a.id, picanha.id, "5", "entry", actor_user_id=user_a.id)
        adjust(tenant_a.id, costela.id, "-1", "exit")
        receipt = sales_service.create_sale(
            tenant_a.id,
            SaleRequest(lines=(BasketLine(picanha.id, Decimal("2")),), payment_method="card"),
        )

        rows = ledger_service.history(tenant_a.id)

        assert [r["type"] for r in rows] == ["sale", "exit", "entry"]
        assert rows[0]["sale_id"] == receipt.sale_id
        assert rows[0]["quantity_change"] == "-2"
        assert rows[1]["product_name"] == "Costela Gaúcha"
        assert rows[1]["user_name"] is None
        assert rows[2]["product_name"] == "Picanha Premium"
        assert rows[2]["user_name"] == "Operador A"

    def test_limit_and_product_filter(self, db_session, tenant_a, picanha, costela):
        for _ in range(3):
            adjust(tenant_a.id, picanha.id, "1", "entry")
        adjust(tenant_a.id, costela.id, "1", "entry")

        assert len(ledger_service.history(tenant_a.id, 2)) == 2
        assert len(ledger_service.history(tenant_a.id, 0)) == 1
        assert len(ledger_service.history(tenant_a.id, product_id=picanha.id)) == 3

    def test_history_is_tenant_scoped(self, db_session, tenant_a, tenant_b, picanha, product_b):
        adjust(tenant_b.id, product_b.id, "3", "entry")

        assert ledger_service.history(tenant_a.id) == []
        assert len(ledger_service.history(tenant_b.id)) == 1


class TestReconciliation:

    def test_detects_out_of_band_stock_write(self, db_session, tenant_a, picanha):
        adjust(tenant_a.id, picanha.id, "5", "entry")
        assert ledger_service.stock_reconciliation(tenant_a.id, picanha.id)["balanced"] is True

        # A write that bypasses the ledger breaks the identity
        product = db.session.get(Product, picanha.id)
        product.stock_quantity = Decimal("100")
        db_session.commit()

        result = ledger_service.stock_reconciliation(tenant_a.id, picanha.id)
        assert result["balanced"] is False
        assert result["ledger_sum"] == "5"
