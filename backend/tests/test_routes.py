# Overview: Pytest coverage for the HTTP surface (status codes, payload validation, JSON shapes).

from decimal import Decimal

import pytest
from meatmaster.models import Product, InventoryLogEntry, Sale


def post_sale(client, headers, items, **body):
    return client.post('/api/sales', headers=headers, json={"items": items, "payment_method": "cash", **body})


class TestSystemRoutes:

    def test_health(self, client, db_session):
        response = client.get('/api/health')
        assert response.status_code == 200
        assert response.json["status"] == "healthy"
        assert response.json["checks"]["database"]["status"] == "healthy"

    def test_cors_for_dev_frontend(self, client, db_session):
        response = client.get('/api/health', headers={'Origin': 'http://localhost:5173'})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert "X-Tenant-ID" in response.headers["Access-Control-Allow-Headers"]

        response = client.get('/api/health', headers={'Origin': 'http://evil.example'})
        assert "Access-Control-Allow-Origin" not in response.headers


class TestProductRoutes:

    def test_create_with_opening_stock(self, client, db_session, headers_a, user_a, category_a):
        response = client.post('/api/products', headers={**headers_a, 'X-User-ID': str(user_a.id)}, json={
            "name": "Maminha",
            "price_cents": 5490,
            "unit": "kg",
            "category_id": category_a.id,
            "stock_quantity": "12.5",
        })

        assert response.status_code == 201
        body = response.json
        assert body["stock_quantity"] == "12.5"
        assert body["effective_price_cents"] == 5490
        assert body["category_name"] == "Carnes Bovinas"

        entry = db_session.query(InventoryLogEntry).filter_by(product_id=body["id"]).one()
        assert entry.type == "entry"
        assert entry.user_id == user_a.id

    @pytest.mark.parametrize("payload,fragment", [
        ({"price_cents": 100}, "Missing required fields"),
        ({"name": "X", "price_cents": -1}, "price_cents must be >= 0"),
        ({"name": "X", "price_cents": 12.5}, "price_cents"),
        ({"name": "X", "price_cents": 100, "unit": "lb"}, "unit must be one of"),
        ({"name": "X", "price_cents": 100, "stock_quantity": "1.2345"}, "decimal places"),
        ({"name": "X", "price_cents": 100, "tenant_id": 2}, "Field not allowed"),
    ])
    def test_create_validation(self, client, db_session, headers_a, payload, fragment):
        response = client.post('/api/products', headers=headers_a, json=payload)
        assert response.status_code == 400
        assert fragment in response.json["error"]

    def test_create_with_foreign_category_404(self, client, db_session, headers_b, category_a):
        response = client.post('/api/products', headers=headers_b, json={
            "name": "X", "price_cents": 100, "category_id": category_a.id,
        })
        assert response.status_code == 404

    def test_patch_price(self, client, db_session, headers_a, costela):
        response = client.patch(f'/api/products/{costela.id}', headers=headers_a, json={
            "promotional_price_cents": None,
        })
        assert response.status_code == 200
        assert response.json["effective_price_cents"] == 3990

    def test_patch_stock_rejected(self, client, db_session, headers_a, picanha):
        response = client.patch(f'/api/products/{picanha.id}', headers=headers_a, json={"stock_quantity": 999})
        assert response.status_code == 400
        assert db_session.get(Product, picanha.id).stock_quantity == Decimal("50")


class TestCatalogRoutes:

    def test_categories(self, client, db_session, headers_a, headers_b):
        response = client.post('/api/categories', headers=headers_a, json={"name": "Carnes Suínas"})
        assert response.status_code == 201
        assert response.json["slug"] == "carnes-suinas"

        assert [c["name"] for c in client.get('/api/categories', headers=headers_a).json] == ["Carnes Suínas"]
        assert client.get('/api/categories', headers=headers_b).json == []

    def test_category_requires_name(self, client, db_session, headers_a):
        assert client.post('/api/categories', headers=headers_a, json={}).status_code == 400

    def test_suppliers(self, client, db_session, headers_a):
        response = client.post('/api/suppliers', headers=headers_a, json={
            "name": "Frigorífico Sul", "document": "12.345.678/0001-90",
        })
        assert response.status_code == 201
        assert client.get('/api/suppliers', headers=headers_a).json[0]["document"] == "12.345.678/0001-90"


class TestCustomerRoutes:

    def test_list_includes_spend(self, client, db_session, headers_a, picanha, customer_a):
        post_sale(client, headers_a, [{"product_id": picanha.id, "quantity": 1}], customer_id=customer_a.id)
        post_sale(client, headers_a, [{"product_id": picanha.id, "quantity": 2}], customer_id=customer_a.id)
        client.post('/api/customers', headers=headers_a, json={"name": "Ana Souza"})

        customers = {c["name"]: c for c in client.get('/api/customers', headers=headers_a).json}

        assert customers["João Silva"]["total_spent_cents"] == 8990 * 3
        assert customers["João Silva"]["last_visit_at"] is not None
        assert customers["Ana Souza"]["total_spent_cents"] == 0
        assert customers["Ana Souza"]["last_visit_at"] is None

    def test_update(self, client, db_session, headers_a, headers_b, customer_a):
        response = client.put(f'/api/customers/{customer_a.id}', headers=headers_a, json={
            "phone": "(11) 97777-7777", "city": "São Paulo",
        })
        assert response.status_code == 200
        assert response.json["phone"] == "(11) 97777-7777"
        assert response.json["name"] == "João Silva"

        response = client.put(f'/api/customers/{customer_a.id}', headers=headers_b, json={"phone": "0"})
        assert response.status_code == 404


class TestSaleRoutes:

    def test_create_sale(self, client, db_session, headers_a, picanha):
        response = post_sale(client, headers_a, [{"product_id": picanha.id, "quantity": 2}])

        assert response.status_code == 201
        assert response.json["total_amount_cents"] == 17980
        assert response.json["item_count"] == 1

        detail = client.get(f'/api/sales/{response.json["sale_id"]}', headers=headers_a).json
        assert detail["items"][0]["quantity"] == "2"
        assert detail["items"][0]["unit_price_cents"] == 8990

    def test_delivery_sale(self, client, db_session, headers_a, carvao):
        response = post_sale(
            client, headers_a, [{"product_id": carvao.id, "quantity": 2}],
            delivery_type="delivery", delivery_fee_cents=1200, payment_method="card",
        )
        assert response.json["total_amount_cents"] == 4200
        assert response.json["delivery_fee_cents"] == 1200

    def test_empty_basket(self, client, db_session, headers_a):
        response = post_sale(client, headers_a, [])
        assert response.status_code == 400
        assert response.json["error"] == "Cannot create a sale with no items"

    def test_missing_product(self, client, db_session, headers_a, picanha):
        response = post_sale(client, headers_a, [
            {"product_id": picanha.id, "quantity": 1},
            {"product_id": 99999, "quantity": 1},
        ])
        assert response.status_code == 404
        assert db_session.query(Sale).count() == 0
        assert db_session.get(Product, picanha.id).stock_quantity == Decimal("50")

    @pytest.mark.parametrize("body,fragment", [
        ({"items": [{"product_id": 1, "quantity": 1, "price": 1}], "payment_method": "cash"}, "field not allowed"),
        ({"items": [{"product_id": 1, "quantity": 0}], "payment_method": "cash"}, "must be > 0"),
        ({"items": [{"product_id": 1, "quantity": "abc"}], "payment_method": "cash"}, "quantity"),
        ({"items": [{"quantity": 1}], "payment_method": "cash"}, "product_id is required"),
        ({"items": [{"product_id": 1, "quantity": 1}], "payment_method": "cheque"}, "payment_method"),
        ({"items": [{"product_id": 1, "quantity": 1}], "payment_method": "cash", "delivery_type": "drone"}, "delivery_type"),
        ({"items": [{"product_id": 1, "quantity": 1}], "payment_method": "cash", "total": 1}, "Field not allowed"),
        ({"items": "picanha", "payment_method": "cash"}, "items must be a list"),
    ])
    def test_malformed_body(self, client, db_session, headers_a, body, fragment):
        response = client.post('/api/sales', headers=headers_a, json=body)
        assert response.status_code == 400
        assert fragment in response.json["error"]

    def test_insufficient_stock_details(self, app, client, db_session, headers_a, picanha, monkeypatch):
        monkeypatch.setitem(app.config, "ALLOW_NEGATIVE_STOCK", False)

        response = post_sale(client, headers_a, [{"product_id": picanha.id, "quantity": 51}])

        assert response.status_code == 400
        assert response.json["details"]["items"][0]["on_hand"] == "50"


class TestInventoryRoutes:

    def test_adjust_history_reconcile(self, client, db_session, headers_a, user_a, picanha):
        response = client.post('/api/inventory/adjust', headers={**headers_a, 'X-User-ID': str(user_a.id)}, json={
            "product_id": picanha.id,
            "quantity_change": "-1.5",
            "type": "exit",
            "reason": "Aparas",
        })
        assert response.status_code == 201
        assert response.json["quantity_change"] == "-1.5"
        assert response.json["user_name"] == "Operador A"

        history = client.get('/api/inventory/history?limit=10', headers=headers_a).json
        assert len(history) == 1
        assert history[0]["product_name"] == "Picanha Premium"

        recon = client.get(f'/api/inventory/{picanha.id}/reconciliation', headers=headers_a).json
        assert recon["balanced"] is True
        assert recon["stock_quantity"] == "48.5"

    @pytest.mark.parametrize("body", [
        {"product_id": 1, "quantity_change": 1, "type": "sale"},
        {"product_id": 1, "quantity_change": -1, "type": "entry"},
        {"product_id": 1, "type": "entry"},
    ])
    def test_adjust_rejects_bad_movements(self, client, db_session, headers_a, picanha, body):
        body = {**body, "product_id": picanha.id}
        response = client.post('/api/inventory/adjust', headers=headers_a, json=body)
        assert response.status_code == 400

    def test_reconciliation_foreign_product(self, client, db_session, headers_a, product_b):
        assert client.get(f'/api/inventory/{product_b.id}/reconciliation', headers=headers_a).status_code == 404


class TestReportRoutes:

    def test_stats_fiscal_low_stock(self, client, db_session, headers_a, picanha, carvao):
        post_sale(client, headers_a, [{"product_id": picanha.id, "quantity": 46}])
        post_sale(client, headers_a, [{"product_id": carvao.id, "quantity": 1}],
                  delivery_type="delivery", delivery_fee_cents=700)

        stats = client.get('/api/stats', headers=headers_a).json
        assert stats["daily_revenue_cents"] == 8990 * 46 + 1500 + 700
        assert stats["low_stock_count"] == 1
        assert len(stats["recent_sales"]) == 2

        fiscal = client.get('/api/reports/fiscal', headers=headers_a).json
        assert fiscal["total_sales"] == 2
        assert fiscal["total_delivery_fees_cents"] == 700

        low = client.get('/api/reports/low-stock', headers=headers_a).json
        assert [p["name"] for p in low] == ["Picanha Premium"]

    def test_stats_bad_limit(self, client, db_session, headers_a):
        assert client.get('/api/stats?recent_limit=0', headers=headers_a).status_code == 400


class TestPublicStore:

    def test_store_by_slug(self, client, db_session, tenant_a, picanha, product_b):
        response = client.get('/api/public/store/alfa')
        assert response.status_code == 200
        assert response.json["store"]["name"] == "Açougue Alfa"
        assert [p["name"] for p in response.json["products"]] == ["Picanha Premium"]
        assert response.json["categories"][0]["slug"] == "bovinos"

    def test_unknown_slug(self, client, db_session):
        assert client.get('/api/public/store/nope').status_code == 404
