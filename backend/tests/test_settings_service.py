# Overview: Pytest coverage for tenant storefront settings (service and routes).

import pytest

from meatmaster.models import TenantSettings
from meatmaster.services import settings_service
from meatmaster.services.tenant_service import UnknownActor


class TestSettingsService:

    def test_empty_until_saved(self, db_session, tenant_a):
        assert settings_service.get_settings(tenant_a.id) is None
        assert settings_service.settings_dict(tenant_a.id) == {}

    def test_save_then_replace(self, db_session, tenant_a, user_a):
        settings_service.save_settings(
            tenant_id=tenant_a.id,
            patch={"phone": "(11) 3333-3333", "instagram": "@acouguealfa"},
            actor_user_id=user_a.id,
        )
        settings_service.save_settings(tenant_id=tenant_a.id, patch={"phone": "(11) 4444-4444"})

        data = settings_service.settings_dict(tenant_a.id)
        assert data["phone"] == "(11) 4444-4444"
        # The saved form replaces the stored one
        assert data["instagram"] is None
        assert db_session.query(TenantSettings).count() == 1

    def test_scoped_per_tenant(self, db_session, tenant_a, tenant_b):
        settings_service.save_settings(tenant_id=tenant_a.id, patch={"address": "Rua A, 1"})

        assert settings_service.settings_dict(tenant_b.id) == {}

    def test_foreign_actor_rejected(self, db_session, tenant_a, user_b):
        with pytest.raises(UnknownActor):
            settings_service.save_settings(
                tenant_id=tenant_a.id,
                patch={"address": "Rua A, 1"},
                actor_user_id=user_b.id,
            )

        assert db_session.query(TenantSettings).count() == 0


class TestSettingsRoutes:

    def test_get_post_roundtrip(self, client, db_session, headers_a, headers_b):
        assert client.get('/api/settings', headers=headers_a).json == {}

        response = client.post('/api/settings', headers=headers_a, json={
            "whatsapp": "5511999999999",
            "opening_hours": "Ter-Dom 8h-18h",
        })
        assert response.status_code == 200
        assert response.json["whatsapp"] == "5511999999999"

        assert client.get('/api/settings', headers=headers_a).json["opening_hours"] == "Ter-Dom 8h-18h"
        assert client.get('/api/settings', headers=headers_b).json == {}

    def test_requires_tenant(self, client, db_session):
        assert client.get('/api/settings').status_code == 401
        assert client.post('/api/settings', json={"phone": "1"}).status_code == 401

    @pytest.mark.parametrize("body,fragment", [
        ({"tenant_id": 2}, "Field not allowed"),
        ({"phone": "9" * 40}, "exceeds max length"),
    ])
    def test_post_validation(self, client, db_session, headers_a, body, fragment):
        response = client.post('/api/settings', headers=headers_a, json=body)
        assert response.status_code == 400
        assert fragment in response.json["error"]

    def test_public_store_includes_settings(self, client, db_session, headers_a, tenant_a):
        assert client.get('/api/public/store/alfa').json["settings"] == {}

        client.post('/api/settings', headers=headers_a, json={"logo_url": "https://cdn.example/alfa.png"})

        settings = client.get('/api/public/store/alfa').json["settings"]
        assert settings["logo_url"] == "https://cdn.example/alfa.png"
