"""
Tests for restaurant (tenant) administration by the superadmin.
"""

from pos_api.models import User
from pos_shared.security.password import verify_password

from .conftest import PASSWORD


def _tenant_payload(**overrides):
    payload = {
        "name": "Asadero El Fogón",
        "slug": "el-fogon",
        "plan": "basico",
        "admin_name": "Laura Gómez",
        "admin_email": "laura@elfogon.com",
        "admin_password": "fogon123",
    }
    payload.update(overrides)
    return payload


class TestTenantAdministration:
    """Restaurant onboarding and lifecycle from the platform side."""

    def test_create_tenant_with_admin(self, client, db_session, superadmin_headers):
        """A new restaurant comes with its first admin user."""
        response = client.post(
            "/api/superadmin/tenants", headers=superadmin_headers, json=_tenant_payload()
        )
        assert response.status_code == 201
        data = response.json()
        assert data["tenant"]["slug"] == "el-fogon"
        assert data["tenant"]["status"] == "activo"

        admin = db_session.get(User, data["admin_user_id"])
        assert admin.role == "admin"
        assert admin.tenant_id == data["tenant"]["id"]
        assert verify_password("fogon123", admin.password_hash)

        # The new admin can log in right away
        login = client.post(
            "/api/auth/login", json={"email": "laura@elfogon.com", "password": "fogon123"}
        )
        assert login.status_code == 200

    def test_duplicate_slug_rejected(self, client, superadmin_headers, seed_tenant):
        """Slugs are unique across the platform."""
        response = client.post(
            "/api/superadmin/tenants",
            headers=superadmin_headers,
            json=_tenant_payload(slug=seed_tenant.slug),
        )
        assert response.status_code == 400

    def test_duplicate_admin_email_rejected(self, client, superadmin_headers, seed_admin_user):
        """The first admin email must not exist yet."""
        response = client.post(
            "/api/superadmin/tenants",
            headers=superadmin_headers,
            json=_tenant_payload(admin_email=seed_admin_user.email),
        )
        assert response.status_code == 400

    def test_invalid_slug_rejected(self, client, superadmin_headers):
        """Slugs are lowercase letters, digits and hyphens."""
        response = client.post(
            "/api/superadmin/tenants",
            headers=superadmin_headers,
            json=_tenant_payload(slug="El Fogón"),
        )
        assert response.status_code == 422

    def test_list_tenants_with_stats(self, client, superadmin_headers, seed_admin_user, seed_products):
        """The listing carries per restaurant counts."""
        response = client.get("/api/superadmin/tenants", headers=superadmin_headers)
        assert response.status_code == 200
        tenant = response.json()[0]
        assert tenant["users"] == 1
        assert tenant["products"] == 2
        assert tenant["invoices"] == 0
        assert tenant["total_sales"] == 0

    def test_suspend_blocks_login_and_activate_restores(
        self, client, superadmin_headers, seed_tenant, seed_admin_user
    ):
        """Suspension locks staff out until the restaurant is activated again."""
        response = client.put(
            f"/api/superadmin/tenants/{seed_tenant.id}/suspend", headers=superadmin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "suspendido"

        login = client.post(
            "/api/auth/login", json={"email": seed_admin_user.email, "password": PASSWORD}
        )
        assert login.status_code == 403

        response = client.put(
            f"/api/superadmin/tenants/{seed_tenant.id}/activate", headers=superadmin_headers
        )
        assert response.json()["status"] == "activo"

        login = client.post(
            "/api/auth/login", json={"email": seed_admin_user.email, "password": PASSWORD}
        )
        assert login.status_code == 200

    def test_update_tenant_plan(self, client, superadmin_headers, seed_tenant):
        """Changing the plan of a restaurant."""
        response = client.put(
            f"/api/superadmin/tenants/{seed_tenant.id}",
            headers=superadmin_headers,
            json={"plan": "empresarial", "phone": "6015551234"},
        )
        assert response.status_code == 200
        assert response.json()["plan"] == "empresarial"
        assert response.json()["phone"] == "6015551234"

    def test_delete_tenant_is_soft(self, client, db_session, superadmin_headers, seed_tenant):
        """Deleting a restaurant only deactivates it."""
        response = client.delete(
            f"/api/superadmin/tenants/{seed_tenant.id}", headers=superadmin_headers
        )
        assert response.status_code == 200

        db_session.refresh(seed_tenant)
        assert seed_tenant.is_active is False
        assert seed_tenant.status == "inactivo"

    def test_unknown_tenant(self, client, superadmin_headers):
        """Unknown restaurant ids are 404."""
        response = client.put(
            "/api/superadmin/tenants/9999/suspend", headers=superadmin_headers
        )
        assert response.status_code == 404

    def test_list_tenant_users_and_reset_password(
        self, client, superadmin_headers, seed_tenant, seed_admin_user
    ):
        """The superadmin can list staff and reset a password."""
        response = client.get(
            f"/api/superadmin/tenants/{seed_tenant.id}/users", headers=superadmin_headers
        )
        assert [u["email"] for u in response.json()] == [seed_admin_user.email]

        response = client.put(
            f"/api/superadmin/users/{seed_admin_user.id}/password",
            headers=superadmin_headers,
            json={"password": "nuevaClave1"},
        )
        assert response.status_code == 200

        login = client.post(
            "/api/auth/login",
            json={"email": seed_admin_user.email, "password": "nuevaClave1"},
        )
        assert login.status_code == 200

    def test_global_stats(self, client, superadmin_headers, seed_tenant, seed_admin_user):
        """Platform wide totals."""
        response = client.get("/api/superadmin/stats", headers=superadmin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["tenants"] == 1
        assert data["tenants_by_status"]["activo"] == 1
        assert data["users"] == 1


class TestPlanAdministration:
    """Editing the plan quota table."""

    def test_list_plans(self, client, superadmin_headers):
        """The three plans are listed with their quotas."""
        response = client.get("/api/superadmin/plans", headers=superadmin_headers)
        assert response.status_code == 200
        plans = {p["plan"]: p for p in response.json()}
        assert set(plans) == {"basico", "profesional", "empresarial"}
        assert plans["basico"]["api_enabled"] is False
        assert plans["profesional"]["api_enabled"] is True

    def test_update_plan_takes_effect_immediately(self, client, superadmin_headers):
        """A quota change is enforced on the next request."""
        # Warm the cache first
        client.get("/api/superadmin/plans", headers=superadmin_headers)

        response = client.put(
            "/api/superadmin/plans/basico",
            headers=superadmin_headers,
            json={"max_tables": 12, "api_enabled": True},
        )
        assert response.status_code == 200
        assert response.json()["max_tables"] == 12

        plans = {p["plan"]: p for p in client.get(
            "/api/superadmin/plans", headers=superadmin_headers
        ).json()}
        assert plans["basico"]["max_tables"] == 12
        assert plans["basico"]["api_enabled"] is True

    def test_update_unknown_plan(self, client, superadmin_headers):
        """Unknown plans are 404."""
        response = client.put(
            "/api/superadmin/plans/oro", headers=superadmin_headers, json={"max_users": 1}
        )
        assert response.status_code == 404
