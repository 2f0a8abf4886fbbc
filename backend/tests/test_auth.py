"""
Tests for staff login and the current user endpoint.
"""

from pos_shared.config.constants import Roles, TenantStatus
from pos_shared.security.auth import sign_jwt, verify_jwt

from .conftest import PASSWORD, create_user


class TestLogin:
    """Staff login with email and password."""

    def test_login_returns_token_with_claims(self, client, seed_admin_user, seed_tenant):
        """Valid credentials return a token carrying user, tenant and role."""
        response = client.post(
            "/api/auth/login",
            json={"email": "admin@labrasa.com", "password": PASSWORD},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "Bearer"
        assert data["user"]["role"] == "admin"
        assert data["user"]["tenant_name"] == seed_tenant.name

        claims = verify_jwt(data["access_token"])
        assert claims["sub"] == str(seed_admin_user.id)
        assert claims["tenant_id"] == seed_tenant.id
        assert claims["role"] == "admin"
        assert claims["email"] == "admin@labrasa.com"

    def test_login_wrong_password(self, client, seed_admin_user):
        """A wrong password is rejected with the generic message."""
        response = client.post(
            "/api/auth/login",
            json={"email": "admin@labrasa.com", "password": "incorrecta"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Credenciales inválidas"

    def test_login_unknown_email_same_message(self, client, db_session):
        """An unknown email gets the same message as a wrong password."""
        response = client.post(
            "/api/auth/login",
            json={"email": "nadie@labrasa.com", "password": PASSWORD},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Credenciales inválidas"

    def test_login_email_is_case_insensitive(self, client, seed_admin_user):
        """Email matching ignores case."""
        response = client.post(
            "/api/auth/login",
            json={"email": "ADMIN@LaBrasa.com", "password": PASSWORD},
        )
        assert response.status_code == 200

    def test_inactive_user_cannot_login(self, client, db_session, seed_admin_user):
        """Deactivated users are refused."""
        seed_admin_user.is_active = False
        db_session.commit()

        response = client.post(
            "/api/auth/login",
            json={"email": "admin@labrasa.com", "password": PASSWORD},
        )
        assert response.status_code == 403

    def test_suspended_tenant_cannot_login(self, client, db_session, seed_tenant, seed_admin_user):
        """Staff of a suspended restaurant are refused."""
        seed_tenant.status = TenantStatus.SUSPENDED
        db_session.commit()

        response = client.post(
            "/api/auth/login",
            json={"email": "admin@labrasa.com", "password": PASSWORD},
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Restaurante suspendido o inactivo"

    def test_superadmin_login_has_no_tenant(self, client, superadmin_user):
        """The platform superadmin token carries no tenant."""
        response = client.post(
            "/api/auth/login",
            json={"email": superadmin_user.email, "password": PASSWORD},
        )
        assert response.status_code == 200
        claims = verify_jwt(response.json()["access_token"])
        assert claims["tenant_id"] is None
        assert claims["role"] == Roles.SUPERADMIN


class TestMe:
    """Current user endpoint."""

    def test_me(self, client, auth_headers, seed_admin_user):
        """The token resolves to its user."""
        response = client.get("/api/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["id"] == seed_admin_user.id

    def test_me_without_token(self, client):
        """A missing token is a 401."""
        response = client.get("/api/auth/me")
        assert response.status_code == 401

    def test_me_with_garbage_token(self, client):
        """A malformed token is a 401."""
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer abc.def.ghi"})
        assert response.status_code == 401

    def test_expired_token_rejected(self, client, seed_admin_user, seed_tenant):
        """An expired token is a 401 with its own message."""
        token = sign_jwt(
            {
                "sub": str(seed_admin_user.id),
                "tenant_id": seed_tenant.id,
                "role": "admin",
                "email": seed_admin_user.email,
            },
            ttl_seconds=-10,
        )
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Token expirado"


class TestRoleChecks:
    """Role and tenant guards on the routers."""

    def test_waiter_cannot_manage_users(self, client, waiter_headers):
        """User management is admin only."""
        response = client.get("/api/users", headers=waiter_headers)
        assert response.status_code == 403

    def test_superadmin_has_no_tenant_endpoints(self, client, db_session, superadmin_headers):
        """Tenant endpoints need a tenant in the token."""
        response = client.get("/api/plan/usage", headers=superadmin_headers)
        assert response.status_code == 403

    def test_staff_cannot_reach_superadmin(self, client, auth_headers):
        """Restaurant admins cannot use the platform endpoints."""
        response = client.get("/api/superadmin/tenants", headers=auth_headers)
        assert response.status_code == 403

    def test_user_of_another_restaurant_cannot_login_after_deletion(
        self, client, db_session, other_tenant
    ):
        """Deleting a restaurant locks out its staff."""
        user = create_user(db_session, other_tenant, Roles.CASHIER, "caja@elfogon.com")
        other_tenant.is_active = False
        db_session.commit()

        response = client.post(
            "/api/auth/login", json={"email": user.email, "password": PASSWORD}
        )
        assert response.status_code == 403
