"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SUPERADMIN_EMAIL"] = ""
os.environ["SUPERADMIN_PASSWORD"] = ""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pos_api.main import app
from pos_api.models import Base, Category, Client, DiningTable, Product, Tenant, User
from pos_api.services.domain.plan_limit_service import invalidate_plan_cache, seed_plan_limits
from pos_shared.config.constants import Plans, Roles, TenantStatus
from pos_shared.infrastructure.db import get_db
from pos_shared.security.password import hash_password


# SQLite in-memory database shared by every connection of a test
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secreto123"


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh schema per test, with the plan limits seeded.
    """
    Base.metadata.create_all(bind=engine)
    invalidate_plan_cache()

    session = TestingSessionLocal()
    seed_plan_limits(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        invalidate_plan_cache()


@pytest.fixture(scope="function")
def client(db_session):
    """
    Test client with the database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Helpers
# =============================================================================


def create_tenant(db, slug="la-brasa", plan=Plans.PROFESSIONAL, status=TenantStatus.ACTIVE):
    tenant = Tenant(
        name=f"Restaurante {slug}",
        slug=slug,
        address="Calle 10 # 5-20",
        phone="3001234567",
        tax_id="900123456-7",
        plan=plan,
        status=status,
    )
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


def create_user(db, tenant, role, email, password=PASSWORD):
    user = User(
        tenant_id=tenant.id if tenant else None,
        name=email.split("@")[0].title(),
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def login(client, email, password=PASSWORD):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, f"Login failed: {response.json()}"
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def create_product(db, tenant, code, name, price_unit=Decimal("0"), price_kg=Decimal("0"), price_lb=Decimal("0"), category=None):
    product = Product(
        tenant_id=tenant.id,
        category_id=category.id if category else None,
        code=code,
        name=name,
        price_unit=price_unit,
        price_kg=price_kg,
        price_lb=price_lb,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


# =============================================================================
# Tenant and staff
# =============================================================================


@pytest.fixture
def seed_tenant(db_session):
    """A restaurant on the profesional plan (API enabled)."""
    return create_tenant(db_session)


@pytest.fixture
def other_tenant(db_session):
    return create_tenant(db_session, slug="el-fogon")


@pytest.fixture
def seed_admin_user(db_session, seed_tenant):
    return create_user(db_session, seed_tenant, Roles.ADMIN, "admin@labrasa.com")


@pytest.fixture
def auth_headers(client, seed_admin_user):
    """Authentication headers of the restaurant admin."""
    return login(client, seed_admin_user.email)


@pytest.fixture
def cashier_headers(client, db_session, seed_tenant):
    user = create_user(db_session, seed_tenant, Roles.CASHIER, "caja@labrasa.com")
    return login(client, user.email)


@pytest.fixture
def waiter_headers(client, db_session, seed_tenant):
    user = create_user(db_session, seed_tenant, Roles.WAITER, "mesero@labrasa.com")
    return login(client, user.email)


@pytest.fixture
def kitchen_headers(client, db_session, seed_tenant):
    user = create_user(db_session, seed_tenant, Roles.KITCHEN, "cocina@labrasa.com")
    return login(client, user.email)


@pytest.fixture
def superadmin_user(db_session):
    return create_user(db_session, None, Roles.SUPERADMIN, "root@plataforma.com")


@pytest.fixture
def superadmin_headers(client, superadmin_user):
    return login(client, superadmin_user.email)


# =============================================================================
# Catalog, clients and tables
# =============================================================================


@pytest.fixture
def seed_category(db_session, seed_tenant):
    category = Category(tenant_id=seed_tenant.id, name="Bebidas", sort_order=1)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def seed_products(db_session, seed_tenant, seed_category):
    """Two products: one sold by unit, one by weight."""
    lemonade = create_product(
        db_session, seed_tenant, "B010", "Limonada natural",
        price_unit=Decimal("6000"), category=seed_category,
    )
    chicken = create_product(
        db_session, seed_tenant, "P001", "Pechuga de pollo",
        price_kg=Decimal("18500"), price_lb=Decimal("8400"),
    )
    return lemonade, chicken


@pytest.fixture
def seed_client(db_session, seed_tenant):
    client_row = Client(
        tenant_id=seed_tenant.id,
        name="Consumidor Final",
        phone="3109876543",
        tax_id="222222222",
    )
    db_session.add(client_row)
    db_session.commit()
    db_session.refresh(client_row)
    return client_row


@pytest.fixture
def seed_table(db_session, seed_tenant):
    table = DiningTable(tenant_id=seed_tenant.id, number=1, description="Ventana")
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table
