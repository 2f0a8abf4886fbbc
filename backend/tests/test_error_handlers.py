"""
Tests for the central database and fallback exception handlers.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from pos_api.core.error_handlers import classify_integrity_error, register_exception_handlers
from pos_shared.config.constants import ErrorMessages
from pos_shared.config.settings import settings
from pos_shared.utils.exceptions import NotFoundError


class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__("constraint violation")
        self.sqlstate = sqlstate


def _integrity(orig):
    return IntegrityError("INSERT INTO products ...", {}, orig)


class TestClassifyIntegrityError:
    """Constraint violations are told apart by SQLSTATE, then by message."""

    def test_unique_by_sqlstate(self):
        """PostgreSQL 23505 is a unique violation."""
        assert classify_integrity_error(_integrity(_PgError("23505"))) == "unique"

    def test_foreign_key_by_sqlstate(self):
        """PostgreSQL 23503 is a foreign key violation."""
        assert classify_integrity_error(_integrity(_PgError("23503"))) == "foreign_key"

    def test_sqlite_messages(self):
        """SQLite carries no SQLSTATE, so the message decides."""
        unique = _integrity(Exception("UNIQUE constraint failed: products.code"))
        foreign = _integrity(Exception("FOREIGN KEY constraint failed"))
        assert classify_integrity_error(unique) == "unique"
        assert classify_integrity_error(foreign) == "foreign_key"

    def test_other(self):
        """Check constraints are neither unique nor foreign key."""
        check = _integrity(Exception("CHECK constraint failed: ck_order_item_quantity_positive"))
        assert classify_integrity_error(check) == "other"


class TestExceptionHandlers:
    """Errors that escape the services become JSON with Spanish messages."""

    @pytest.fixture
    def app_client(self):
        """App whose routes raise each kind of error."""
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/duplicate")
        def duplicate():
            raise _integrity(Exception("UNIQUE constraint failed: clients.document"))

        @app.get("/related")
        def related():
            raise _integrity(_PgError("23503"))

        @app.get("/unavailable")
        def unavailable():
            raise OperationalError("SELECT 1", {}, Exception("could not connect to server"))

        @app.get("/database")
        def database():
            raise SQLAlchemyError("mapper failure")

        @app.get("/boom")
        def boom():
            raise RuntimeError("algo salió mal")

        @app.get("/missing")
        def missing():
            raise NotFoundError("Cliente", 7)

        return TestClient(app, raise_server_exceptions=False)

    def test_unique_violation_is_409(self, app_client):
        """A duplicate row returns 409."""
        response = app_client.get("/duplicate")
        assert response.status_code == 409
        assert response.json() == {"detail": ErrorMessages.DUPLICATE_RECORD}

    def test_foreign_key_violation_is_400(self, app_client):
        """A row still referenced elsewhere returns 400."""
        response = app_client.get("/related")
        assert response.status_code == 400
        assert response.json() == {"detail": ErrorMessages.FK_VIOLATION}

    def test_operational_error_is_503(self, app_client):
        """A lost database connection returns 503 with Retry-After."""
        response = app_client.get("/unavailable")
        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"
        assert response.json() == {"detail": ErrorMessages.DB_UNAVAILABLE}

    def test_other_database_error_is_500(self, app_client):
        """Any other SQLAlchemy error returns a generic 500."""
        response = app_client.get("/database")
        assert response.status_code == 500
        assert response.json() == {"detail": ErrorMessages.INTERNAL}

    def test_unhandled_error_shows_text_outside_production(self, app_client, monkeypatch):
        """Development responses carry the exception text."""
        monkeypatch.setattr(settings, "environment", "development")
        response = app_client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {"detail": "algo salió mal"}

    def test_unhandled_error_hidden_in_production(self, app_client, monkeypatch):
        """Production responses never leak the exception text."""
        monkeypatch.setattr(settings, "environment", "production")
        response = app_client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {"detail": ErrorMessages.INTERNAL}

    def test_app_exceptions_keep_their_status(self, app_client):
        """Domain errors are HTTPExceptions and pass through untouched."""
        response = app_client.get("/missing")
        assert response.status_code == 404
