"""
Tests for sales reports, the sales list and its Excel export.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from io import BytesIO

import pytest
from openpyxl import load_workbook

from pos_api.models import Client, Invoice, InvoicePayment
from pos_api.services.domain.report_service import build_invoice_filters, resolve_range
from pos_shared.utils.exceptions import ValidationError


def today():
    return datetime.now(timezone.utc).date()


@pytest.fixture
def sales(client, db_session, cashier_headers, seed_tenant, seed_client, seed_products):
    """
    Three invoices today (efectivo 12000, mixto 24500, transferencia 6000)
    and one efectivo invoice from two months ago.
    """
    lemonade, chicken = seed_products
    ana = Client(tenant_id=seed_tenant.id, name="Ana Gómez")
    db_session.add(ana)
    db_session.commit()

    bodies = [
        {
            "client_id": seed_client.id,
            "items": [{"product_id": lemonade.id, "quantity": 2, "unit": "UND", "price": 6000}],
            "payment_method": "efectivo",
        },
        {
            "client_id": seed_client.id,
            "items": [
                {"product_id": chicken.id, "quantity": 1, "unit": "KG", "price": 18500},
                {"product_id": lemonade.id, "quantity": 1, "unit": "UND", "price": 6000},
            ],
            "payments": [
                {"method": "efectivo", "amount": 4500},
                {"method": "tarjeta", "amount": 20000},
            ],
        },
        {
            "client_id": ana.id,
            "items": [{"product_id": lemonade.id, "quantity": 1, "unit": "UND", "price": 6000}],
            "payment_method": "transferencia",
        },
    ]
    for body in bodies:
        response = client.post("/api/invoices", headers=cashier_headers, json=body)
        assert response.status_code == 201

    old = Invoice(
        tenant_id=seed_tenant.id,
        client_id=seed_client.id,
        date=datetime.now(timezone.utc) - timedelta(days=60),
        total=Decimal("99000"),
        payment_method="efectivo",
    )
    old.payments = [InvoicePayment(method="efectivo", amount=Decimal("99000"))]
    db_session.add(old)
    db_session.commit()


class TestDateRange:
    """Report date range parsing."""

    def test_defaults_to_last_thirty_days(self):
        """No dates means the last 30 days."""
        start, end = resolve_range(None, None)
        assert end == today()
        assert start == today() - timedelta(days=30)

    def test_no_default(self):
        """Without a default both ends stay open."""
        assert resolve_range(None, None, default_days=None) == (None, None)

    def test_half_open_bounds(self):
        """date_to includes its whole day."""
        filters, _, _ = build_invoice_filters("2026-03-01", "2026-03-31")
        assert filters.date_from == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert filters.date_to == datetime(2026, 4, 1, tzinfo=timezone.utc)

    def test_bad_format(self):
        """Dates must be YYYY-MM-DD."""
        with pytest.raises(ValidationError):
            resolve_range("01/03/2026", None)

    def test_inverted_range(self):
        """date_from cannot follow date_to."""
        with pytest.raises(ValidationError):
            resolve_range("2026-03-10", "2026-03-01")

    def test_last_calendar_day_rejected(self):
        """The upper bound of 9999-12-31 does not exist."""
        with pytest.raises(ValidationError) as exc:
            build_invoice_filters("2024-01-01", "9999-12-31")
        assert exc.value.status_code == 400

    def test_default_start_clamped_to_first_day(self):
        """The default start never goes before the first calendar day."""
        start, end = resolve_range(None, "0001-01-05")
        assert start == date.min
        assert end == date(1, 1, 5)

    def test_unknown_payment_method(self):
        """Unknown payment filters are rejected."""
        with pytest.raises(ValidationError):
            build_invoice_filters(payment_method="bitcoin")


class TestReports:
    """Report endpoints."""

    def test_summary(self, client, cashier_headers, sales):
        """Count, total, average, min and max for the default range."""
        response = client.get("/api/reports/summary", headers=cashier_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["date_to"] == today().isoformat()
        assert data["count"] == 3
        assert data["total"] == 42500
        assert data["average"] == 14166.67
        assert (data["min"], data["max"]) == (6000, 24500)

    def test_summary_explicit_range(self, client, cashier_headers, sales):
        """An explicit date_from widens the range."""
        date_from = (today() - timedelta(days=90)).isoformat()
        response = client.get(
            f"/api/reports/summary?date_from={date_from}", headers=cashier_headers
        )
        assert response.json()["count"] == 4

    def test_summary_empty(self, client, cashier_headers):
        """No invoices means zeros."""
        data = client.get("/api/reports/summary", headers=cashier_headers).json()
        assert (data["count"], data["total"], data["average"]) == (0, 0, 0)

    def test_payment_distribution_splits_mixed(self, client, cashier_headers, sales):
        """Mixed invoices count under each payment method."""
        response = client.get("/api/reports/payment-distribution", headers=cashier_headers)
        rows = {r["method"]: (r["count"], r["total"]) for r in response.json()}
        assert rows == {
            "tarjeta": (1, 20000),
            "efectivo": (2, 16500),
            "transferencia": (1, 6000),
        }
        assert [r["method"] for r in response.json()] == ["tarjeta", "efectivo", "transferencia"]

    def test_payment_distribution_without_payment_rows(self, client, db_session, cashier_headers, seed_tenant, seed_client):
        """Invoices without payment rows count under their own method."""
        db_session.add(
            Invoice(
                tenant_id=seed_tenant.id,
                client_id=seed_client.id,
                total=Decimal("8000"),
                payment_method="tarjeta",
            )
        )
        db_session.commit()

        response = client.get("/api/reports/payment-distribution", headers=cashier_headers)
        assert response.json() == [{"method": "tarjeta", "count": 1, "total": 8000}]

    def test_sales_by_day(self, client, cashier_headers, sales):
        """One row per day with sales."""
        response = client.get("/api/reports/sales-by-day", headers=cashier_headers)
        assert response.json() == [{"date": today().isoformat(), "count": 3, "total": 42500}]

    def test_top_products(self, client, cashier_headers, sales):
        """Best sellers in the range."""
        top = client.get("/api/reports/top-products", headers=cashier_headers).json()
        assert [(p["name"], p["quantity"], p["invoices"]) for p in top] == [
            ("Limonada natural", 4, 3),
            ("Pechuga de pollo", 1, 1),
        ]

    def test_top_clients(self, client, cashier_headers, sales):
        """Best clients in the range."""
        top = client.get("/api/reports/top-clients", headers=cashier_headers).json()
        assert [(c["name"], c["invoices"], c["total_spent"]) for c in top] == [
            ("Consumidor Final", 2, 36500),
            ("Ana Gómez", 1, 6000),
        ]

    @pytest.mark.parametrize(
        "query,count,total",
        [
            ("q=ana", 1, 6000),
            ("payment_method=mixto", 1, 24500),
            ("payment_method=EFECTIVO", 1, 12000),
            ("amount_min=10000&amount_max=20000", 1, 12000),
        ],
    )
    def test_filters(self, client, cashier_headers, sales, query, count, total):
        """Each filter narrows the summary."""
        data = client.get(f"/api/reports/summary?{query}", headers=cashier_headers).json()
        assert (data["count"], data["total"]) == (count, total)

    @pytest.mark.parametrize(
        "query",
        [
            "date_from=2026-13-01",
            "date_from=2026-03-10&date_to=2026-03-01",
            "payment_method=bitcoin",
            "amount_min=500&amount_max=100",
            "date_from=2024-01-01&date_to=9999-12-31",
        ],
    )
    def test_invalid_filters(self, client, cashier_headers, query):
        """Bad filter values are a 400."""
        response = client.get(f"/api/reports/summary?{query}", headers=cashier_headers)
        assert response.status_code == 400

    def test_waiter_forbidden(self, client, waiter_headers):
        """Reports need billing roles."""
        response = client.get("/api/reports/summary", headers=waiter_headers)
        assert response.status_code == 403


class TestSales:
    """Sales list and export."""

    def test_list_with_totals(self, client, cashier_headers, sales):
        """The page comes with totals over the whole range."""
        response = client.get("/api/sales", headers=cashier_headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 3
        assert data["totals"] == {
            "efectivo": 16500,
            "transferencia": 6000,
            "tarjeta": 20000,
            "general": 42500,
        }

    def test_export(self, client, cashier_headers, sales):
        """The export has a row per invoice."""
        response = client.get("/api/sales/export", headers=cashier_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert "ventas_" in response.headers["content-disposition"]

        sheet = load_workbook(BytesIO(response.content)).active
        rows = list(sheet.iter_rows(values_only=True))
        assert rows[0] == ("Factura #", "Fecha", "Cliente", "Forma de Pago", "Total")
        assert {row[3] for row in rows[1:4]} == {"efectivo", "mixto", "transferencia"}
        assert rows[-1][3:] == ("Total General", 42500)

    def test_export_forbidden_for_kitchen(self, client, kitchen_headers):
        """Kitchen staff cannot export."""
        assert client.get("/api/sales/export", headers=kitchen_headers).status_code == 403
