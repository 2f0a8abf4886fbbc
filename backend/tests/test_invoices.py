"""
Tests for invoicing with split payments.
"""

from decimal import Decimal

import pytest

from pos_api.models import Client, Invoice, InvoicePayment, PlanLimit
from pos_api.services.domain.invoice_service import line_subtotal, normalize_payments
from pos_api.services.domain.plan_limit_service import invalidate_plan_cache
from pos_shared.utils.billing_schemas import PaymentInput
from pos_shared.utils.exceptions import PaymentAmountError, ValidationError

from .conftest import create_user, login


def invoice_body(client_row, lemonade, quantity=2, **extra):
    body = {
        "client_id": client_row.id,
        "items": [
            {
                "product_id": lemonade.id,
                "quantity": quantity,
                "unit": "UND",
                "price": 6000,
            }
        ],
    }
    body.update(extra)
    return body


class TestNormalizePayments:
    """Payment normalization rules."""

    def test_single_legacy_method(self):
        """The legacy method pays the whole total."""
        payments, method = normalize_payments(None, " Tarjeta ", Decimal("12000"))
        assert method == "tarjeta"
        assert [(p.method, p.amount) for p in payments] == [("tarjeta", Decimal("12000"))]

    @pytest.mark.parametrize("legacy", [None, "", "mixto", "bitcoin"])
    def test_legacy_fallback_to_cash(self, legacy):
        """Missing, mixed or unknown legacy methods fall back to cash."""
        payments, method = normalize_payments([], legacy, Decimal("5000"))
        assert method == "efectivo"
        assert payments[0].amount == Decimal("5000")

    def test_split_is_mixto(self):
        """Two valid entries make a mixed invoice."""
        payments, method = normalize_payments(
            [
                PaymentInput(method="EFECTIVO", amount="7000"),
                PaymentInput(method="transferencia", amount=Decimal("5000"), reference=" TRX-991 "),
            ],
            None,
            Decimal("12000"),
        )
        assert method == "mixto"
        assert payments[1].reference == "TRX-991"

    def test_invalid_entries_dropped(self):
        """Unknown methods and non-positive amounts are dropped."""
        payments, method = normalize_payments(
            [
                PaymentInput(method="cheque", amount="1000"),
                PaymentInput(method="efectivo", amount="0"),
                PaymentInput(method="tarjeta", amount="abc"),
                PaymentInput(method="efectivo", amount="12000"),
            ],
            None,
            Decimal("12000"),
        )
        assert method == "efectivo"
        assert len(payments) == 1

    def test_no_valid_entries(self):
        """Entries that all get dropped are an error."""
        with pytest.raises(ValidationError) as exc_info:
            normalize_payments([PaymentInput(method="cheque", amount="100")], None, Decimal("100"))
        assert exc_info.value.detail == "Debe indicar al menos un pago válido"

    def test_one_cent_tolerance(self):
        """A one cent gap is accepted."""
        payments, _ = normalize_payments(
            [PaymentInput(method="efectivo", amount="99.99")], None, Decimal("100.00")
        )
        assert payments[0].amount == Decimal("99.99")

    def test_mismatch(self):
        """A two cent gap is not."""
        with pytest.raises(PaymentAmountError) as exc_info:
            normalize_payments(
                [PaymentInput(method="efectivo", amount="99.98")], None, Decimal("100.00")
            )
        assert exc_info.value.detail == "La suma de pagos no coincide con el total"


class TestLineSubtotal:
    """Line subtotal checks."""

    def test_computed_when_missing(self):
        """Quantity times price, rounded to cents."""
        assert line_subtotal(Decimal("0.75"), Decimal("18500"), None) == Decimal("13875.00")

    def test_given_within_tolerance(self):
        """A client subtotal within a cent is kept."""
        assert line_subtotal(Decimal("3"), Decimal("3.33"), Decimal("10.00")) == Decimal("10.00")

    def test_given_mismatch(self):
        """A client subtotal further off is rejected."""
        with pytest.raises(ValidationError):
            line_subtotal(Decimal("2"), Decimal("6000"), Decimal("11000"))


class TestCreateInvoice:
    """Invoice creation endpoint."""

    def test_create_single_payment(self, client, db_session, cashier_headers, seed_client, seed_products):
        """One payment row is written for a legacy method."""
        lemonade, _ = seed_products
        response = client.post(
            "/api/invoices",
            headers=cashier_headers,
            json=invoice_body(seed_client, lemonade, total=12000, payment_method="transferencia"),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["total"] == 12000
        assert data["payment_method"] == "transferencia"

        payments = db_session.query(InvoicePayment).filter_by(invoice_id=data["id"]).all()
        assert [(p.method, p.amount) for p in payments] == [("transferencia", Decimal("12000"))]

    def test_create_mixed_payment(self, client, db_session, cashier_headers, seed_client, seed_products):
        """Split payments are stored and add up to the total."""
        lemonade, chicken = seed_products
        body = {
            "client_id": seed_client.id,
            "items": [
                {"product_id": lemonade.id, "quantity": 1, "unit": "UND", "price": 6000},
                {"product_id": chicken.id, "quantity": 2, "unit": "LB", "price": 8400, "subtotal": 16800},
            ],
            "payments": [
                {"method": "efectivo", "amount": 10000},
                {"method": "tarjeta", "amount": 12800, "reference": "VOUCHER-1"},
            ],
        }
        response = client.post("/api/invoices", headers=cashier_headers, json=body)
        assert response.status_code == 201
        assert response.json()["payment_method"] == "mixto"
        assert response.json()["total"] == 22800

        invoice = db_session.get(Invoice, response.json()["id"])
        assert len(invoice.items) == 2
        assert sum(p.amount for p in invoice.payments) == invoice.total

    def test_payments_must_match_total(self, client, db_session, cashier_headers, seed_client, seed_products):
        """Short payments roll the whole invoice back."""
        lemonade, _ = seed_products
        body = invoice_body(seed_client, lemonade, payments=[{"method": "efectivo", "amount": 10000}])
        response = client.post("/api/invoices", headers=cashier_headers, json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "La suma de pagos no coincide con el total"
        assert db_session.query(Invoice).count() == 0

    def test_total_mismatch(self, client, cashier_headers, seed_client, seed_products):
        """A client total must match the lines."""
        lemonade, _ = seed_products
        response = client.post(
            "/api/invoices", headers=cashier_headers, json=invoice_body(seed_client, lemonade, total=13000)
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "El total no coincide con la suma de los productos"

    def test_requires_products(self, client, cashier_headers, seed_client):
        """An invoice needs at least one line."""
        response = client.post(
            "/api/invoices", headers=cashier_headers, json={"client_id": seed_client.id, "items": []}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Debe incluir al menos un producto"

    def test_invalid_quantity(self, client, cashier_headers, seed_client, seed_products):
        """Zero quantities are rejected."""
        lemonade, _ = seed_products
        response = client.post(
            "/api/invoices", headers=cashier_headers, json=invoice_body(seed_client, lemonade, quantity=0)
        )
        assert response.status_code == 400

    def test_quantity_beyond_three_decimals(self, client, db_session, cashier_headers, seed_client, seed_products):
        """Quantities finer than the column are rejected."""
        lemonade, _ = seed_products
        response = client.post(
            "/api/invoices", headers=cashier_headers, json=invoice_body(seed_client, lemonade, quantity="0.0004")
        )
        assert response.status_code == 422
        assert db_session.query(Invoice).count() == 0

    def test_price_beyond_two_decimals(self, client, cashier_headers, seed_client, seed_products):
        """Prices finer than a cent are rejected."""
        lemonade, _ = seed_products
        body = invoice_body(seed_client, lemonade)
        body["items"][0]["price"] = "6000.005"
        response = client.post("/api/invoices", headers=cashier_headers, json=body)
        assert response.status_code == 422

    def test_stored_line_matches_quantity_times_price(self, client, db_session, cashier_headers, seed_client, seed_products):
        """The stored line still satisfies subtotal = quantity x price."""
        lemonade, _ = seed_products
        response = client.post(
            "/api/invoices", headers=cashier_headers, json=invoice_body(seed_client, lemonade, quantity="0.335")
        )
        assert response.status_code == 201
        assert response.json()["total"] == 2010

        db_session.expire_all()
        line = db_session.get(Invoice, response.json()["id"]).items[0]
        assert line.quantity == Decimal("0.335")
        assert line.quantity * line.unit_price == line.subtotal

    def test_foreign_client(self, client, db_session, cashier_headers, other_tenant, seed_products):
        """Clients of another restaurant look missing."""
        foreign = Client(tenant_id=other_tenant.id, name="Cliente ajeno")
        db_session.add(foreign)
        db_session.commit()

        lemonade, _ = seed_products
        response = client.post(
            "/api/invoices", headers=cashier_headers, json=invoice_body(foreign, lemonade)
        )
        assert response.status_code == 404

    def test_waiter_cannot_invoice(self, client, waiter_headers, seed_client, seed_products):
        """Invoicing needs billing roles."""
        lemonade, _ = seed_products
        response = client.post(
            "/api/invoices", headers=waiter_headers, json=invoice_body(seed_client, lemonade)
        )
        assert response.status_code == 403

    def test_kitchen_fan_out(self, client, cashier_headers, kitchen_headers, seed_client, seed_products, seed_table):
        """Lines marked for the kitchen show in its queue."""
        lemonade, _ = seed_products
        body = invoice_body(seed_client, lemonade, table_id=seed_table.id)
        body["items"][0]["send_to_kitchen"] = True
        body["items"][0]["note"] = "sin hielo"

        response = client.post("/api/invoices", headers=cashier_headers, json=body)
        assert response.status_code == 201

        queue = client.get("/api/kitchen/queue", headers=kitchen_headers).json()
        assert len(queue) == 1
        assert queue[0]["status"] == "enviado"
        assert queue[0]["table_number"] == 1
        assert queue[0]["note"] == "sin hielo"

    def test_monthly_invoice_limit(self, client, db_session, cashier_headers, seed_tenant, seed_client, seed_products):
        """The plan caps invoices per month."""
        db_session.get(PlanLimit, seed_tenant.plan).max_invoices_per_month = 1
        db_session.commit()
        invalidate_plan_cache()

        lemonade, _ = seed_products
        first = client.post("/api/invoices", headers=cashier_headers, json=invoice_body(seed_client, lemonade))
        assert first.status_code == 201

        second = client.post("/api/invoices", headers=cashier_headers, json=invoice_body(seed_client, lemonade))
        assert second.status_code == 403
        assert second.json()["detail"]["limit"] == 1
        assert second.json()["detail"]["current"] == 1


class TestInvoiceQueries:
    """Invoice listing, detail, receipt and stats."""

    @pytest.fixture
    def invoice_id(self, client, cashier_headers, seed_client, seed_products):
        """A two line invoice paid in cash and card."""
        lemonade, chicken = seed_products
        body = {
            "client_id": seed_client.id,
            "items": [
                {"product_id": lemonade.id, "quantity": 2, "unit": "UND", "price": 6000},
                {"product_id": chicken.id, "quantity": 1, "unit": "KG", "price": 18500},
            ],
            "payments": [
                {"method": "efectivo", "amount": 20000},
                {"method": "tarjeta", "amount": 10500},
            ],
            "notes": "Mesa del fondo",
        }
        response = client.post("/api/invoices", headers=cashier_headers, json=body)
        assert response.status_code == 201
        return response.json()["id"]

    def test_list(self, client, cashier_headers, invoice_id):
        """Invoices list newest first with their client."""
        response = client.get("/api/invoices", headers=cashier_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["total"] == 1
        assert data["items"][0]["id"] == invoice_id
        assert data["items"][0]["client_name"] == "Consumidor Final"

    def test_detail(self, client, cashier_headers, invoice_id):
        """Detail carries lines and payments."""
        response = client.get(f"/api/invoices/{invoice_id}", headers=cashier_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["invoice"]["total"] == 30500
        assert data["invoice"]["payment_method"] == "mixto"
        assert data["invoice"]["notes"] == "Mesa del fondo"
        assert data["client"]["name"] == "Consumidor Final"
        assert {p["method"] for p in data["payments"]} == {"efectivo", "tarjeta"}
        assert [p["name"] for p in data["products"]] == ["Limonada natural", "Pechuga de pollo"]

    def test_detail_other_tenant(self, client, db_session, other_tenant, invoice_id):
        """Foreign invoices look missing."""
        create_user(db_session, other_tenant, "admin", "admin@elfogon.com")
        headers = login(client, "admin@elfogon.com")
        assert client.get(f"/api/invoices/{invoice_id}", headers=headers).status_code == 404

    @pytest.mark.parametrize(
        "return_to,expected",
        [
            ("/mesas", "/mesas"),
            ("https://evil.example.com", "/"),
            ("//evil.example.com", "/"),
            (None, "/"),
        ],
    )
    def test_receipt(self, client, cashier_headers, invoice_id, return_to, expected):
        """The receipt return link only points inside the app."""
        params = {"return_to": return_to} if return_to else {}
        response = client.get(
            f"/api/invoices/{invoice_id}/receipt", headers=cashier_headers, params=params
        )
        assert response.status_code == 200
        data = response.json()
        assert data["business"]["name"] == "Restaurante la-brasa"
        assert data["business"]["tax_id"] == "900123456-7"
        assert data["return_to"] == expected

    def test_stats(self, client, cashier_headers, invoice_id):
        """Totals grouped by payment method."""
        response = client.get("/api/invoices/stats", headers=cashier_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["total"] == 30500
        assert data["by_payment_method"] == {"mixto": 30500}

    def test_stats_out_of_range_date(self, client, cashier_headers, invoice_id):
        """A date_to at the end of the calendar is a 400."""
        response = client.get("/api/invoices/stats?date_to=9999-12-31", headers=cashier_headers)
        assert response.status_code == 400

    def test_top_products(self, client, cashier_headers, invoice_id):
        """Best sellers by quantity."""
        response = client.get("/api/invoices/top-products", headers=cashier_headers)
        assert response.status_code == 200
        top = response.json()
        assert top[0]["name"] == "Limonada natural"
        assert top[0]["quantity"] == 2
        assert top[0]["invoices"] == 1
