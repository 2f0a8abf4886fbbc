"""
Tests for dining tables, their orders and the order checkout.
"""

import pytest

from pos_api.models import DiningTable, Invoice, Order, OrderItem
from pos_api.repositories import OrderRepository


@pytest.fixture
def open_order(client, waiter_headers, seed_table):
    """The open order of table 1, as returned by the API."""
    response = client.post(f"/api/tables/{seed_table.id}/open", headers=waiter_headers)
    assert response.status_code == 200
    return response.json()


def add_item(client, headers, order_id, product, **extra):
    body = {"product_id": product.id, "quantity": 1, "unit": "UND"}
    body.update(extra)
    response = client.post(f"/api/orders/{order_id}/items", headers=headers, json=body)
    assert response.status_code == 201, response.json()
    return response.json()


class TestTables:
    """Dining table management."""

    def test_create_and_list(self, client, auth_headers, waiter_headers):
        """New tables start free and list by number."""
        for number in (3, 1):
            response = client.post("/api/tables", headers=auth_headers, json={"number": number})
            assert response.status_code == 201
            assert response.json()["status"] == "libre"

        response = client.get("/api/tables", headers=waiter_headers)
        assert [t["number"] for t in response.json()] == [1, 3]

    def test_duplicate_number(self, client, auth_headers, seed_table):
        """Table numbers are unique."""
        response = client.post("/api/tables", headers=auth_headers, json={"number": seed_table.number})
        assert response.status_code == 400

    def test_waiter_cannot_create(self, client, waiter_headers):
        """Only admins manage tables."""
        response = client.post("/api/tables", headers=waiter_headers, json={"number": 9})
        assert response.status_code == 403

    def test_update(self, client, auth_headers, seed_table):
        """Number, description and status can be edited."""
        response = client.put(
            f"/api/tables/{seed_table.id}",
            headers=auth_headers,
            json={"number": 7, "description": "Terraza", "status": "reservada"},
        )
        assert response.status_code == 200
        data = response.json()
        assert (data["number"], data["description"], data["status"]) == (7, "Terraza", "reservada")

    def test_delete_blocked_by_open_order(self, client, auth_headers, seed_table, open_order):
        """A table with an open order stays."""
        response = client.delete(f"/api/tables/{seed_table.id}", headers=auth_headers)
        assert response.status_code == 400

    def test_delete(self, client, auth_headers, seed_table):
        """A free table can be deleted."""
        response = client.delete(f"/api/tables/{seed_table.id}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get("/api/tables", headers=auth_headers).json() == []


class TestOpenTable:
    """Opening a table."""

    def test_open_marks_occupied(self, client, db_session, waiter_headers, seed_table, open_order):
        """Opening creates an order and occupies the table."""
        assert open_order["status"] == "abierto"
        assert open_order["table_number"] == 1
        assert open_order["items"] == []

        db_session.refresh(seed_table)
        assert seed_table.status == "ocupada"

        tables = client.get("/api/tables", headers=waiter_headers).json()
        assert tables[0]["open_orders"] == 1

    def test_open_reuses_order(self, client, waiter_headers, seed_table, open_order):
        """Opening again returns the same order."""
        response = client.post(f"/api/tables/{seed_table.id}/open", headers=waiter_headers)
        assert response.json()["id"] == open_order["id"]

    def test_open_unknown_table(self, client, waiter_headers):
        """Unknown tables are 404."""
        response = client.post("/api/tables/9999/open", headers=waiter_headers)
        assert response.status_code == 404


class TestOrderItems:
    """Items of an open order."""

    def test_price_defaults_from_unit(self, client, waiter_headers, seed_products, open_order):
        """The product price for the unit is used when none is sent."""
        _, chicken = seed_products
        item = add_item(client, waiter_headers, open_order["id"], chicken, quantity=0.5, unit="kg")
        assert item["unit"] == "KG"
        assert item["price"] == 18500
        assert item["subtotal"] == 9250
        assert item["status"] == "pendiente"

    def test_explicit_price(self, client, waiter_headers, seed_products, open_order):
        """An explicit price overrides the catalog."""
        lemonade, _ = seed_products
        item = add_item(client, waiter_headers, open_order["id"], lemonade, quantity=2, price=5500)
        assert item["subtotal"] == 11000

    def test_invalid_unit(self, client, waiter_headers, seed_products, open_order):
        """Units are KG, UND or LB."""
        lemonade, _ = seed_products
        response = client.post(
            f"/api/orders/{open_order['id']}/items",
            headers=waiter_headers,
            json={"product_id": lemonade.id, "quantity": 1, "unit": "GAL"},
        )
        assert response.status_code == 400

    def test_quantity_beyond_three_decimals(self, client, waiter_headers, seed_products, open_order):
        """Quantities finer than the column are rejected."""
        _, chicken = seed_products
        response = client.post(
            f"/api/orders/{open_order['id']}/items",
            headers=waiter_headers,
            json={"product_id": chicken.id, "quantity": "0.0004", "unit": "KG"},
        )
        assert response.status_code == 422

    def test_weighed_item_subtotal(self, client, db_session, waiter_headers, seed_products, open_order):
        """A weighed item keeps subtotal = quantity x price once stored."""
        _, chicken = seed_products
        item = add_item(client, waiter_headers, open_order["id"], chicken, quantity="1.255", unit="KG")
        assert item["subtotal"] == 23217.5

        db_session.expire_all()
        stored = db_session.get(OrderItem, item["id"])
        assert stored.quantity * stored.price == stored.subtotal

    def test_order_total(self, client, waiter_headers, seed_products, open_order):
        """The order total adds up its items."""
        lemonade, chicken = seed_products
        add_item(client, waiter_headers, open_order["id"], lemonade, quantity=2)
        add_item(client, waiter_headers, open_order["id"], chicken, quantity=1, unit="LB")

        order = client.get(f"/api/orders/{open_order['id']}", headers=waiter_headers).json()
        assert len(order["items"]) == 2
        assert order["total"] == 20400

    def test_delete_pending_item(self, client, db_session, waiter_headers, seed_products, open_order):
        """Pending items can be removed."""
        lemonade, _ = seed_products
        item = add_item(client, waiter_headers, open_order["id"], lemonade)

        response = client.delete(f"/api/orders/items/{item['id']}", headers=waiter_headers)
        assert response.status_code == 200
        assert db_session.get(OrderItem, item["id"]) is None

    def test_sent_item_cannot_be_deleted(self, client, waiter_headers, seed_products, open_order):
        """Items the kitchen has cannot be removed."""
        lemonade, _ = seed_products
        item = add_item(client, waiter_headers, open_order["id"], lemonade)
        client.put(f"/api/orders/items/{item['id']}/send", headers=waiter_headers)

        response = client.delete(f"/api/orders/items/{item['id']}", headers=waiter_headers)
        assert response.status_code == 400

    def test_send_item(self, client, waiter_headers, seed_products, open_order):
        """Sending stamps the item once."""
        lemonade, _ = seed_products
        item = add_item(client, waiter_headers, open_order["id"], lemonade)

        response = client.put(f"/api/orders/items/{item['id']}/send", headers=waiter_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "enviado"
        assert response.json()["sent_at"] is not None

        again = client.put(f"/api/orders/items/{item['id']}/send", headers=waiter_headers)
        assert again.status_code == 400

    def test_send_order(self, client, waiter_headers, kitchen_headers, seed_products, open_order):
        """Sending the order sends only the pending items."""
        lemonade, chicken = seed_products
        first = add_item(client, waiter_headers, open_order["id"], lemonade)
        add_item(client, waiter_headers, open_order["id"], chicken, unit="KG")
        client.put(f"/api/orders/items/{first['id']}/send", headers=waiter_headers)

        response = client.put(f"/api/orders/{open_order['id']}/send", headers=waiter_headers)
        assert response.json() == {"order_id": open_order["id"], "sent": 1}

        queue = client.get("/api/kitchen/queue", headers=kitchen_headers).json()
        assert len(queue) == 2

    def test_serve_only_ready_items(self, client, waiter_headers, kitchen_headers, seed_products, open_order):
        """Only ready items can be served."""
        lemonade, _ = seed_products
        item = add_item(client, waiter_headers, open_order["id"], lemonade)
        client.put(f"/api/orders/items/{item['id']}/send", headers=waiter_headers)

        early = client.put(
            f"/api/orders/items/{item['id']}/status", headers=waiter_headers, json={"status": "servido"}
        )
        assert early.status_code == 400

        client.put(f"/api/kitchen/items/{item['id']}/status", headers=kitchen_headers, json={"status": "listo"})
        response = client.put(
            f"/api/orders/items/{item['id']}/status", headers=waiter_headers, json={"status": "servido"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "servido"
        assert response.json()["served_at"] is not None


class TestMoveAndRelease:
    """Moving and releasing orders."""

    def test_move_order(self, client, db_session, waiter_headers, seed_tenant, seed_table, open_order):
        """Moving frees the old table and occupies the new one."""
        target = DiningTable(tenant_id=seed_tenant.id, number=2)
        db_session.add(target)
        db_session.commit()

        response = client.put(
            f"/api/orders/{open_order['id']}/move",
            headers=waiter_headers,
            json={"target_table_id": target.id},
        )
        assert response.status_code == 200
        assert response.json()["table_number"] == 2

        db_session.refresh(seed_table)
        db_session.refresh(target)
        assert seed_table.status == "libre"
        assert target.status == "ocupada"

    def test_move_to_busy_table(self, client, db_session, waiter_headers, seed_tenant, open_order):
        """The target table must be free."""
        target = DiningTable(tenant_id=seed_tenant.id, number=2, status="reservada")
        db_session.add(target)
        db_session.commit()

        response = client.put(
            f"/api/orders/{open_order['id']}/move",
            headers=waiter_headers,
            json={"target_table_id": target.id},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "La mesa destino no está libre"

    def test_release_closes_order(self, client, db_session, waiter_headers, seed_table, open_order):
        """Releasing closes the order without an invoice."""
        response = client.put(f"/api/tables/{seed_table.id}/release", headers=waiter_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "libre"
        assert db_session.get(Order, open_order["id"]).status == "cerrado"

    def test_release_blocked_by_kitchen(self, client, waiter_headers, seed_products, seed_table, open_order):
        """A table with food in the kitchen cannot be released."""
        lemonade, _ = seed_products
        item = add_item(client, waiter_headers, open_order["id"], lemonade)
        client.put(f"/api/orders/items/{item['id']}/send", headers=waiter_headers)

        response = client.put(f"/api/tables/{seed_table.id}/release", headers=waiter_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "La mesa tiene productos pendientes en cocina"


class TestOrderInvoice:
    """Checking out an order."""

    def test_invoice_order(self, client, db_session, waiter_headers, cashier_headers, seed_client, seed_products, seed_table, open_order):
        """Checkout invoices every item and frees the table."""
        lemonade, chicken = seed_products
        add_item(client, waiter_headers, open_order["id"], lemonade, quantity=2)
        add_item(client, waiter_headers, open_order["id"], chicken, quantity=1, unit="KG")

        response = client.post(
            f"/api/orders/{open_order['id']}/invoice",
            headers=cashier_headers,
            json={
                "client_id": seed_client.id,
                "payments": [
                    {"method": "efectivo", "amount": 15000},
                    {"method": "transferencia", "amount": 15500},
                ],
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["total"] == 30500
        assert data["payment_method"] == "mixto"

        order = db_session.get(Order, open_order["id"])
        assert order.status == "facturado"
        assert order.invoice_id == data["id"]
        assert db_session.get(Invoice, data["id"]).order_id == order.id
        db_session.refresh(seed_table)
        assert seed_table.status == "libre"

    def test_empty_order(self, client, cashier_headers, seed_client, open_order):
        """An order without items cannot be invoiced."""
        response = client.post(
            f"/api/orders/{open_order['id']}/invoice",
            headers=cashier_headers,
            json={"client_id": seed_client.id},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "El pedido no tiene productos"

    def test_bad_payment_keeps_order_open(self, client, db_session, waiter_headers, cashier_headers, seed_client, seed_products, open_order):
        """A failed checkout leaves the order open."""
        lemonade, _ = seed_products
        add_item(client, waiter_headers, open_order["id"], lemonade)

        response = client.post(
            f"/api/orders/{open_order['id']}/invoice",
            headers=cashier_headers,
            json={"client_id": seed_client.id, "payments": [{"method": "efectivo", "amount": 1}]},
        )
        assert response.status_code == 400
        assert db_session.get(Order, open_order["id"]).status == "abierto"
        assert db_session.query(Invoice).count() == 0

    def test_waiter_cannot_checkout(self, client, waiter_headers, seed_client, open_order):
        """Checkout needs billing roles."""
        response = client.post(
            f"/api/orders/{open_order['id']}/invoice",
            headers=waiter_headers,
            json={"client_id": seed_client.id},
        )
        assert response.status_code == 403

    def test_product_on_open_order_cannot_be_deleted(self, client, auth_headers, waiter_headers, cashier_headers, seed_client, seed_products, open_order):
        """A product on an open order cannot be deleted until it is invoiced."""
        lemonade, _ = seed_products
        item = add_item(client, waiter_headers, open_order["id"], lemonade)
        client.put(f"/api/orders/items/{item['id']}/send", headers=waiter_headers)

        response = client.delete(f"/api/products/{lemonade.id}", headers=auth_headers)
        assert response.status_code == 400
        assert "pedidos abiertos" in response.json()["detail"]

        checkout = client.post(
            f"/api/orders/{open_order['id']}/invoice",
            headers=cashier_headers,
            json={"client_id": seed_client.id},
        )
        assert checkout.status_code == 201

        response = client.delete(f"/api/products/{lemonade.id}", headers=auth_headers)
        assert response.status_code == 200


class TestOrderRepository:
    """Order queries."""

    def test_open_items_for_product(self, client, db_session, waiter_headers, cashier_headers, seed_tenant, seed_client, seed_products, open_order):
        """Only items of open orders count."""
        lemonade, chicken = seed_products
        add_item(client, waiter_headers, open_order["id"], lemonade, quantity=2)
        add_item(client, waiter_headers, open_order["id"], lemonade)

        repo = OrderRepository(db_session)
        assert repo.count_open_items_for_product(lemonade.id, seed_tenant.id) == 2
        assert repo.count_open_items_for_product(chicken.id, seed_tenant.id) == 0

        client.post(
            f"/api/orders/{open_order['id']}/invoice",
            headers=cashier_headers,
            json={"client_id": seed_client.id},
        )
        assert repo.count_open_items_for_product(lemonade.id, seed_tenant.id) == 0

    def test_find_all_lists_tenant_orders(self, db_session, seed_tenant, other_tenant, open_order):
        """Listing is scoped to the tenant."""
        repo = OrderRepository(db_session)
        assert [o.id for o in repo.find_all(seed_tenant.id)] == [open_order["id"]]
        assert repo.find_all(other_tenant.id) == []
