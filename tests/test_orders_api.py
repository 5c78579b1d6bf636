"""Tests for checkout and order queries."""

from decimal import Decimal

from sqlalchemy import DateTime, update
from sqlmodel import select

from conftest import balance_of, headers_for, ledger_sum, order_payload
from primavera.models import Customer, Order, OrderItem, PointsTransaction, Product, utcnow
from primavera.services import ordering
from primavera.services.pricing import price_order


class TestCheckout:
    def test_customer_order_with_points(self, client, session, menu, marco, marco_headers):
        response = client.post(
            "/api/orders", json=order_payload(menu, use_points=500), headers=marco_headers
        )
        assert response.status_code == 201
        data = response.json()

        assert Decimal(data["total_price"]) == Decimal("15.30")
        assert data["points_used"] == 500
        assert data["points_earned"] == 153
        assert data["status"] == "pending"
        assert data["customer_id"] == marco
        assert data["guest_email"] is None
        assert len(data["items"]) == 2

        # Debit booked together with the balance change
        assert balance_of(session, marco) == 300
        assert ledger_sum(session, marco) == 300
        debit = session.exec(
            select(PointsTransaction).where(PointsTransaction.order_id == data["id"])
        ).one()
        assert debit.amount == -500
        assert debit.reason == f"Redeemed for Order #{data['order_number']}"

    def test_total_matches_items_minus_discount(self, client, session, menu, marco, marco_headers):
        response = client.post(
            "/api/orders",
            json=order_payload(menu, [("Diavola", 1), ("Hranolky", 3)], use_points=250),
            headers=marco_headers,
        )
        data = response.json()
        items_total = sum(
            Decimal(item["price_at_time"]) * item["quantity"] for item in data["items"]
        )
        expected = max(Decimal("0"), items_total - Decimal(data["points_used"]) / 100)
        assert Decimal(data["total_price"]) == expected

    def test_redemption_capped_at_balance(self, client, session, menu, marco, marco_headers):
        response = client.post(
            "/api/orders", json=order_payload(menu, use_points=10_000), headers=marco_headers
        )
        data = response.json()
        assert data["points_used"] == 800
        assert Decimal(data["total_price"]) == Decimal("12.30")
        assert balance_of(session, marco) == 0

    def test_no_redemption_no_ledger_entry(self, client, session, menu, marco, marco_headers):
        response = client.post("/api/orders", json=order_payload(menu), headers=marco_headers)
        data = response.json()
        assert data["points_used"] == 0
        assert data["points_earned"] == 203
        assert balance_of(session, marco) == 800
        entries = session.exec(
            select(PointsTransaction).where(PointsTransaction.order_id == data["id"])
        ).all()
        assert entries == []

    def test_first_order_creates_customer_profile(self, client, session, menu, accounts):
        response = client.post(
            "/api/orders", json=order_payload(menu), headers=headers_for(accounts["lucia"])
        )
        assert response.status_code == 201

        customer = session.exec(select(Customer).where(Customer.user_id == accounts["lucia"])).one()
        assert customer.first_name == "Lucia"
        assert customer.last_name == ""
        assert customer.phone_number == "+421900111222"
        assert response.json()["customer_id"] == customer.id

        # A second order reuses the same profile
        client.post("/api/orders", json=order_payload(menu), headers=headers_for(accounts["lucia"]))
        customers = session.exec(select(Customer).where(Customer.user_id == accounts["lucia"])).all()
        assert len(customers) == 1

    def test_guest_checkout(self, client, session, menu):
        response = client.post(
            "/api/orders",
            json=order_payload(
                menu,
                guest_email="anna@example.com",
                guest_first_name="Anna",
                guest_last_name="Nováková",
                use_points=500,
            ),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["customer_id"] is None
        assert data["guest_email"] == "anna@example.com"
        assert data["guest_first_name"] == "Anna"
        assert data["points_earned"] == 0
        assert data["points_used"] == 0
        assert Decimal(data["total_price"]) == Decimal("20.30")
        assert session.exec(select(PointsTransaction)).all() == []

    def test_guest_without_contact_rejected(self, client, menu):
        response = client.post("/api/orders", json=order_payload(menu, guest_email="anna@example.com"))
        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"
        assert "email and first name" in response.json()["detail"]

    def test_invalid_guest_email_rejected(self, client, menu):
        response = client.post(
            "/api/orders",
            json=order_payload(menu, guest_email="not-an-email", guest_first_name="Anna"),
        )
        assert response.status_code == 422

    def test_delivery_requires_address_pickup_does_not(self, client, session, menu):
        guest = {"guest_email": "anna@example.com", "guest_first_name": "Anna"}
        payload = order_payload(menu, **guest)
        del payload["delivery_address"]

        response = client.post("/api/orders", json=payload)
        assert response.status_code == 400
        assert "Delivery address is required" in response.json()["detail"]
        assert session.exec(select(Order)).all() == []

        payload["delivery_type"] = "pickup"
        response = client.post("/api/orders", json=payload)
        assert response.status_code == 201
        assert response.json()["delivery_type"] == "pickup"

    def test_profile_address_does_not_replace_a_missing_delivery_address(
        self, client, session, menu, marco, marco_headers
    ):
        customer = session.get(Customer, marco)
        customer.delivery_address = "Obchodná 5"
        customer.city = "Bratislava"
        session.add(customer)
        session.commit()

        payload = order_payload(menu)
        del payload["delivery_address"]
        del payload["delivery_city"]
        response = client.post("/api/orders", json=payload, headers=marco_headers)
        assert response.status_code == 400
        assert "Delivery address is required" in response.json()["detail"]

        # A pickup order still records the profile address
        payload["delivery_type"] = "pickup"
        response = client.post("/api/orders", json=payload, headers=marco_headers)
        assert response.status_code == 201
        assert response.json()["delivery_address"] == "Obchodná 5"
        assert response.json()["delivery_city"] == "Bratislava"

    def test_balance_spent_before_the_debit_rolls_back_the_order(
        self, client, session, menu, marco, marco_headers, monkeypatch
    ):
        def price_then_spend(*args, **kwargs):
            priced = price_order(*args, **kwargs)
            # A second checkout spends most of the balance between pricing and debit
            session.connection().execute(
                update(Customer).where(Customer.id == marco).values(points_balance=100)
            )
            return priced

        monkeypatch.setattr(ordering, "price_order", price_then_spend)
        response = client.post(
            "/api/orders", json=order_payload(menu, use_points=500), headers=marco_headers
        )

        assert response.status_code == 409
        assert response.json()["error_type"] == "InsufficientPointsError"
        assert session.exec(select(Order)).all() == []
        assert session.exec(select(OrderItem)).all() == []
        assert ledger_sum(session, marco) == 800
        assert balance_of(session, marco) == 800

    def test_timestamps_are_stored_as_naive_utc(self, client, session, menu, marco, marco_headers):
        for table in (Order, OrderItem, PointsTransaction, Product, Customer):
            for column in table.__table__.columns:
                if column.name in ("created_at", "updated_at"):
                    assert type(column.type) is DateTime

        client.post("/api/orders", json=order_payload(menu, use_points=500), headers=marco_headers)
        order = session.exec(select(Order)).one()
        assert order.created_at.tzinfo is None
        assert order.created_at <= utcnow()

    def test_blank_phone_rejected(self, client, menu, marco_headers):
        response = client.post(
            "/api/orders", json=order_payload(menu, delivery_phone="  "), headers=marco_headers
        )
        assert response.status_code == 400

    def test_unavailable_product_rejected(self, client, session, menu, marco, marco_headers):
        response = client.post(
            "/api/orders",
            json=order_payload(menu, [("Margherita", 1), ("Calzone", 1)], use_points=500),
            headers=marco_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Some products are not available"
        # Nothing written, nothing debited
        assert session.exec(select(Order)).all() == []
        assert balance_of(session, marco) == 800

    def test_non_positive_quantity_rejected(self, client, menu, marco_headers):
        response = client.post(
            "/api/orders", json=order_payload(menu, [("Margherita", 0)]), headers=marco_headers
        )
        assert response.status_code == 422

    def test_unknown_account_rejected(self, client, menu):
        response = client.post("/api/orders", json=order_payload(menu), headers=headers_for(999))
        assert response.status_code == 401

    def test_order_numbers_are_sequential(self, client, menu, marco, marco_headers):
        first = client.post("/api/orders", json=order_payload(menu), headers=marco_headers).json()
        second = client.post("/api/orders", json=order_payload(menu), headers=marco_headers).json()
        assert second["order_number"] == first["order_number"] + 1

    def test_price_frozen_at_order_time(self, client, session, menu, marco, marco_headers, admin_headers):
        order = client.post("/api/orders", json=order_payload(menu), headers=marco_headers).json()

        client.patch(
            f"/api/admin/menu/{menu['Margherita']}", json={"price": "10.50"}, headers=admin_headers
        )
        assert session.get(Product, menu["Margherita"]).price == Decimal("10.50")

        item = session.exec(
            select(OrderItem).where(
                OrderItem.order_id == order["id"], OrderItem.product_id == menu["Margherita"]
            )
        ).one()
        assert item.price_at_time == Decimal("8.90")
        assert Decimal(client.get(f"/api/orders/{order['id']}", headers=marco_headers).json()["total_price"]) == Decimal("20.30")


class TestMyOrders:
    def place(self, client, menu, headers, count):
        return [
            client.post("/api/orders", json=order_payload(menu), headers=headers).json()
            for _ in range(count)
        ]

    def test_pagination_newest_first(self, client, menu, marco, marco_headers):
        placed = self.place(client, menu, marco_headers, 5)

        page = client.get("/api/orders/mine?limit=2", headers=marco_headers).json()
        assert [o["id"] for o in page["orders"]] == [placed[4]["id"], placed[3]["id"]]
        assert page["next_cursor"] == placed[2]["id"]

        page = client.get(
            f"/api/orders/mine?limit=2&cursor={page['next_cursor']}", headers=marco_headers
        ).json()
        assert [o["id"] for o in page["orders"]] == [placed[2]["id"], placed[1]["id"]]

        page = client.get(
            f"/api/orders/mine?limit=2&cursor={page['next_cursor']}", headers=marco_headers
        ).json()
        assert [o["id"] for o in page["orders"]] == [placed[0]["id"]]
        assert page["next_cursor"] is None

    def test_only_own_orders(self, client, menu, marco, marco_headers, accounts):
        self.place(client, menu, marco_headers, 2)
        lucia = headers_for(accounts["lucia"])
        assert client.get("/api/orders/mine", headers=lucia).json()["orders"] == []

    def test_requires_sign_in(self, client):
        assert client.get("/api/orders/mine").status_code == 401

    def test_get_order_hides_other_customers_orders(self, client, menu, marco, marco_headers, accounts):
        order = self.place(client, menu, marco_headers, 1)[0]
        assert client.get(f"/api/orders/{order['id']}", headers=marco_headers).status_code == 200

        response = client.get(f"/api/orders/{order['id']}", headers=headers_for(accounts["lucia"]))
        assert response.status_code == 404
        assert response.json()["error_type"] == "OrderNotFoundError"

    def test_order_lines_name_the_product(self, client, menu, marco, marco_headers):
        order = self.place(client, menu, marco_headers, 1)[0]
        names = {item["product"]["name"] for item in order["items"]}
        assert names == {"Margherita", "Fanta 0.5L"}
