from datetime import date, timedelta
from decimal import Decimal
from itertools import count

import pytest
from flask import g
from flask_login import FlaskLoginClient

from tourpay import create_app
from tourpay.extensions import db
from tourpay.models import Booking, Order, OrderItem, Product, Tour, TourAvailability, User
from tourpay.services.realtime_service import RealtimeService

_sequence = count(1)


class _TestClient(FlaskLoginClient):
    """The ``app`` fixture holds one app context for the whole test, so ``g``
    outlives each request; drop Flask-Login's per-request user cache so each
    client's session decides who is logged in."""

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


@pytest.fixture
def app():
    app = create_app("testing")
    app.test_client_class = _TestClient
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def published(monkeypatch):
    """Capture realtime publishes instead of talking to Redis."""
    calls = []

    def fake_publish(channel, event, payload):
        calls.append((channel, event, payload))
        return True

    monkeypatch.setattr(RealtimeService, "publish", fake_publish)
    return calls


def make_user(role="customer", name=None):
    n = next(_sequence)
    user = User(full_name=name or f"{role.title()} {n}", email=f"{role}{n}@example.com", role=role)
    db.session.add(user)
    db.session.commit()
    return user


def make_booking(
    customer,
    provider,
    number="TK20251104001",
    total=Decimal("4000000"),
    tour_date=None,
    adults=2,
    children=0,
    booked=5,
    status="pending",
):
    tour_date = tour_date or date.today() + timedelta(days=30)
    tour = Tour(provider_id=provider.id, title=f"Tour {number}", base_price=total)
    db.session.add(tour)
    db.session.flush()
    slot = TourAvailability(tour_id=tour.id, date=tour_date, max_participants=20, booked_participants=booked)
    db.session.add(slot)
    db.session.flush()
    booking = Booking(
        booking_number=number,
        tour_id=tour.id,
        tour_availability_id=slot.id,
        customer_id=customer.id,
        tour_date=tour_date,
        adult_count=adults,
        child_count=children,
        total_amount=total,
        status=status,
    )
    db.session.add(booking)
    db.session.commit()
    return booking


def make_order(customer, lines, number="ORD20251104120000123"):
    """``lines`` is a list of ``(provider, price, quantity)`` or ``(product, quantity)``."""
    order = Order(order_number=number, customer_id=customer.id, subtotal=0, total_amount=0)
    db.session.add(order)
    db.session.flush()
    subtotal = Decimal("0")
    for line in lines:
        if isinstance(line[0], Product):
            product, quantity = line
        else:
            provider, price, quantity = line
            product = Product(provider_id=provider.id, name=f"Product {next(_sequence)}", price=Decimal(price))
            db.session.add(product)
            db.session.flush()
        line_total = Decimal(str(product.price)) * quantity
        subtotal += line_total
        db.session.add(
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=product.price,
                subtotal=line_total,
            )
        )
    order.subtotal = subtotal
    order.total_amount = subtotal
    db.session.commit()
    return order


def gateway_payload(**overrides):
    payload = {
        "id": 92704,
        "gateway": "Vietcombank",
        "transactionDate": "2025-11-04 10:15:00",
        "accountNumber": "0071000888888",
        "code": None,
        "content": "Thanh toan TK20251104001",
        "transferType": "in",
        "transferAmount": 4000000,
        "accumulated": 19077000,
        "subAccount": None,
        "referenceCode": "MBVCB.3278907687",
        "description": "",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def admin(app):
    return make_user("admin", "Platform Admin")


@pytest.fixture
def guide(app):
    return make_user("tour_guide", "Guide P")


@pytest.fixture
def customer(app):
    return make_user("customer", "Traveller")
