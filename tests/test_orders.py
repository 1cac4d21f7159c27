"""Tests for Order API endpoints and the order workflow."""
from decimal import Decimal

import pytest

from foodnetwork.models.order import Order
from foodnetwork.models.product import Product, ProductMovement, MovementType
from foodnetwork.schemas.order import OrderCreate
from foodnetwork.schemas.product import ProductCreate, ProductUpdate
from foodnetwork.services.exceptions import InsufficientStockError, ProductNotFoundError
from foodnetwork.services.order_service import OrderService
from foodnetwork.services.product_service import ProductService


def _order(client, headers, product_id, quantity):
    return client.post(
        "/api/v1/orders/",
        json={"product_id": product_id, "quantity": quantity},
        headers=headers
    )


def test_place_order_success(client, member_headers, member_user, make_product, task_mocks):
    """Test placing an order successfully."""
    product = make_product(unit_price="24.99", current_stock=10)

    response = _order(client, member_headers, product.id, 2)

    assert response.status_code == 201
    data = response.json()
    assert data["product_id"] == product.id
    assert data["user_id"] == member_user.id
    assert data["quantity"] == 2
    assert data["unit_price"] == 24.99
    assert data["total_price"] == 49.98
    assert data["status"] == "confirmed"
    task_mocks["order_confirmation"].assert_called_once_with(data["id"])


def test_place_order_requires_session(client, make_product):
    product = make_product(current_stock=10)

    response = _order(client, {}, product.id, 1)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_place_order_insufficient_stock(client, member_headers, make_product, db_session):
    """Test order fails and nothing is written when stock is short."""
    product = make_product(current_stock=3)

    response = _order(client, member_headers, product.id, 5)

    assert response.status_code == 400
    assert "Insufficient stock" in response.json()["error"]
    db_session.expire_all()
    assert db_session.get(Product, product.id).current_stock == 3
    assert db_session.query(Order).count() == 0
    assert db_session.query(ProductMovement).count() == 0


def test_place_order_product_not_found(client, member_headers):
    """Test order fails when product doesn't exist."""
    response = _order(client, member_headers, 9999, 1)

    assert response.status_code == 404


@pytest.mark.parametrize("quantity", [0, -3])
def test_place_order_non_positive_quantity(client, member_headers, make_product, quantity):
    product = make_product(current_stock=10)

    response = _order(client, member_headers, product.id, quantity)

    assert response.status_code == 400


def test_order_decrements_stock_and_records_purchase(client, member_headers, member_user, make_product, db_session):
    """Test an order decrements stock and writes exactly one purchase movement."""
    product = make_product(current_stock=10)

    _order(client, member_headers, product.id, 3)

    db_session.expire_all()
    assert db_session.get(Product, product.id).current_stock == 7
    movements = db_session.query(ProductMovement).filter_by(product_id=product.id).all()
    assert len(movements) == 1
    assert movements[0].movement_type == MovementType.PURCHASE
    assert movements[0].quantity == 3
    assert movements[0].user_id == member_user.id
    assert movements[0].notes == "Order purchase - 3 units"
    assert db_session.query(Order).count() == 1


def test_multiple_orders_deplete_stock(client, member_headers, make_product):
    """Test multiple orders correctly deplete stock."""
    product = make_product(current_stock=5)

    assert _order(client, member_headers, product.id, 3).status_code == 201
    assert _order(client, member_headers, product.id, 2).status_code == 201
    assert _order(client, member_headers, product.id, 1).status_code == 400


def test_order_keeps_price_snapshot(client, member_headers, admin_headers, make_product):
    """Test a later price change doesn't alter existing orders."""
    product = make_product(unit_price="10.00", current_stock=10)
    order_id = _order(client, member_headers, product.id, 2).json()["id"]

    client.put(f"/api/v1/products/{product.id}", json={"unit_price": 99.0}, headers=admin_headers)

    data = client.get(f"/api/v1/orders/{order_id}", headers=member_headers).json()
    assert data["unit_price"] == 10.0
    assert data["total_price"] == 20.0


def test_get_order(client, member_headers, make_product):
    """Test getting an order by ID."""
    product = make_product(name="Quinoa", current_stock=10)
    order_id = _order(client, member_headers, product.id, 1).json()["id"]

    response = client.get(f"/api/v1/orders/{order_id}", headers=member_headers)

    assert response.status_code == 200
    assert response.json()["id"] == order_id
    assert response.json()["product_name"] == "Quinoa"


def test_member_cannot_read_others_order(client, member_headers, other_headers, admin_headers, make_product):
    product = make_product(current_stock=10)
    order_id = _order(client, member_headers, product.id, 1).json()["id"]

    assert client.get(f"/api/v1/orders/{order_id}", headers=other_headers).status_code == 404
    assert client.get(f"/api/v1/orders/{order_id}", headers=admin_headers).status_code == 200


def test_list_orders(client, member_headers, make_product):
    """Test listing orders with pagination."""
    product = make_product(current_stock=100)

    for _ in range(15):
        _order(client, member_headers, product.id, 1)

    response = client.get("/api/v1/orders/?page=1&page_size=10", headers=member_headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data["items"]) == 10
    assert data["total"] == 15


def test_list_orders_scoped_by_role(client, member_headers, other_headers, admin_headers, make_product):
    """Test members see their own orders and admins see everyone's, newest first."""
    product = make_product(name="Chia Seeds", current_stock=100)
    first = _order(client, member_headers, product.id, 1).json()["id"]
    second = _order(client, other_headers, product.id, 2).json()["id"]
    third = _order(client, member_headers, product.id, 3).json()["id"]

    own = client.get("/api/v1/orders/", headers=member_headers).json()
    assert [o["id"] for o in own["items"]] == [third, first]
    assert own["items"][0]["user_email"] is None

    everything = client.get("/api/v1/orders/", headers=admin_headers).json()
    assert [o["id"] for o in everything["items"]] == [third, second, first]
    assert everything["items"][1]["user_email"] == "jane@example.com"
    assert everything["items"][1]["product_name"] == "Chia Seeds"


def test_list_orders_requires_session(client):
    assert client.get("/api/v1/orders/").status_code == 401


def test_place_order_service(db_session, member_ctx, make_product):
    product = make_product(unit_price="89.99", current_stock=25)

    order = OrderService(db_session).place_order(OrderCreate(product_id=product.id, quantity=2), member_ctx)

    assert order.unit_price == Decimal("89.99")
    assert order.total_price == Decimal("179.98")
    db_session.refresh(product)
    assert product.current_stock == 23


def test_place_order_service_missing_product(db_session, member_ctx):
    with pytest.raises(ProductNotFoundError):
        OrderService(db_session).place_order(OrderCreate(product_id=42, quantity=1), member_ctx)


def test_competing_orders_only_one_succeeds(db_session, session_factory, member_ctx, make_product):
    """
    Two buyers read stock 50 and each order 30: exactly one order goes through.

    The second session read the product before the first order committed.
    """
    product = make_product(current_stock=50)

    first = session_factory()
    second = session_factory()
    try:
        assert first.get(Product, product.id).current_stock == 50
        assert second.get(Product, product.id).current_stock == 50

        OrderService(first).place_order(OrderCreate(product_id=product.id, quantity=30), member_ctx)

        with pytest.raises(InsufficientStockError):
            OrderService(second).place_order(OrderCreate(product_id=product.id, quantity=30), member_ctx)
    finally:
        first.close()
        second.close()

    db_session.expire_all()
    assert db_session.get(Product, product.id).current_stock == 20
    assert db_session.query(Order).count() == 1
    assert db_session.query(ProductMovement).filter_by(movement_type=MovementType.PURCHASE).count() == 1


def test_product_edit_after_concurrent_order_keeps_ledger(db_session, session_factory, admin_ctx, member_ctx):
    """
    An admin edit that started before an order committed sets stock against the post-order value.

    The admin session still holds the product as it was before the order.
    """
    product = ProductService(db_session).create(
        ProductCreate(name="Rolled Oats", unit_price="18.50", current_stock=50), admin_ctx
    )

    admin = session_factory()
    buyer = session_factory()
    try:
        assert admin.get(Product, product.id).current_stock == 50

        OrderService(buyer).place_order(OrderCreate(product_id=product.id, quantity=30), member_ctx)

        edited = ProductService(admin).update(product.id, ProductUpdate(current_stock=60), admin_ctx)
        assert edited.current_stock == 60
    finally:
        admin.close()
        buyer.close()

    db_session.expire_all()
    movements = db_session.query(ProductMovement).filter_by(product_id=product.id).all()
    edit = [m for m in movements if m.notes == "Stock updated via product edit"]
    assert len(edit) == 1
    assert edit[0].movement_type == MovementType.STOCK_ADDED
    assert edit[0].quantity == 40
    assert db_session.get(Product, product.id).current_stock == 60
    assert sum(m.signed_quantity for m in movements) == 60
