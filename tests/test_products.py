"""Tests for Product API endpoints."""
from foodnetwork.models.product import ProductMovement


def _create(client, headers, **overrides):
    payload = {"name": "Organic Brown Rice", "unit_price": 24.99, "current_stock": 50, "category": "grains"}
    payload.update(overrides)
    return client.post("/api/v1/products/", json=payload, headers=headers)


def test_create_product(client, admin_headers):
    """Test creating a new product."""
    response = _create(client, admin_headers, description="25 lb bag", unit_size="25 lb bag")

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Organic Brown Rice"
    assert data["unit_price"] == 24.99
    assert data["current_stock"] == 50
    assert data["unit_size"] == "25 lb bag"
    assert "id" in data
    assert "created_at" in data


def test_create_product_records_initial_stock(client, admin_headers, admin_user, db_session):
    """Test the starting stock is recorded as a stock_added movement."""
    product_id = _create(client, admin_headers, current_stock=12).json()["id"]

    movements = db_session.query(ProductMovement).filter_by(product_id=product_id).all()
    assert len(movements) == 1
    assert movements[0].movement_type.value == "stock_added"
    assert movements[0].quantity == 12
    assert movements[0].user_id == admin_user.id
    assert movements[0].notes == "Initial stock"


def test_create_product_without_stock_has_no_movement(client, admin_headers, db_session):
    product_id = _create(client, admin_headers, current_stock=0).json()["id"]

    assert db_session.query(ProductMovement).filter_by(product_id=product_id).count() == 0


def test_create_product_requires_admin(client, member_headers, db_session):
    """Test members cannot create products."""
    response = _create(client, member_headers)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert client.get("/api/v1/products/").json()["total"] == 0


def test_create_product_requires_session(client):
    response = _create(client, {})

    assert response.status_code == 401


def test_unknown_user_is_unauthorized(client, admin_user):
    response = _create(client, {"X-User-Id": "9999"})

    assert response.status_code == 401


def test_create_product_invalid_price(client, admin_headers):
    """Test creating product with invalid price fails."""
    response = _create(client, admin_headers, unit_price=-10.00)

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_create_product_invalid_stock(client, admin_headers):
    """Test creating product with negative stock fails."""
    response = _create(client, admin_headers, current_stock=-5)

    assert response.status_code == 400


def test_get_product(client, admin_headers):
    """Test getting a product by ID."""
    product_id = _create(client, admin_headers).json()["id"]

    response = client.get(f"/api/v1/products/{product_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == product_id
    assert data["name"] == "Organic Brown Rice"


def test_get_product_not_found(client):
    """Test getting non-existent product returns 404."""
    response = client.get("/api/v1/products/9999")

    assert response.status_code == 404
    assert "not found" in response.json()["error"]


def test_list_products(client, admin_headers):
    """Test listing products with pagination."""
    for i in range(15):
        _create(client, admin_headers, name=f"Product {i}", unit_price=10.00 + i)

    response = client.get("/api/v1/products/?page=1&page_size=10")

    assert response.status_code == 200
    data = response.json()
    assert len(data["items"]) == 10
    assert data["total"] == 15
    assert data["total_pages"] == 2


def test_list_products_newest_first(client, admin_headers):
    for name in ("First", "Second", "Third"):
        _create(client, admin_headers, name=name)

    names = [p["name"] for p in client.get("/api/v1/products/").json()["items"]]

    assert names == ["Third", "Second", "First"]


def test_search_products(client, admin_headers):
    """Test searching products by name."""
    _create(client, admin_headers, name="Raw Almonds", category="nuts")
    _create(client, admin_headers, name="Quinoa", category="grains")
    _create(client, admin_headers, name="Almond Butter", category="pantry")

    response = client.get("/api/v1/products/?search=almond")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert all("lmond" in item["name"] for item in data["items"])


def test_filter_products_by_category(client, admin_headers):
    _create(client, admin_headers, name="Raw Almonds", category="nuts")
    _create(client, admin_headers, name="Quinoa", category="grains")

    data = client.get("/api/v1/products/?category=nuts").json()

    assert data["total"] == 1
    assert data["items"][0]["name"] == "Raw Almonds"


def test_update_product(client, admin_headers):
    """Test updating a product."""
    product_id = _create(client, admin_headers, name="Original Name", current_stock=10).json()["id"]

    response = client.put(
        f"/api/v1/products/{product_id}",
        json={"name": "Updated Name", "unit_price": 75.00},
        headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Updated Name"
    assert data["unit_price"] == 75.00
    assert data["current_stock"] == 10  # Stock should remain unchanged


def test_update_product_stock_records_movement(client, admin_headers, db_session):
    """Test a stock edit appends a corrective movement for the difference."""
    product_id = _create(client, admin_headers, current_stock=10).json()["id"]

    client.put(f"/api/v1/products/{product_id}", json={"current_stock": 4}, headers=admin_headers)
    client.put(f"/api/v1/products/{product_id}", json={"current_stock": 9}, headers=admin_headers)

    movements = (
        db_session.query(ProductMovement)
        .filter_by(product_id=product_id)
        .order_by(ProductMovement.id)
        .all()
    )
    assert [(m.movement_type.value, m.quantity) for m in movements] == [
        ("stock_added", 10),
        ("stock_removed", 6),
        ("stock_added", 5),
    ]
    assert movements[1].notes == "Stock updated via product edit"


def test_update_product_without_stock_change_has_no_movement(client, admin_headers, db_session):
    product_id = _create(client, admin_headers, current_stock=10).json()["id"]

    client.put(f"/api/v1/products/{product_id}", json={"current_stock": 10, "name": "Same"}, headers=admin_headers)

    assert db_session.query(ProductMovement).filter_by(product_id=product_id).count() == 1


def test_update_product_not_found(client, admin_headers):
    response = client.put("/api/v1/products/9999", json={"name": "Nope"}, headers=admin_headers)

    assert response.status_code == 404


def test_update_product_requires_admin(client, admin_headers, member_headers):
    product_id = _create(client, admin_headers, name="Keep Me").json()["id"]

    response = client.put(f"/api/v1/products/{product_id}", json={"name": "Changed"}, headers=member_headers)

    assert response.status_code == 401
    assert client.get(f"/api/v1/products/{product_id}").json()["name"] == "Keep Me"


def test_delete_product(client, admin_headers, db_session):
    """Test deleting a product."""
    product_id = _create(client, admin_headers).json()["id"]

    response = client.delete(f"/api/v1/products/{product_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Product deleted successfully"

    # Verify it's deleted, history included
    assert client.get(f"/api/v1/products/{product_id}").status_code == 404
    assert db_session.query(ProductMovement).filter_by(product_id=product_id).count() == 0


def test_delete_product_with_orders_is_refused(client, admin_headers, member_headers):
    product_id = _create(client, admin_headers).json()["id"]
    client.post("/api/v1/orders/", json={"product_id": product_id, "quantity": 1}, headers=member_headers)

    response = client.delete(f"/api/v1/products/{product_id}", headers=admin_headers)

    assert response.status_code == 400
    assert client.get(f"/api/v1/products/{product_id}").status_code == 200


def test_delete_product_requires_admin(client, admin_headers, member_headers):
    product_id = _create(client, admin_headers).json()["id"]

    response = client.delete(f"/api/v1/products/{product_id}", headers=member_headers)

    assert response.status_code == 401
    assert client.get(f"/api/v1/products/{product_id}").status_code == 200


def test_delete_product_not_found(client, admin_headers):
    response = client.delete("/api/v1/products/9999", headers=admin_headers)

    assert response.status_code == 404


def test_adjust_stock(client, admin_headers):
    product_id = _create(client, admin_headers, current_stock=10).json()["id"]

    response = client.post(
        f"/api/v1/products/{product_id}/stock",
        json={"delta": 5, "reason": "Delivery"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["current_stock"] == 15


def test_adjust_stock_below_zero_is_rejected(client, admin_headers):
    product_id = _create(client, admin_headers, current_stock=3).json()["id"]

    response = client.post(
        f"/api/v1/products/{product_id}/stock",
        json={"delta": -4},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert client.get(f"/api/v1/products/{product_id}").json()["current_stock"] == 3


def test_adjust_stock_zero_delta_is_rejected(client, admin_headers):
    product_id = _create(client, admin_headers).json()["id"]

    response = client.post(f"/api/v1/products/{product_id}/stock", json={"delta": 0}, headers=admin_headers)

    assert response.status_code == 400


def test_adjust_stock_requires_admin(client, admin_headers, member_headers):
    product_id = _create(client, admin_headers, current_stock=10).json()["id"]

    response = client.post(f"/api/v1/products/{product_id}/stock", json={"delta": 5}, headers=member_headers)

    assert response.status_code == 401


def test_list_movements(client, admin_headers):
    product_id = _create(client, admin_headers, current_stock=10).json()["id"]
    client.post(f"/api/v1/products/{product_id}/stock", json={"delta": -2, "reason": "Spoiled"}, headers=admin_headers)

    response = client.get(f"/api/v1/products/{product_id}/movements", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert [m["movement_type"] for m in data] == ["stock_removed", "stock_added"]
    assert data[0]["notes"] == "Spoiled"


def test_inventory_view(client, admin_headers):
    _create(client, admin_headers, name="Raw Almonds", category="nuts", unit_size="10 lb bag",
            total_units=25, sold_units=8)

    response = client.get("/api/v1/products/inventory")

    assert response.status_code == 200
    item = response.json()[0]
    assert item["name"] == "Raw Almonds"
    assert item["image"] == "🥜"
    assert item["unit"] == "10 lb bag"
    assert item["stock_quantity"] == 17
    assert item["in_stock"] is True
    assert item["popularity"] == 84
    assert item["stars"] == 4
    assert item["tags"] == ["nuts", "bulk", "community"]
