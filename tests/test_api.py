"""Tests for the FastAPI API."""

import pytest

CHECKOUT_BODY = {
    "userId": "1",
    "paymentMethod": "pix",
    "shippingAddress": {"street": "Rua A, 100", "city": "São Paulo", "zip": "01000-000"},
    "email": "daniel@example.com",
    "password": "secret",
}


def add_to_cart(client, user_id="1", product_id="1", quantity=1):
    return client.post("/api/cart", json={"userId": user_id, "productId": product_id, "quantity": quantity})


class TestHealthCheck:
    def test_health(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["timestamp"].endswith("Z")
        assert data["uptime"] >= 0
        assert data["responseTime"].endswith("ms")

    def test_response_time_header(self, api_client):
        response = api_client.get("/api/products")
        assert response.headers["X-Response-Time"].endswith("ms")

    def test_unknown_route(self, api_client):
        response = api_client.get("/api/does-not-exist")
        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "Route not found"
        assert "responseTime" in data


class TestUserEndpoints:
    def test_list_users(self, api_client):
        response = api_client.get("/api/users")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 5
        assert data["users"][0]["email"] == "daniel@example.com"
        assert data["users"][0]["isAuthenticated"] is False

    def test_list_users_filtered(self, api_client):
        data = api_client.get("/api/users", params={"name": "MAR"}).json()
        assert [u["id"] for u in data["users"]] == ["3"]
        assert data["filters"] == {"name": "MAR", "age": None}

    def test_get_user_not_found(self, api_client):
        response = api_client.get("/api/users/99")
        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    def test_create_user(self, api_client):
        response = api_client.post("/api/users", json={"name": "Beatriz", "email": "bia@example.com", "age": 27})
        assert response.status_code == 201
        assert response.json()["user"]["id"] == "6"

        assert api_client.get("/api/users/6").json()["user"]["name"] == "Beatriz"

    def test_create_user_duplicate_email(self, api_client):
        response = api_client.post("/api/users", json={"name": "Dan", "email": "daniel@example.com"})
        assert response.status_code == 409
        assert response.json()["error_type"] == "DuplicateEmailError"

    def test_create_user_missing_fields(self, api_client):
        response = api_client.post("/api/users", json={"name": "Nobody"})
        assert response.status_code == 400
        assert response.json()["error"] == "Name and email are required"

    def test_update_user_keeps_unset_fields(self, api_client):
        response = api_client.put("/api/users/2", json={"age": 36})
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["age"] == 36
        assert user["name"] == api_client.get("/api/users/2").json()["user"]["name"]

    def test_delete_user(self, api_client):
        assert api_client.delete("/api/users/5").status_code == 200
        assert api_client.get("/api/users/5").status_code == 404
        assert api_client.delete("/api/users/5").status_code == 404


class TestAuthEndpoints:
    def test_login_and_logout(self, api_client):
        response = api_client.post("/api/auth", json={"email": "daniel@example.com", "password": "pass"})
        assert response.status_code == 200
        assert response.json()["user"]["isAuthenticated"] is True

        response = api_client.post("/api/auth/logout", json={"userId": "1"})
        assert response.status_code == 200
        assert response.json()["user"]["isAuthenticated"] is False

    def test_login_short_password(self, api_client):
        response = api_client.post("/api/auth", json={"email": "daniel@example.com", "password": "abc"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    def test_login_unknown_email(self, api_client):
        response = api_client.post("/api/auth", json={"email": "ghost@example.com", "password": "secret"})
        assert response.status_code == 401


class TestProductEndpoints:
    def test_list_products(self, api_client):
        data = api_client.get("/api/products").json()
        assert data["total"] == 10
        assert data["products"][0]["price"] == 4999.99

    def test_list_products_limit(self, api_client):
        data = api_client.get("/api/products", params={"limit": 3}).json()
        assert [p["id"] for p in data["products"]] == ["1", "2", "3"]

    def test_query_matches_name_or_description(self, api_client):
        data = api_client.get("/api/products", params={"query": "CAMERA"}).json()
        assert [p["id"] for p in data["products"]] == ["1", "4"]
        assert data["query"] == "CAMERA"

    def test_search_with_ranges(self, api_client):
        response = api_client.get(
            "/api/products/search", params={"minPrice": 2000, "maxPrice": 7000, "minRating": 4.7}
        )
        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data["products"]] == ["1", "6", "7"]
        assert data["filters"]["minPrice"] == 2000.0

    def test_featured(self, api_client):
        data = api_client.get("/api/products/featured").json()
        assert [p["id"] for p in data["products"]] == ["1", "2", "3", "4", "5", "6"]

    def test_by_category(self, api_client):
        data = api_client.get("/api/products/category/laptop").json()
        assert [p["id"] for p in data["products"]] == ["2"]

    def test_search_with_huge_price_bound(self, api_client):
        response = api_client.get("/api/products/search", params={"minPrice": "1e40"})
        assert response.status_code == 200
        data = response.json()
        assert data["products"] == []
        assert data["filters"]["minPrice"] == 1e40

        data = api_client.get("/api/products/search", params={"maxPrice": "1e40"}).json()
        assert data["total"] == 10

    def test_search_with_infinite_price_bound(self, api_client):
        response = api_client.get("/api/products/search", params={"maxPrice": "1e400"})
        assert response.status_code == 422
        assert response.json()["error_type"] == "RequestValidationError"

    def test_get_product_not_found(self, api_client):
        response = api_client.get("/api/products/999")
        assert response.status_code == 404
        assert response.json()["error"] == "Product not found"

    def test_invalid_query_parameter(self, api_client):
        response = api_client.get("/api/products", params={"limit": "many"})
        assert response.status_code == 422
        assert response.json()["error_type"] == "RequestValidationError"


class TestCartEndpoints:
    def test_add_and_get(self, api_client):
        response = add_to_cart(api_client, quantity=2)
        assert response.status_code == 200
        assert response.json()["cartItem"] == {"userId": "1", "productId": "1", "quantity": 2}

        add_to_cart(api_client, product_id="3")
        data = api_client.get("/api/cart/1").json()
        assert data["itemCount"] == 2
        assert data["cart"][0]["product"]["name"] == "iPhone 15 Pro"
        assert data["cart"][0]["subtotal"] == 9999.98
        assert data["total"] == 11299.97

    def test_add_merges_lines(self, api_client):
        add_to_cart(api_client)
        response = add_to_cart(api_client, quantity=2)
        assert response.json()["cartItem"]["quantity"] == 3
        assert api_client.get("/api/cart/1").json()["itemCount"] == 1

    def test_add_insufficient_stock(self, api_client):
        response = add_to_cart(api_client, product_id="4", quantity=16)
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Insufficient stock. Available: 15"
        assert data["available"] == 15

    def test_add_missing_fields(self, api_client):
        response = api_client.post("/api/cart", json={"userId": "1"})
        assert response.status_code == 400

    def test_add_unknown_product(self, api_client):
        assert add_to_cart(api_client, product_id="999").status_code == 404

    def test_add_non_positive_quantity(self, api_client):
        assert add_to_cart(api_client, quantity=0).status_code == 400

    def test_add_malformed_quantity(self, api_client):
        response = api_client.post("/api/cart", json={"userId": "1", "productId": "1", "quantity": "lots"})
        assert response.status_code == 422

    def test_update_quantity(self, api_client):
        add_to_cart(api_client)
        response = api_client.put("/api/cart/1/1", json={"quantity": 5})
        assert response.status_code == 200
        assert response.json()["cartItem"]["quantity"] == 5

    def test_update_to_zero_removes(self, api_client):
        add_to_cart(api_client)
        response = api_client.put("/api/cart/1/1", json={"quantity": 0})
        assert response.status_code == 200
        assert response.json()["message"] == "Item removed from cart"
        assert api_client.get("/api/cart/1").json()["cart"] == []

    def test_update_beyond_stock_drops_line(self, api_client):
        add_to_cart(api_client)
        response = api_client.put("/api/cart/1/1", json={"quantity": 1000})
        assert response.status_code == 400
        assert response.json()["error"] == "Failed to update cart item"
        assert api_client.get("/api/cart/1").json()["cart"] == []

    def test_remove_and_clear(self, api_client):
        add_to_cart(api_client)
        add_to_cart(api_client, product_id="2")

        assert api_client.delete("/api/cart/1/1").status_code == 200
        assert api_client.delete("/api/cart/1/1").status_code == 404

        assert api_client.delete("/api/cart/1/clear").status_code == 200
        assert api_client.get("/api/cart/1").json()["itemCount"] == 0


class TestCheckoutEndpoints:
    def test_checkout_then_confirmation(self, api_client, clock, catalog):
        add_to_cart(api_client, quantity=2)

        response = api_client.post("/api/checkout", json=CHECKOUT_BODY)
        assert response.status_code == 200
        data = response.json()
        assert data["order"]["id"] == "1"
        assert data["order"]["total"] == 9999.98
        assert data["order"]["status"] == "pending"
        assert data["order"]["itemCount"] == 1
        assert data["paymentMethod"] == "pix"
        assert data["estimatedDelivery"] == "3-5 business days"
        assert data["processingTime"].endswith("ms")

        assert api_client.get("/api/cart/1").json()["cart"] == []
        assert catalog.get_by_id("1").stock == 48
        assert api_client.get("/api/orders/1").json()["order"]["status"] == "pending"

        clock.advance(1.0)
        order = api_client.get("/api/orders/1").json()["order"]
        assert order["status"] == "confirmed"
        assert order["items"] == [{"userId": "1", "productId": "1", "quantity": 2}]

    def test_checkout_missing_fields(self, api_client):
        response = api_client.post("/api/checkout", json={"userId": "1"})
        assert response.status_code == 400
        assert response.json()["error"] == (
            "Missing required fields: userId, paymentMethod, shippingAddress, email"
        )

    def test_checkout_for_another_users_account(self, api_client):
        add_to_cart(api_client)
        response = api_client.post("/api/checkout", json={**CHECKOUT_BODY, "email": "joao@example.com"})
        assert response.status_code == 401
        assert response.json()["error"] == "Authentication failed"

    def test_checkout_empty_cart(self, api_client):
        response = api_client.post("/api/checkout", json=CHECKOUT_BODY)
        assert response.status_code == 400
        assert response.json()["error"] == "Cart is empty"

    def test_checkout_invalid_payment_method(self, api_client):
        add_to_cart(api_client)
        response = api_client.post("/api/checkout", json={**CHECKOUT_BODY, "paymentMethod": "bitcoin"})
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid payment method"
        assert data["validMethods"] == ["credit_card", "debit_card", "paypal", "pix"]

    def test_validate_reports_every_error(self, api_client):
        response = api_client.post("/api/checkout/validate", json={})
        assert response.status_code == 400
        data = response.json()
        assert data["errors"] == [
            "User ID is required",
            "Payment method is required",
            "Shipping address is required",
        ]
        assert "valid" not in data

    def test_validate_passes(self, api_client):
        add_to_cart(api_client)
        response = api_client.post(
            "/api/checkout/validate",
            json={"userId": "1", "paymentMethod": "paypal", "shippingAddress": "Rua A"},
        )
        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_calculate(self, api_client):
        add_to_cart(api_client, product_id="2", quantity=3)
        response = api_client.post("/api/checkout/calculate", json={"userId": "1", "shippingMethod": "express"})
        assert response.status_code == 200
        data = response.json()
        assert data["breakdown"] == {"subtotal": 300.0, "shipping": 19.99, "tax": 24.0, "total": 343.99}
        assert data["shippingMethod"] == "express"

    def test_calculate_requires_user(self, api_client):
        assert api_client.post("/api/checkout/calculate", json={}).status_code == 400


class TestOrderEndpoints:
    def test_order_not_found(self, api_client):
        response = api_client.get("/api/orders/42")
        assert response.status_code == 404
        assert response.json()["error"] == "Order not found"

    def test_user_orders_filters(self, api_client, clock):
        add_to_cart(api_client)
        api_client.post("/api/checkout", json=CHECKOUT_BODY)
        clock.advance(1.0)
        add_to_cart(api_client, product_id="3")
        api_client.post("/api/checkout", json=CHECKOUT_BODY)

        data = api_client.get("/api/orders/user/1").json()
        assert data["total"] == 2
        assert data["userId"] == "1"

        data = api_client.get("/api/orders/user/1", params={"status": "pending"}).json()
        assert [o["id"] for o in data["orders"]] == ["2"]

        data = api_client.get("/api/orders/user/1", params={"limit": 1}).json()
        assert [o["id"] for o in data["orders"]] == ["1"]
        assert data["filters"] == {"status": None, "limit": 1}

    @pytest.mark.parametrize("user_id", ["2", "unknown"])
    def test_user_without_orders(self, api_client, user_id):
        data = api_client.get(f"/api/orders/user/{user_id}").json()
        assert data["orders"] == []
        assert data["total"] == 0
