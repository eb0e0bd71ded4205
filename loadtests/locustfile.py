"""
Locust load-test scenarios for the ShopFast API.

Run against a local server:

    shopfast serve --port 3000
    locust -f loadtests/locustfile.py --host http://localhost:3000

Use tags to pick a scenario, e.g. `--tags checkout` or `--tags browse`.
"""

import random

from locust import FastHttpUser, between, constant, tag, task

PRODUCT_IDS = [str(i) for i in range(1, 11)]
SEARCH_TERMS = ["iphone", "pro", "wireless", "professional", "4k", "laptop", "camera"]
CATEGORIES = ["smartphone", "laptop", "headphone", "camera", "tv", "watch", "tablet"]
PAYMENT_METHODS = ["credit_card", "debit_card", "paypal", "pix"]
SHIPPING_METHODS = ["standard", "express", "overnight"]

# Seed accounts; every one of them can check out.
ACCOUNTS = [
    ("1", "daniel@example.com"),
    ("2", "joao@example.com"),
    ("3", "maria@example.com"),
    ("4", "ana@example.com"),
    ("5", "carlos@example.com"),
]


def check_timed(resp, expected_status=200):
    """Fail the request unless it has the expected status and a responseTime."""
    if resp.status_code != expected_status:
        resp.failure(f"unexpected status {resp.status_code}")
        return None
    try:
        data = resp.json()
    except ValueError:
        resp.failure("response is not JSON")
        return None
    if "responseTime" not in data:
        resp.failure("missing responseTime in response")
        return None
    return data


class BrowsingUser(FastHttpUser):
    """Catalog reads: listing, search, featured and product detail."""

    weight = 3
    wait_time = between(0.5, 2)

    @tag("browse")
    @task(4)
    def list_products(self):
        with self.client.get("/api/products?limit=20", name="products", catch_response=True) as resp:
            check_timed(resp)

    @tag("browse", "search")
    @task(3)
    def search(self):
        term = random.choice(SEARCH_TERMS)
        with self.client.get(
            f"/api/products/search?q={term}&minRating=4.5",
            name="products/search",
            catch_response=True,
        ) as resp:
            check_timed(resp)

    @tag("browse")
    @task(2)
    def by_category(self):
        category = random.choice(CATEGORIES)
        with self.client.get(
            f"/api/products/category/{category}",
            name="products/category",
            catch_response=True,
        ) as resp:
            check_timed(resp)

    @tag("browse")
    @task(1)
    def featured(self):
        with self.client.get("/api/products/featured", name="products/featured", catch_response=True) as resp:
            check_timed(resp)

    @tag("browse")
    @task(2)
    def product_detail(self):
        product_id = random.choice(PRODUCT_IDS)
        with self.client.get(f"/api/products/{product_id}", name="products/:id", catch_response=True) as resp:
            check_timed(resp)


class CheckoutUser(FastHttpUser):
    """The full purchase journey: auth, cart, validation, totals, checkout, order."""

    weight = 1
    wait_time = between(1, 3)

    def on_start(self):
        self.user_id, self.email = random.choice(ACCOUNTS)

    @tag("checkout")
    @task
    def purchase(self):
        with self.client.post(
            "/api/auth",
            json={"email": self.email, "password": "testpassword123"},
            name="auth",
            catch_response=True,
        ) as resp:
            if check_timed(resp) is None:
                return

        for product_id in random.sample(PRODUCT_IDS[:8], k=random.randint(1, 3)):
            with self.client.post(
                "/api/cart",
                json={"userId": self.user_id, "productId": product_id, "quantity": 1},
                name="cart/add",
                catch_response=True,
            ) as resp:
                check_timed(resp)

        with self.client.get(f"/api/cart/{self.user_id}", name="cart", catch_response=True) as resp:
            check_timed(resp)

        address = {"street": "Rua A, 100", "city": "São Paulo", "zip": "01000-000"}
        payment = random.choice(PAYMENT_METHODS)

        with self.client.post(
            "/api/checkout/validate",
            json={"userId": self.user_id, "paymentMethod": payment, "shippingAddress": address},
            name="checkout/validate",
            catch_response=True,
        ) as resp:
            # Another virtual user on the same account may have emptied the cart.
            if resp.status_code == 400:
                resp.success()
                return
            check_timed(resp)

        with self.client.post(
            "/api/checkout/calculate",
            json={"userId": self.user_id, "shippingMethod": random.choice(SHIPPING_METHODS)},
            name="checkout/calculate",
            catch_response=True,
        ) as resp:
            check_timed(resp)

        with self.client.post(
            "/api/checkout",
            json={
                "userId": self.user_id,
                "paymentMethod": payment,
                "shippingAddress": address,
                "email": self.email,
                "password": "testpassword123",
            },
            name="checkout",
            catch_response=True,
        ) as resp:
            data = check_timed(resp)
            if data is None:
                return
            order_id = data["order"]["id"]

        with self.client.get(f"/api/orders/{order_id}", name="orders/:id", catch_response=True) as resp:
            check_timed(resp)


class HealthProbe(FastHttpUser):
    """Constant low-rate health checks, as a monitor would do."""

    weight = 1
    wait_time = constant(5)

    @tag("health")
    @task
    def health(self):
        with self.client.get("/health", name="health", catch_response=True) as resp:
            check_timed(resp)
