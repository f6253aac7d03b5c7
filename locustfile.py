from locust import HttpUser, task, between
import random

class ShopperUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Register a shopper for this simulated client
        email = f"shopper_{random.randint(1, 1_000_000)}@example.com"
        r = self.client.post("/auth/register", json={"email": email, "password": "loadtest-pass"})
        if r.status_code == 201:
            self.headers = {"Authorization": f"Bearer {r.json()['token']}"}
        else:
            self.headers = None

    @task(3)
    def browse_products(self):
        self.client.get("/products")

    @task(2)
    def add_to_cart(self):
        if not self.headers:
            return
        products = self.client.get("/products").json()
        if not products:
            return
        product = random.choice(products)
        self.client.post("/cart", json={"product_id": product["id"], "quantity": random.randint(1, 3)}, headers=self.headers)

    @task(1)
    def checkout(self):
        if not self.headers:
            return
        items = self.client.get("/cart", headers=self.headers).json()
        if not items:
            return
        products = {p["id"]: p for p in self.client.get("/products").json()}
        lines = [
            {
                "product_id": i["product_id"],
                "product_name": products[i["product_id"]]["name"],
                "product_image": products[i["product_id"]].get("image_url"),
                "quantity": i["quantity"],
                "price": products[i["product_id"]]["price"],
            }
            for i in items
            if i["product_id"] in products
        ]
        if lines:
            self.client.post("/orders", json={"items": lines}, headers=self.headers)
