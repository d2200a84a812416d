"""
Tests for the health, users, products and orders endpoints.
"""

import pytest


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert body["data"]["errorCapture"] is False
        assert body["data"]["store"]["products"] == 4
        assert "timestamp" in body


class TestUsers:
    def test_list_users(self, client):
        body = client.get("/api/users").json()
        assert body["success"] is True
        assert body["data"]["total"] == 3

    def test_user_without_profile_renders(self, client):
        """The SSO user has no profile and has never logged in."""
        users = client.get("/api/users").json()["data"]["users"]
        alex = next(u for u in users if u["id"] == "usr_7g8h9i")
        assert alex["avatar"] is None
        assert alex["department"] is None
        assert alex["isActive"] is False

    def test_role_filter(self, client):
        users = client.get("/api/users?role=admin").json()["data"]["users"]
        assert [u["name"] for u in users] == ["Sarah Chen"]

    def test_invalid_role(self, client):
        resp = client.get("/api/users?role=superuser")
        assert resp.status_code == 400
        assert resp.json()["success"] is False


class TestProductList:
    def test_first_page_newest_first(self, client):
        data = client.get("/api/products?limit=2").json()["data"]
        assert [p["id"] for p in data["items"]] == ["prod_004", "prod_003"]
        assert data["hasMore"] is True
        assert data["nextCursor"] == "prod_002"

    def test_following_page(self, client):
        data = client.get("/api/products?limit=2&cursor=prod_002").json()["data"]
        assert [p["id"] for p in data["items"]] == ["prod_002", "prod_001"]
        assert data["hasMore"] is False
        assert data["nextCursor"] is None

    def test_uncategorised_product(self, client):
        items = client.get("/api/products").json()["data"]["items"]
        sensor = next(p for p in items if p["id"] == "prod_004")
        assert sensor["category"] is None

    @pytest.mark.parametrize("limit", ["abc", "0", "-3", "101", "500"])
    def test_bad_limit(self, client, limit):
        resp = client.get(f"/api/products?limit={limit}")
        assert resp.status_code == 400

    def test_largest_limit_allowed(self, client):
        data = client.get("/api/products?limit=100").json()["data"]
        assert len(data["items"]) == 4

    def test_limit_over_maximum_rejected(self, client):
        resp = client.get("/api/products?limit=101")
        assert resp.status_code == 400
        assert resp.json()["error"] == "limit must be between 1 and 100"


class TestProductDetail:
    @pytest.mark.parametrize("raw", ["prod_001", "1", "prod_1"])
    def test_id_forms(self, client, raw):
        body = client.get(f"/api/products/{raw}").json()
        assert body["data"]["id"] == "prod_001"
        assert body["data"]["formattedPrice"] == "$299.99"

    def test_invalid_id(self, client):
        resp = client.get("/api/products/abc")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid product ID"

    def test_unknown_product(self, client):
        assert client.get("/api/products/999").status_code == 404

    def test_inventory_status(self, client):
        data = client.get("/api/products/prod_004?inventory=true").json()["data"]
        assert data["inventory"] == {"inStock": True, "quantity": 12, "lowStock": False}

    def test_inventory_omitted_by_default(self, client):
        assert "inventory" not in client.get("/api/products/prod_004").json()["data"]


class TestProductUpdate:
    def test_partial_update(self, client, store):
        resp = client.patch("/api/products/prod_002", json={"price": 139.99})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["price"] == 139.99
        assert data["name"] == "Standard Widget"
        assert "updatedAt" in data
        assert store.products.get("prod_002")["price"] == 139.99

    def test_id_is_immutable(self, client, store):
        resp = client.patch("/api/products/prod_002", json={"id": "prod_777"})
        assert resp.status_code == 400
        assert "prod_777" not in store.products

    def test_negative_price(self, client):
        assert client.patch("/api/products/prod_002", json={"price": -1}).status_code == 400

    def test_empty_update(self, client):
        resp = client.patch("/api/products/prod_002", json={})
        assert resp.status_code == 400
        assert resp.json()["error"] == "No updatable fields provided"


class TestOrders:
    def test_list_with_summary(self, client):
        data = client.get("/api/orders").json()["data"]
        assert [o["id"] for o in data["orders"]] == ["ord_1003", "ord_1002", "ord_1001"]
        assert data["totalRevenue"] == 2299.91
        assert data["topCustomer"] == "Alex Rivera"

    def test_status_filter(self, client):
        data = client.get("/api/orders?status=completed").json()["data"]
        assert [o["id"] for o in data["orders"]] == ["ord_1001"]
        assert data["averageOrderValue"] == 649.97

    def test_empty_result_has_zero_summary(self, client):
        data = client.get("/api/orders?status=refunded").json()["data"]
        assert data["orders"] == []
        assert data["totalRevenue"] == 0
        assert data["averageOrderValue"] == 0
        assert data["topCustomer"] is None
