"""Integration tests for the discount endpoints."""

from storefront.discount.discount import DiscountType


class TestValidateDiscount:
    def test_valid_percentage_code(self, client, shop):
        shop.create_discount("SAVE10", DiscountType.PERCENTAGE, 1000, max_discount_amount=5000)

        response = client.post("/discounts/validate", json={"code": " save10 ", "subtotal": "900.00"})

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["code"] == "SAVE10"
        assert body["discount_amount"] == "50.00"
        assert body["max_discount_amount"] == "50.00"

    def test_unknown_code_is_reported_not_raised(self, client):
        response = client.post("/discounts/validate", json={"code": "nope", "subtotal": "100.00"})

        assert response.status_code == 200
        assert response.json() == {
            "valid": False,
            "code": "NOPE",
            "reason": "NotFound",
            "message": response.json()["message"],
            "discount_type": None,
            "discount_amount": None,
            "description": None,
            "min_order_amount": None,
            "max_discount_amount": None,
        }

    def test_below_minimum(self, client, shop):
        shop.create_discount("BIGSPEND", value=10000, min_order_amount=100000)

        response = client.post("/discounts/validate", json={"code": "BIGSPEND", "subtotal": "500.00"})

        assert response.json()["valid"] is False
        assert response.json()["reason"] == "BelowMinimum"

    def test_category_allow_list(self, client, shop, tshirt):
        shop.create_discount("SOCKSONLY", value=2000, applicable_categories=["cat-accessories"])

        response = client.post(
            "/discounts/validate",
            json={
                "code": "SOCKSONLY",
                "subtotal": "450.00",
                "items": [{"product_id": str(tshirt.id), "category_id": "cat-apparel"}],
            },
        )

        assert response.json()["reason"] == "NotApplicable"

    def test_negative_subtotal(self, client):
        response = client.post("/discounts/validate", json={"code": "X", "subtotal": "-1"})
        assert response.status_code == 400


class TestCreateDiscount:
    PAYLOAD = {
        "code": "EID2026",
        "description": "Eid sale",
        "discount_type": "percentage",
        "value": "15",
        "max_discount_amount": "300.00",
        "usage_limit": 100,
        "per_user_limit": 1,
    }

    def test_admin_creates_code(self, client, admin):
        response = client.post("/discounts", json=self.PAYLOAD, headers=admin)

        assert response.status_code == 201
        assert response.json()["discount_code_id"]

        check = client.post("/discounts/validate", json={"code": "eid2026", "subtotal": "1000.00"})
        assert check.json()["discount_amount"] == "150.00"

    def test_duplicate_code(self, client, admin):
        client.post("/discounts", json=self.PAYLOAD, headers=admin)

        response = client.post("/discounts", json={**self.PAYLOAD, "code": "eid2026"}, headers=admin)

        assert response.status_code == 400
        assert response.json()["error"]["reason"] == "DuplicateCode"

    def test_percentage_over_hundred(self, client, admin):
        response = client.post("/discounts", json={**self.PAYLOAD, "value": "120"}, headers=admin)

        assert response.status_code == 400
        assert response.json()["error"]["reason"] == "ValidationError"

    def test_customers_cannot_create_codes(self, client, customer):
        response = client.post("/discounts", json=self.PAYLOAD, headers=customer)
        assert response.status_code == 403
