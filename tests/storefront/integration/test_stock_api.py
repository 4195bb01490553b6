"""Integration tests for the stock movement endpoints."""


def test_record_purchase(client, admin, tshirt, shop):
    variant = shop.variant(tshirt, "TS-001-M-BLK")

    response = client.post(
        f"/stock/variants/{variant.id}/movements",
        json={"movement_type": "purchase", "quantity": 12, "note": "Supplier delivery"},
        headers=admin,
    )

    assert response.status_code == 201
    assert response.json()["previous_stock"] == 3
    assert response.json()["new_stock"] == 15
    assert shop.stock_of(variant.id) == 15


def test_damage_cannot_exceed_stock(client, admin, tshirt, shop):
    variant = shop.variant(tshirt, "TS-001-M-BLK")

    response = client.post(
        f"/stock/variants/{variant.id}/movements",
        json={"movement_type": "damage", "quantity": 4},
        headers=admin,
    )

    assert response.status_code == 400
    assert response.json()["error"]["reason"] == "InsufficientStock"
    assert shop.stock_of(variant.id) == 3


def test_sale_movements_are_not_recorded_by_hand(client, admin, tshirt, shop):
    variant = shop.variant(tshirt, "TS-001-M-BLK")

    response = client.post(
        f"/stock/variants/{variant.id}/movements",
        json={"movement_type": "sale", "quantity": -1},
        headers=admin,
    )

    assert response.status_code == 400


def test_history_replays_to_current_stock(client, admin, tshirt, shop):
    variant = shop.variant(tshirt, "TS-001-M-BLK")
    shop.place_order([shop.line(tshirt, 2, variant)])

    response = client.get(f"/stock/variants/{variant.id}/movements", headers=admin)

    assert response.status_code == 200
    history = response.json()
    assert [m["movement_type"] for m in history["movements"]] == ["purchase", "sale"]
    assert history["replayed_stock"] == 1 == shop.stock_of(variant.id)


def test_unknown_variant(client, admin):
    response = client.post(
        "/stock/variants/missing/movements",
        json={"movement_type": "purchase", "quantity": 1},
        headers=admin,
    )
    assert response.status_code == 404


def test_customers_cannot_touch_stock(client, customer, tshirt, shop):
    variant = shop.variant(tshirt, "TS-001-M-BLK")
    response = client.get(f"/stock/variants/{variant.id}/movements", headers=customer)
    assert response.status_code == 403
