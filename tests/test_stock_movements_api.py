from datetime import datetime, timedelta, timezone


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _create_product(client, token: str, sku: str = "GL-100", name: str = "Nitrile Gloves") -> str:
    res = client.post(
        "/products",
        json={"sku": sku, "name": name, "unit_price": 4.2},
        headers=_auth_headers(token),
    )
    assert res.status_code == 201, res.text
    return res.json()["id"]


def _move(client, token: str, product_id: str, movement_type: str, quantity: int, **extra):
    return client.post(
        "/stock-movements",
        json={"product_id": product_id, "movement_type": movement_type, "quantity": quantity, **extra},
        headers=_auth_headers(token),
    )


def _staff_token(client) -> str:
    register = client.post(
        "/auth/register",
        json={
            "username": "picker",
            "email": "picker@example.com",
            "password": "password123",
            "full_name": "Floor Picker",
        },
    )
    assert register.status_code == 201, register.text
    login = client.post("/auth/login", json={"username": "picker", "password": "password123"})
    assert login.status_code == 200, login.text
    return login.json()["access_token"]


def test_record_movement_returns_new_balance(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)

    res = _move(client, admin_token, product_id, "in", 100, reference_number="PO-1001")

    assert res.status_code == 201, res.text
    body = res.json()
    assert body["id"]
    assert body["movement_type"] == "in"
    assert body["quantity"] == 100
    assert body["new_balance"] == 100


def test_end_to_end_in_out_adjustment(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)

    assert _move(client, admin_token, product_id, "in", 100).json()["new_balance"] == 100
    assert _move(client, admin_token, product_id, "out", 30).json()["new_balance"] == 70
    adjusted = _move(client, admin_token, product_id, "adjustment", 50)

    assert adjusted.status_code == 201, adjusted.text
    assert adjusted.json()["quantity"] == 20
    assert adjusted.json()["new_balance"] == 50

    history = client.get(f"/stock-movements/product/{product_id}", headers=_auth_headers(admin_token))
    assert history.status_code == 200
    assert sorted((row["movement_type"], row["quantity"], row["qty_delta"]) for row in history.json()) == [
        ("adjustment", 20, -20),
        ("in", 100, 100),
        ("out", 30, -30),
    ]


def test_out_beyond_balance_returns_insufficient_stock_envelope(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)
    _move(client, admin_token, product_id, "in", 5)

    res = _move(client, admin_token, product_id, "out", 6)

    assert res.status_code == 409
    error = res.json()["error"]
    assert error["code"] == "insufficient_stock"
    assert error["path"] == "/stock-movements"
    assert error["request_id"]
    assert res.headers["X-Request-ID"] == error["request_id"]
    assert "X-API-Timeout-Hint-Ms" not in res.headers

    balance = client.get(f"/products/{product_id}/balance", headers=_auth_headers(admin_token))
    assert balance.json()["current_stock"] == 5


def test_invalid_movement_arguments_are_rejected(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)

    zero = _move(client, admin_token, product_id, "in", 0)
    negative = _move(client, admin_token, product_id, "out", -2)
    unknown_type = _move(client, admin_token, product_id, "transfer", 2)
    unknown_product = _move(client, admin_token, "missing", "in", 2)

    assert zero.status_code == 422
    assert zero.json()["error"]["code"] == "validation_error"
    assert negative.status_code == 422
    assert unknown_type.status_code == 400
    assert unknown_type.json()["error"]["code"] == "invalid_argument"
    assert unknown_product.status_code == 404
    assert unknown_product.json()["error"]["code"] == "not_found"


def test_oversized_quantity_is_a_validation_error(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)

    via_movements = _move(client, admin_token, product_id, "in", 2**63)
    via_product = client.post(
        f"/products/{product_id}/stock",
        json={"quantity": 2**31},
        headers=_auth_headers(admin_token),
    )

    assert via_movements.status_code == 422
    assert via_movements.json()["error"]["details"][0]["field"] == "quantity"
    assert via_product.status_code == 422
    balance = client.get(f"/products/{product_id}/balance", headers=_auth_headers(admin_token))
    assert balance.json()["current_stock"] == 0


def test_missing_quantity_is_a_validation_error(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)

    res = client.post(
        "/stock-movements",
        json={"product_id": product_id, "movement_type": "in"},
        headers=_auth_headers(admin_token),
    )

    assert res.status_code == 422
    assert res.json()["error"]["code"] == "validation_error"


def test_list_movements_filters_and_paginates(test_context, admin_token):
    client, _ = test_context
    gloves = _create_product(client, admin_token)
    tape = _create_product(client, admin_token, sku="TP-48", name="Packing Tape")
    for _ in range(3):
        _move(client, admin_token, gloves, "in", 10)
    _move(client, admin_token, gloves, "out", 4)
    _move(client, admin_token, tape, "in", 7)
    headers = _auth_headers(admin_token)

    everything = client.get("/stock-movements", headers=headers)
    assert everything.status_code == 200, everything.text
    assert everything.json()["pagination"]["total"] == 5
    assert everything.json()["pagination"]["per_page"] == 50

    first_page = client.get("/stock-movements", params={"limit": 2, "page": 1}, headers=headers).json()
    last_page = client.get("/stock-movements", params={"limit": 2, "page": 3}, headers=headers).json()
    assert len(first_page["movements"]) == 2
    assert first_page["pagination"]["total_pages"] == 3
    assert first_page["pagination"]["has_next"] is True
    assert len(last_page["movements"]) == 1
    assert last_page["pagination"]["has_next"] is False

    outs = client.get("/stock-movements", params={"movement_type": "out"}, headers=headers).json()
    assert [row["quantity"] for row in outs["movements"]] == [4]
    shouted = client.get("/stock-movements", params={"movement_type": " OUT "}, headers=headers)
    assert shouted.status_code == 200, shouted.text
    assert [row["quantity"] for row in shouted.json()["movements"]] == [4]

    tape_only = client.get("/stock-movements", params={"product_id": tape}, headers=headers).json()
    assert [(row["product_sku"], row["product_name"]) for row in tape_only["movements"]] == [
        ("TP-48", "Packing Tape")
    ]


def test_list_movements_date_filters(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)
    _move(client, admin_token, product_id, "in", 3)
    headers = _auth_headers(admin_token)
    today = datetime.now(timezone.utc).date()

    included = client.get(
        "/stock-movements",
        params={"start_date": today.isoformat(), "end_date": today.isoformat()},
        headers=headers,
    ).json()
    excluded = client.get(
        "/stock-movements",
        params={"start_date": (today + timedelta(days=1)).isoformat()},
        headers=headers,
    ).json()
    inverted = client.get(
        "/stock-movements",
        params={"start_date": today.isoformat(), "end_date": (today - timedelta(days=1)).isoformat()},
        headers=headers,
    )

    assert included["pagination"]["total"] == 1
    assert excluded["pagination"]["total"] == 0
    assert inverted.status_code == 400


def test_list_movements_rejects_bad_filters(test_context, admin_token):
    client, _ = test_context
    headers = _auth_headers(admin_token)

    bad_type = client.get("/stock-movements", params={"movement_type": "transfer"}, headers=headers)
    bad_page = client.get("/stock-movements", params={"page": 0}, headers=headers)

    assert bad_type.status_code == 400
    assert bad_page.status_code == 422


def test_product_history_for_unknown_product_is_not_found(test_context, admin_token):
    client, _ = test_context

    res = client.get("/stock-movements/product/missing", headers=_auth_headers(admin_token))

    assert res.status_code == 404


def test_movement_stats(test_context, admin_token):
    client, _ = test_context
    gloves = _create_product(client, admin_token)
    tape = _create_product(client, admin_token, sku="TP-48", name="Packing Tape")
    _move(client, admin_token, gloves, "in", 50)
    _move(client, admin_token, gloves, "out", 20)
    _move(client, admin_token, gloves, "out", 5)
    _move(client, admin_token, tape, "in", 8)

    res = client.get("/stock-movements/stats", headers=_auth_headers(admin_token))

    assert res.status_code == 200, res.text
    body = res.json()
    assert {row["movement_type"]: (row["count"], row["total_quantity"]) for row in body["stats"]} == {
        "in": (2, 58),
        "out": (2, 25),
    }
    assert body["top_products"][0] == {
        "id": gloves,
        "name": "Nitrile Gloves",
        "sku": "GL-100",
        "movement_count": 3,
        "total_in": 50,
        "total_out": 25,
    }
    today = datetime.now(timezone.utc).date().isoformat()
    assert {(row["date"], row["movement_type"], row["count"]) for row in body["trends"]} == {
        (today, "in", 2),
        (today, "out", 2),
    }


def test_reversal_is_admin_only(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)
    movement_id = _move(client, admin_token, product_id, "in", 12).json()["id"]
    staff_token = _staff_token(client)

    forbidden = client.delete(f"/stock-movements/{movement_id}", headers=_auth_headers(staff_token))
    assert forbidden.status_code == 403

    reversed_res = client.delete(f"/stock-movements/{movement_id}", headers=_auth_headers(admin_token))
    assert reversed_res.status_code == 200, reversed_res.text
    assert reversed_res.json()["new_balance"] == 0
    assert reversed_res.json()["product_id"] == product_id

    again = client.delete(f"/stock-movements/{movement_id}", headers=_auth_headers(admin_token))
    assert again.status_code == 404


def test_staff_can_record_movements(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)
    staff_token = _staff_token(client)

    res = _move(client, staff_token, product_id, "in", 4)

    assert res.status_code == 201, res.text
    history = client.get(f"/stock-movements/product/{product_id}", headers=_auth_headers(staff_token))
    assert history.json()[0]["created_by"] == "picker"


def test_reversing_adjustment_is_unsupported(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)
    _move(client, admin_token, product_id, "in", 10)
    adjustment_id = _move(client, admin_token, product_id, "adjustment", 4).json()["id"]

    res = client.delete(f"/stock-movements/{adjustment_id}", headers=_auth_headers(admin_token))

    assert res.status_code == 422
    assert res.json()["error"]["code"] == "unsupported_operation"
    balance = client.get(f"/products/{product_id}/balance", headers=_auth_headers(admin_token))
    assert balance.json()["current_stock"] == 4


def test_reversing_consumed_receipt_is_rejected(test_context, admin_token):
    client, _ = test_context
    product_id = _create_product(client, admin_token)
    receipt_id = _move(client, admin_token, product_id, "in", 10).json()["id"]
    _move(client, admin_token, product_id, "out", 7)

    res = client.delete(f"/stock-movements/{receipt_id}", headers=_auth_headers(admin_token))

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "insufficient_stock"
