from tests.conftest import ADMIN_SECRET


def _seed_coupons(fake_db):
    fake_db.rows("customers")[0]["coupons"] = 3
    fake_db.seed(
        "coupon_history",
        {"id": "c-a", "customer_id": "cust-1", "coupon_code": "STAMP-A",
         "issued_at": "2024-05-01T00:00:00+00:00", "valid_until": None},
        {"id": "c-b", "customer_id": "cust-1", "coupon_code": "STAMP-B",
         "issued_at": "2024-05-02T00:00:00+00:00", "valid_until": None},
        {"id": "c-c", "customer_id": "cust-1", "coupon_code": "BIRTHDAY-C",
         "issued_at": "2024-05-03T00:00:00+00:00", "valid_until": "2020-01-01T00:00:00+00:00"},
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_login_registered(client, customer):
    response = client.post("/identity/login", json={"phone_number": "010-1234-5678"})
    assert response.status_code == 200
    data = response.json()
    assert data["identity"]["id"] == "cust-1"
    assert data["stamp_card"] == {"stamps": 4, "target": 10, "remaining": 6, "reward_ready": False}
    assert data["unread"]["badge"] == 0


def test_login_guest_and_malformed(client, fake_db):
    response = client.post("/identity/login", json={"phone_number": "010-5555-0001"})
    assert response.status_code == 200
    assert response.json()["identity"]["is_guest"] is True
    assert response.json()["identity"]["nickname"] == "0001"

    response = client.post("/identity/login", json={"phone_number": "0105555"})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_refresh_missing_customer(client, fake_db):
    response = client.get("/identity/ghost")
    assert response.status_code == 404


def test_card_selection_flow(client, customer, fake_db):
    fake_db.seed("visit_history", {"id": "v1", "customer_id": "cust-1",
                                   "visit_date": "2024-05-01T00:00:00+00:00"})

    assert len(client.get("/visits/cards").json()) == 10

    response = client.put("/visits/v1/card", json={"card": "The Star", "review": "x" * 101})
    assert response.status_code == 400

    response = client.put("/visits/v1/card", json={"card": "The Star", "review": "Calm evening"})
    assert response.status_code == 200
    assert response.json()["message"]
    assert response.json()["visit"]["selected_card"] == "The Star"

    response = client.put("/visits/v1/review", json={"review": "Even better"})
    assert response.json()["visit"]["card_review"] == "Even better"

    assert client.delete("/visits/v1").status_code == 200
    assert client.get("/visits/cust-1").json() == []
    assert client.delete("/visits/v1").status_code == 404


def test_coupon_redemption(client, customer, fake_db):
    _seed_coupons(fake_db)

    book = client.get("/coupons/cust-1").json()
    assert len(book["stamp"]) == 2
    assert len(book["birthday"]) == 1

    response = client.post("/coupons/c-a/redeem", json={"secret": "wrong"})
    assert response.status_code == 403
    assert len(fake_db.rows("coupon_history")) == 3

    response = client.post("/coupons/c-c/redeem", json={"secret": ADMIN_SECRET})
    assert response.status_code == 410

    response = client.post("/coupons/c-a/redeem", json={"secret": ADMIN_SECRET})
    assert response.status_code == 200
    assert response.json()["remaining_coupons"] == 2
    assert response.json()["coupon_type"] == "stamp"
    assert fake_db.rows("customers")[0]["coupons"] == 2

    assert client.post("/coupons/c-a/redeem", json={"secret": ADMIN_SECRET}).status_code == 404


def test_storage_failure_is_acknowledged(client, customer, fake_db):
    fake_db.fail("coupon_history", "select")
    response = client.get("/coupons/cust-1")
    assert response.status_code == 502
    assert response.json()["error"] == "storage_error"


def test_poll_flow(client, fake_db):
    fake_db.seed("votes", {
        "id": 1, "title": "Pick one", "options": [{"id": 1, "text": "A"}, {"id": 2, "text": "B"}],
        "allow_multiple": False, "max_selections": 1, "is_active": True,
        "created_at": "2024-05-01T00:00:00+00:00",
    })

    assert [p["id"] for p in client.get("/polls").json()] == [1]
    assert client.get("/polls/1/responses/voter-1").json() is None

    toggled = client.post("/polls/1/toggle", json={"selection": [1], "option_id": 2}).json()
    assert toggled["selection"] == [2]

    response = client.post("/polls/1/responses", json={"voter_id": "voter-1", "selection": [1]})
    assert response.status_code == 200
    assert response.json()["revised"] is False

    response = client.post("/polls/1/responses", json={"voter_id": "voter-1", "selection": [2]})
    assert response.json()["revised"] is True

    tally = client.get("/polls/1/tally").json()
    assert tally["tally"]["total"] == 1
    assert tally["tally"]["counts"] == {"1": 0, "2": 1}
    assert tally["percentages"] == {"1": 0, "2": 100}

    response = client.post("/polls/1/responses", json={"voter_id": "voter-1", "selection": []})
    assert response.status_code == 400

    assert client.get("/polls/9/tally").status_code == 404


def test_tally_reads_poll_once(client, fake_db):
    fake_db.seed("votes", {
        "id": 1, "title": "Pick one", "options": [{"id": 1, "text": "A"}, {"id": 2, "text": "B"}],
        "allow_multiple": False, "max_selections": 1, "is_active": True,
        "created_at": "2024-05-01T00:00:00+00:00",
    })
    fake_db.seed("vote_responses", {"id": 1, "vote_id": 1, "customer_id": "a", "selected_options": [2]})

    response = client.get("/polls/1/tally")

    assert response.json()["percentages"] == {"1": 0, "2": 100}
    assert fake_db.calls == [("votes", "select"), ("vote_responses", "select")]


def test_notice_and_report_flow(client, customer, fake_db):
    fake_db.seed(
        "notices",
        {"id": 1, "title": "Hi", "content": "Welcome", "is_pinned": False, "is_published": True,
         "created_at": "2024-05-01T00:00:00+00:00"},
    )
    fake_db.seed(
        "bug_reports",
        {"id": 1, "customer_id": "cust-1", "category": "app", "title": "Crash", "description": "d",
         "status": "resolved", "admin_response": "Fixed", "response_read": False},
    )

    assert client.get("/notices/unread/cust-1").json() == {"notices": 1, "reports": 1, "badge": 2}

    result = client.post("/notices/read/cust-1").json()
    assert result["marked"] == 1
    assert result["unread"]["badge"] == 1
    assert client.post("/notices/read/cust-1").json()["unread"]["notices"] == 0

    result = client.post("/reports/read/cust-1").json()
    assert result["marked"] == 1
    assert result["unread"]["badge"] == 0

    response = client.post("/reports", json={
        "customer_id": "cust-1", "category": "store", "title": "Chairs", "description": "Wobbly",
    })
    assert response.status_code == 200
    assert response.json()["report"]["customer_nickname"] == "Mina"
    assert len(client.get("/reports/cust-1").json()) == 2

    assert client.get("/notices").json()[0]["content_html"] == "Welcome"


def test_reports_with_legacy_pending_status(client, customer, fake_db):
    fake_db.seed(
        "bug_reports",
        {"id": 1, "customer_id": "cust-1", "category": "app", "title": "Old", "description": "d",
         "status": "pending", "admin_response": None, "response_read": False},
    )

    response = client.get("/reports/cust-1")

    assert response.status_code == 200
    assert response.json()[0]["status"] == "received"
