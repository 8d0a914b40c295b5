import pytest


def _create_qr(client, user_id, **fields):
    payload = {"userId": user_id, "upiId": "alice@upi", "name": "Shop", **fields}
    response = client.post("/api/qr-codes", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _pay(client, qr_id, amount, payer=None, **fields):
    payload = {"qrCodeId": qr_id, "amount": amount, "payerUpiId": payer, **fields}
    response = client.post("/api/transactions", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def alice(registered_client):
    return registered_client.get("/api/users/1").json()


# =============================================================================
# Health & auth
# =============================================================================

class TestHealth:

    def test_plain_text(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.text == "Server is healthy!"


class TestAuthEndpoints:

    def test_register_returns_user_without_password(self, client):
        response = client.post("/api/register", json={"username": "bob", "password": "pw", "email": "bob@example.com"})

        assert response.status_code == 201
        body = response.json()
        assert body["username"] == "bob"
        assert body["email"] == "bob@example.com"
        assert "password" not in body

    def test_register_duplicate_is_conflict(self, registered_client):
        response = registered_client.post("/api/register", json={"username": "alice", "password": "x"})

        assert response.status_code == 409

    def test_register_validation_error(self, client):
        response = client.post("/api/register", json={"username": "bob"})

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Validation error")
        assert "password" in response.json()["detail"]

    def test_login_returns_token(self, registered_client):
        response = registered_client.post("/api/login", json={"username": "alice", "password": "secret"})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["username"] == "alice"
        assert "password" not in body["user"]
        assert body["token"]

    def test_login_failures_look_the_same(self, registered_client):
        wrong_password = registered_client.post("/api/login", json={"username": "alice", "password": "nope"})
        unknown_user = registered_client.post("/api/login", json={"username": "eve", "password": "secret"})

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json() == {"detail": "Invalid credentials"}

    def test_current_user_with_bearer_token(self, registered_client, auth_headers):
        registered_client.cookies.clear()

        response = registered_client.get("/api/user", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["username"] == "alice"
        assert response.json()["upiId"] == "alice@upi"
        assert "password" not in response.json()

    def test_current_user_requires_authentication(self, client):
        assert client.get("/api/user").status_code == 401

    def test_current_user_rejects_bad_token(self, registered_client):
        registered_client.cookies.clear()

        response = registered_client.get("/api/user", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    def test_session_cookie_resolves_same_user(self, registered_client):
        registered_client.post("/api/login", json={"username": "alice", "password": "secret"})

        response = registered_client.get("/api/user")

        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_logout_clears_session(self, registered_client):
        registered_client.post("/api/login", json={"username": "alice", "password": "secret"})

        response = registered_client.post("/api/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}
        assert registered_client.get("/api/user").status_code == 401


# =============================================================================
# Users
# =============================================================================

class TestUserEndpoints:

    def test_create_and_fetch(self, client):
        created = client.post("/api/users", json={"username": "carol", "password": "pw", "fullName": "Carol"})
        assert created.status_code == 201

        fetched = client.get(f"/api/users/{created.json()['id']}")

        assert fetched.status_code == 200
        assert fetched.json()["fullName"] == "Carol"

    def test_fetch_missing(self, client):
        assert client.get("/api/users/999").status_code == 404

    def test_non_numeric_id_is_validation_error(self, client):
        assert client.get("/api/users/abc").status_code == 400

    def test_partial_update(self, client, alice):
        response = client.patch(f"/api/users/{alice['id']}", json={"email": "alice@example.com"})

        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"
        assert response.json()["fullName"] == "Alice"

    def test_update_missing(self, client):
        assert client.patch("/api/users/999", json={"fullName": "X"}).status_code == 404


# =============================================================================
# QR codes
# =============================================================================

class TestQRCodeEndpoints:

    def test_create_renders_qr(self, client, alice):
        body = _create_qr(client, alice["id"], amount="100", description="Lunch", size="large", borderStyle="fancy")

        assert body["userId"] == alice["id"]
        assert body["amount"] == "100"
        assert body["size"] == "large"
        assert body["borderStyle"] == "fancy"
        assert body["qrData"].startswith("data:image/png;base64,")
        assert body["createdAt"]

    def test_create_applies_defaults(self, client, alice):
        body = _create_qr(client, alice["id"])

        assert (body["size"], body["borderStyle"], body["amount"]) == ("medium", "simple", None)

    def test_numeric_amount_is_accepted(self, client, alice):
        assert _create_qr(client, alice["id"], amount=250)["amount"] == "250"

    @pytest.mark.parametrize(
        "fields",
        [
            {"size": "huge"},
            {"borderStyle": "wavy"},
            {"amount": "ten"},
            {"amount": "-5"},
            {"amount": "1e30"},
            {"amount": "1.234"},
            {"upiId": "not-a-handle"},
            {"name": ""},
        ],
    )
    def test_create_validation_errors(self, client, alice, fields):
        payload = {"userId": alice["id"], "upiId": "alice@upi", "name": "Shop", **fields}

        response = client.post("/api/qr-codes", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Validation error")

    def test_create_for_unknown_user(self, client):
        response = client.post("/api/qr-codes", json={"userId": 999, "upiId": "a@upi", "name": "X"})

        assert response.status_code == 404

    def test_fetch_and_list(self, client, alice):
        first = _create_qr(client, alice["id"], name="first")
        second = _create_qr(client, alice["id"], name="second")

        assert client.get(f"/api/qr-codes/{first['id']}").json()["name"] == "first"
        listed = client.get(f"/api/users/{alice['id']}/qr-codes").json()
        assert [qr["id"] for qr in listed] == [second["id"], first["id"]]

    def test_fetch_missing(self, client):
        assert client.get("/api/qr-codes/999").status_code == 404

    def test_list_for_user_without_codes(self, client):
        response = client.get("/api/users/999/qr-codes")

        assert response.status_code == 200
        assert response.json() == []

    def test_delete_cascades(self, client, alice):
        qr = _create_qr(client, alice["id"])
        tx = _pay(client, qr["id"], "100", "x@bank")

        response = client.delete(f"/api/qr-codes/{qr['id']}")

        assert response.status_code == 204
        assert client.get(f"/api/qr-codes/{qr['id']}").status_code == 404
        assert client.get(f"/api/transactions/{tx['id']}").status_code == 404
        stats = client.get(f"/api/users/{alice['id']}/stats").json()
        assert (stats["activeQrCodes"], stats["totalTransactions"], stats["totalPayments"]) == (0, 0, "0")

    def test_delete_missing(self, client):
        assert client.delete("/api/qr-codes/999").status_code == 404


# =============================================================================
# Transactions
# =============================================================================

class TestTransactionEndpoints:

    def test_create_and_fetch(self, client, alice):
        qr = _create_qr(client, alice["id"])
        tx = _pay(client, qr["id"], "1250", "x@bank", payerName="Amit", metadata={"source": "demo"})

        assert tx["status"] == "completed"
        assert tx["metadata"] == {"source": "demo"}
        assert tx["timestamp"]

        fetched = client.get(f"/api/transactions/{tx['id']}").json()
        assert fetched["payerName"] == "Amit"
        assert fetched["amount"] == "1250"

    def test_fetch_missing(self, client):
        assert client.get("/api/transactions/999").status_code == 404

    def test_unknown_qr_code(self, client):
        response = client.post("/api/transactions", json={"qrCodeId": 999, "amount": "10"})

        assert response.status_code == 404

    @pytest.mark.parametrize("payload", [{}, {"amount": "abc"}, {"amount": "0"}, {"amount": "-1"}])
    def test_validation_errors(self, client, alice, payload):
        qr = _create_qr(client, alice["id"])

        response = client.post("/api/transactions", json={"qrCodeId": qr["id"], **payload})

        assert response.status_code == 400

    @pytest.mark.parametrize("amount", ["1e30", "123456789012.125", "1.234", "NaN", "Infinity", "1e2"])
    def test_out_of_range_amount_rejected_and_stats_unharmed(self, client, alice, amount):
        qr = _create_qr(client, alice["id"])

        response = client.post("/api/transactions", json={"qrCodeId": qr["id"], "amount": amount})

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Validation error")

        _pay(client, qr["id"], "10")
        stats = client.get(f"/api/users/{alice['id']}/stats").json()
        assert (stats["totalPayments"], stats["totalTransactions"]) == ("10", 1)

    def test_largest_allowed_amount(self, client, alice):
        qr = _create_qr(client, alice["id"])

        assert _pay(client, qr["id"], "99999999.99")["amount"] == "99999999.99"
        assert client.get(f"/api/users/{alice['id']}/stats").json()["totalPayments"] == "99999999.99"

    def test_listings(self, client, alice):
        a = _create_qr(client, alice["id"], name="A")
        b = _create_qr(client, alice["id"], name="B")
        first = _pay(client, a["id"], "10")
        second = _pay(client, b["id"], "20")
        third = _pay(client, a["id"], "30")

        by_qr = client.get(f"/api/qr-codes/{a['id']}/transactions").json()
        by_user = client.get(f"/api/users/{alice['id']}/transactions").json()

        assert [tx["id"] for tx in by_qr] == [third["id"], first["id"]]
        assert [tx["id"] for tx in by_user] == [third["id"], second["id"], first["id"]]


# =============================================================================
# Stats & demo data
# =============================================================================

class TestStatsEndpoints:

    def test_fresh_user_is_zero(self, client, alice):
        response = client.get(f"/api/users/{alice['id']}/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["userId"] == alice["id"]
        assert body["totalPayments"] == "0"
        assert (body["activeQrCodes"], body["totalTransactions"], body["uniquePayers"]) == (0, 0, 0)
        assert body["lastUpdated"]

    def test_two_payments_scenario(self, client):
        user = client.post("/api/register", json={"username": "demo", "password": "pw"}).json()
        qr = _create_qr(client, user["id"], upiId="demo@bank")
        _pay(client, qr["id"], "1250", "x@bank")
        _pay(client, qr["id"], "500", "y@bank")

        stats = client.get(f"/api/users/{user['id']}/stats").json()

        assert stats["totalPayments"] == "1750"
        assert stats["activeQrCodes"] == 1
        assert stats["totalTransactions"] == 2
        assert stats["uniquePayers"] == 2

    def test_unknown_user(self, client):
        assert client.get("/api/users/999/stats").status_code == 404

    def test_recompute(self, client, alice):
        qr = _create_qr(client, alice["id"])
        _pay(client, qr["id"], "12.50", "x@bank")

        response = client.post(f"/api/users/{alice['id']}/stats/recompute")

        assert response.status_code == 200
        assert response.json()["totalPayments"] == "12.5"
        assert client.post("/api/users/999/stats/recompute").status_code == 404


class TestDemoData:

    def test_seed_is_idempotent(self, client):
        assert client.post("/api/demo-data").status_code == 201
        assert client.post("/api/demo-data").status_code == 201

        login = client.post("/api/login", json={"username": "demo", "password": "password"})
        assert login.status_code == 200
        user_id = login.json()["user"]["id"]

        stats = client.get(f"/api/users/{user_id}/stats").json()
        assert stats["totalPayments"] == "6400"
        assert stats["activeQrCodes"] == 3
        assert stats["totalTransactions"] == 5
        assert len(client.get(f"/api/users/{user_id}/transactions").json()) == 5
