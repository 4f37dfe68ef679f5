"""HTTP API tests over the in-memory storage."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from loyalty.domain.entities import utcnow


def register(client: TestClient, email="alice@example.com", password="pa55word"):
    response = client.post(
        "/api/v1/users",
        json={"name": "Alice", "email": email, "password": password},
    )
    assert response.status_code == 202, response.text
    data = response.json()
    return data["user"], {"Authorization": f"Bearer {data['authentication_token']['token']}"}


@pytest.fixture
def admin_headers(client, app, uow_factory):
    """Register an admin directly through the service layer and log in."""
    from loyalty.services.users import UserService

    service = UserService(uow_factory, app.state.jwt_service, bcrypt_rounds=4)
    # The in-memory lock is bound to the client's event loop on first use.
    user = client.portal.call(
        service.register, "Admin", "admin@example.com", "pa55word", True
    )
    token, _ = service.issue_token(user)
    return {"Authorization": f"Bearer {token}"}


def voucher_body(code="SAVE10", **overrides):
    now = utcnow()
    body = {
        "code": code,
        "description": "Ten percent off",
        "discount": 10,
        "is_percentage": True,
        "starts": (now - timedelta(days=1)).isoformat(),
        "expires": (now + timedelta(days=30)).isoformat(),
        "usage_limit": 2,
    }
    body.update(overrides)
    return body


class TestHealthEndpoint:
    """Test health check endpoints."""

    def test_health_check_returns_ok(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert "timestamp" in data

    def test_readiness(self, client: TestClient):
        response = client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}


class TestUsersAPI:
    """Registration, login and points."""

    def test_register_and_login(self, client):
        user, _ = register(client)
        assert user["email"] == "alice@example.com"
        assert user["points"] == 0
        assert "password_hash" not in user

        response = client.post(
            "/api/v1/tokens/authentication",
            json={"email": "alice@example.com", "password": "pa55word"},
        )
        assert response.status_code == 201
        assert response.json()["token"]

    def test_register_duplicate_email(self, client):
        register(client)

        response = client.post(
            "/api/v1/users",
            json={"name": "Alice", "email": "alice@example.com", "password": "pa55word"},
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_FAILED"
        assert error["details"]["fields"]["email"] == (
            "a user with this email address already exists"
        )

    def test_login_wrong_password(self, client):
        register(client)

        response = client.post(
            "/api/v1/tokens/authentication",
            json={"email": "alice@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_requires_token(self, client):
        assert client.get("/api/v1/users/me/points").status_code == 401

        response = client.get(
            "/api/v1/users/me/points", headers={"Authorization": "Bearer junk"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_non_admin_credits_own_points(self, client):
        _, headers = register(client)

        response = client.post("/api/v1/users/me/points", json={"points": 120}, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"points": 120}

        assert client.get("/api/v1/users/me/points", headers=headers).json() == {"points": 120}
        assert client.get("/api/v1/users/me", headers=headers).json()["points"] == 120

    def test_negative_points(self, client):
        _, headers = register(client)

        response = client.post("/api/v1/users/me/points", json={"points": -5}, headers=headers)

        assert response.status_code == 422
        assert "points" in response.json()["error"]["details"]["fields"]


class TestExchangeAPI:
    """Points to voucher exchange."""

    def test_exchange(self, client):
        _, headers = register(client)
        client.post("/api/v1/users/me/points", json={"points": 200}, headers=headers)

        response = client.post(
            "/api/v1/users/me/exchange",
            json={"points": 150, "description": "Free coffee", "discount": 100},
            headers=headers,
        )

        assert response.status_code == 201, response.text
        data = response.json()
        assert data["points"] == 50
        assert data["voucher"]["usage_limit"] == 1

        held = client.get("/api/v1/users/me/vouchers", headers=headers).json()["vouchers"]
        assert [v["voucher"]["code"] for v in held] == [data["voucher"]["code"]]
        assert held[0]["remaining_uses"] == 1

    def test_insufficient_points(self, client):
        _, headers = register(client)
        client.post("/api/v1/users/me/points", json={"points": 100}, headers=headers)

        response = client.post(
            "/api/v1/users/me/exchange",
            json={"points": 150, "description": "Too much", "discount": 10},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INSUFFICIENT_POINTS"
        assert client.get("/api/v1/users/me/points", headers=headers).json() == {"points": 100}
        assert client.get("/api/v1/users/me/vouchers", headers=headers).json() == {"vouchers": []}


class TestVouchersAPI:
    """Voucher catalogue and the redeem/use flow."""

    def test_admin_required_to_create(self, client):
        _, headers = register(client)

        response = client.post("/api/v1/vouchers", json=voucher_body(), headers=headers)

        assert response.status_code == 403

    def test_create_get_delete(self, client, admin_headers):
        response = client.post("/api/v1/vouchers", json=voucher_body(), headers=admin_headers)
        assert response.status_code == 201, response.text
        assert response.json()["code"] == "SAVE10"

        response = client.get("/api/v1/vouchers/SAVE10", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["usage_count"] == 0

        response = client.post("/api/v1/vouchers", json=voucher_body(), headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_CODE"

        assert client.delete("/api/v1/vouchers/SAVE10", headers=admin_headers).status_code == 200
        response = client.get("/api/v1/vouchers/SAVE10", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_create_invalid(self, client, admin_headers):
        response = client.post(
            "/api/v1/vouchers",
            json=voucher_body(code="BAD-CODE", discount=101),
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert set(response.json()["error"]["details"]["fields"]) == {"code", "discount"}

    def test_admin_use_until_exhausted(self, client, admin_headers):
        client.post("/api/v1/vouchers", json=voucher_body(usage_limit=1), headers=admin_headers)

        response = client.put("/api/v1/vouchers/SAVE10/use", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["active"] is False

        response = client.put("/api/v1/vouchers/SAVE10/use", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EDIT_CONFLICT"

        assert client.put("/api/v1/vouchers/NOPE/use", headers=admin_headers).status_code == 404

    def test_list_with_cursor(self, client, admin_headers):
        for code in ("A1", "B2", "C3"):
            client.post("/api/v1/vouchers", json=voucher_body(code), headers=admin_headers)

        first = client.get("/api/v1/vouchers?page_size=2", headers=admin_headers).json()
        assert [v["code"] for v in first["vouchers"]] == ["A1", "B2"]
        assert first["metadata"] == {"cursor": "B2", "page_size": 2}

        second = client.get(
            f"/api/v1/vouchers?page_size=2&cursor={first['metadata']['cursor']}",
            headers=admin_headers,
        ).json()
        assert [v["code"] for v in second["vouchers"]] == ["C3"]

    def test_list_rejects_bad_filters(self, client, admin_headers):
        response = client.get(
            "/api/v1/vouchers?page_size=500&sort=password_hash", headers=admin_headers
        )

        assert response.status_code == 422
        assert set(response.json()["error"]["details"]["fields"]) == {"page_size", "sort"}

    def test_redeem_and_use(self, client, admin_headers):
        client.post("/api/v1/vouchers", json=voucher_body(usage_limit=2), headers=admin_headers)
        _, alice = register(client, "alice@example.com")
        _, bob = register(client, "bob@example.com")

        response = client.post(
            "/api/v1/users/me/vouchers/redeem", json={"code": "SAVE10", "uses": 2}, headers=alice
        )
        assert response.status_code == 201
        assert response.json() == {"code": "SAVE10", "uses": 2}

        response = client.post(
            "/api/v1/users/me/vouchers/redeem", json={"code": "SAVE10"}, headers=alice
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_GRANTED"

        client.post("/api/v1/users/me/vouchers/redeem", json={"code": "SAVE10"}, headers=bob)

        response = client.post("/api/v1/users/me/vouchers/use", json={"code": "SAVE10"}, headers=alice)
        assert response.status_code == 200
        assert response.json() == {"code": "SAVE10", "remaining_uses": 1}

        response = client.post("/api/v1/users/me/vouchers/use", json={"code": "SAVE10"}, headers=bob)
        assert response.status_code == 200

        response = client.post("/api/v1/users/me/vouchers/use", json={"code": "SAVE10"}, headers=alice)
        assert response.status_code == 409

        # The exhausted voucher is pruned from alice's holdings.
        assert client.get("/api/v1/users/me/vouchers", headers=alice).json() == {"vouchers": []}

    def test_use_not_held(self, client, admin_headers):
        client.post("/api/v1/vouchers", json=voucher_body(), headers=admin_headers)
        _, headers = register(client)

        response = client.post("/api/v1/users/me/vouchers/use", json={"code": "SAVE10"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VOUCHER_NOT_AVAILABLE"

    def test_expire_sweep(self, client, admin_headers):
        now = utcnow()
        client.post(
            "/api/v1/vouchers",
            json=voucher_body(
                "OLD",
                starts=(now - timedelta(days=5)).isoformat(),
                expires=(now - timedelta(days=1)).isoformat(),
            ),
            headers=admin_headers,
        )

        response = client.post("/api/v1/vouchers/expire", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"expired": 1}
        assert client.get("/api/v1/vouchers/OLD", headers=admin_headers).json()["active"] is False
