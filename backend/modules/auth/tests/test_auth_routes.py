"""
API tests for login, registration and the current-user endpoints.
"""

from core.auth import decode_token
from tests.factories import DEFAULT_PASSWORD, UserFactory


class TestLogin:
    def test_login_returns_token(self, client, db_session):
        user = UserFactory(email="chef@example.com")

        response = client.post("/auth/login", json={"email": "chef@example.com", "password": DEFAULT_PASSWORD})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "chef@example.com"
        payload = decode_token(data["token"])
        assert payload["sub"] == str(user.id)
        assert payload["role"] == "staff"

    def test_email_is_case_insensitive(self, client, db_session):
        UserFactory(email="chef@example.com")

        response = client.post("/auth/login", json={"email": "Chef@Example.com", "password": DEFAULT_PASSWORD})

        assert response.status_code == 200

    def test_wrong_password(self, client, db_session):
        UserFactory(email="chef@example.com")

        response = client.post("/auth/login", json={"email": "chef@example.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_disabled_account(self, client, db_session):
        UserFactory(email="gone@example.com", is_active=False)

        response = client.post("/auth/login", json={"email": "gone@example.com", "password": DEFAULT_PASSWORD})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "ACCOUNT_DISABLED"

    def test_token_works_on_staff_routes(self, client, db_session):
        UserFactory(email="chef@example.com")
        token = client.post(
            "/auth/login", json={"email": "chef@example.com", "password": DEFAULT_PASSWORD}
        ).json()["data"]["token"]

        response = client.get("/orders", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200


class TestRegister:
    def test_manager_registers_staff(self, client, manager_headers):
        response = client.post(
            "/auth/register",
            json={
                "email": "New.Cook@Example.com",
                "password": "long-enough-pw",
                "first_name": "New",
                "last_name": "Cook",
            },
            headers=manager_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["email"] == "new.cook@example.com"
        assert response.json()["data"]["role"] == "staff"

    def test_duplicate_email(self, client, manager_headers, staff_user):
        response = client.post(
            "/auth/register",
            json={
                "email": staff_user.email,
                "password": "long-enough-pw",
                "first_name": "Dup",
                "last_name": "User",
            },
            headers=manager_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "USER_EXISTS"

    def test_staff_cannot_register(self, client, staff_headers):
        response = client.post(
            "/auth/register",
            json={"email": "x@example.com", "password": "long-enough-pw", "first_name": "X", "last_name": "Y"},
            headers=staff_headers,
        )

        assert response.status_code == 403


class TestCurrentUser:
    def test_me(self, client, staff_user, staff_headers):
        data = client.get("/auth/me", headers=staff_headers).json()["data"]

        assert data["id"] == staff_user.id
        assert data["role"] == "staff"

    def test_update_profile(self, client, staff_headers):
        response = client.put("/auth/me", json={"first_name": "Renamed"}, headers=staff_headers)

        assert response.json()["data"]["first_name"] == "Renamed"

    def test_change_password(self, client, staff_user, staff_headers):
        response = client.put(
            "/auth/change-password",
            json={"current_password": DEFAULT_PASSWORD, "new_password": "brand-new-secret"},
            headers=staff_headers,
        )

        assert response.status_code == 200
        login = client.post(
            "/auth/login", json={"email": staff_user.email, "password": "brand-new-secret"}
        )
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, staff_headers):
        response = client.put(
            "/auth/change-password",
            json={"current_password": "wrong", "new_password": "brand-new-secret"},
            headers=staff_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PASSWORD"
