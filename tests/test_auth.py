"""
Authentication and role guards.

Tests cover:
- Login by email, refresh, profile
- Rejected credentials and inactive accounts
- Admin-only user management
"""
from app.models.user import UserRole
from tests.conftest import API, PASSWORD, auth_headers, make_user


def login(client, email, password=PASSWORD):
    return client.post(f"{API}/auth/login", json={"email": email, "password": password})


# ============================================================================
# Login and tokens
# ============================================================================

class TestLogin:
    def test_login_returns_tokens_and_user(self, client, admin):
        response = login(client, "admin@test.com")

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["refresh_token"]
        assert body["user"]["email"] == "admin@test.com"
        assert body["user"]["role"] == "admin"

    def test_wrong_password(self, client, admin):
        response = login(client, "admin@test.com", "not-the-password")

        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect email or password"

    def test_inactive_user(self, client, db):
        make_user(db, "off@test.com", UserRole.FRANCHISE, is_active=False)

        response = login(client, "off@test.com")

        assert response.status_code == 403

    def test_refresh_issues_new_access_token(self, client, admin):
        refresh = login(client, "admin@test.com").json()["refresh_token"]

        response = client.post(f"{API}/auth/refresh", json={"refresh_token": refresh})

        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_access_token_is_not_a_refresh_token(self, client, admin):
        access = login(client, "admin@test.com").json()["access_token"]

        response = client.post(f"{API}/auth/refresh", json={"refresh_token": access})

        assert response.status_code == 401


# ============================================================================
# Profile
# ============================================================================

class TestProfile:
    def test_me_requires_token(self, client, db):
        assert client.get(f"{API}/auth/me").status_code == 401

    def test_me(self, client, franchise_headers):
        response = client.get(f"{API}/auth/me", headers=franchise_headers)

        assert response.status_code == 200
        assert response.json()["role"] == "franchise"

    def test_change_password(self, client, admin, admin_headers):
        response = client.post(
            f"{API}/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "newpass456"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert login(client, "admin@test.com", "newpass456").status_code == 200

    def test_change_password_with_wrong_current(self, client, admin_headers):
        response = client.post(
            f"{API}/auth/change-password",
            json={"current_password": "wrong-one", "new_password": "newpass456"},
            headers=admin_headers,
        )

        assert response.status_code == 400


# ============================================================================
# User management
# ============================================================================

class TestUsers:
    def test_franchise_cannot_list_users(self, client, franchise_headers):
        response = client.get(f"{API}/users/", headers=franchise_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Unauthorized role"

    def test_admin_creates_user(self, client, admin_headers):
        response = client.post(
            f"{API}/users/",
            json={"name": "Second Admin", "email": "second@test.com", "password": "secret12", "role": "admin"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["role"] == "admin"

    def test_duplicate_email(self, client, admin, admin_headers):
        response = client.post(
            f"{API}/users/",
            json={"name": "Copy", "email": "admin@test.com", "password": "secret12"},
            headers=admin_headers,
        )

        assert response.status_code == 409

    def test_cannot_delete_franchise_account(self, client, admin_headers, franchise_user):
        response = client.delete(f"{API}/users/{franchise_user.id}", headers=admin_headers)

        assert response.status_code == 409

    def test_cannot_delete_self(self, client, admin, admin_headers):
        response = client.delete(f"{API}/users/{admin.id}", headers=admin_headers)

        assert response.status_code == 400

    def test_deactivated_token_is_refused(self, client, db, admin_headers):
        user = make_user(db, "temp@test.com", UserRole.FRANCHISE)
        headers = auth_headers(user)

        client.put(f"{API}/users/{user.id}", json={"is_active": False}, headers=admin_headers)

        assert client.get(f"{API}/auth/me", headers=headers).status_code == 403
