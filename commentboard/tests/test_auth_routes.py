import pytest
import psycopg2.errors
from datetime import datetime, timezone

from commentboard.auth_service.utils import create_token

USER_ROW = {
    "user_id": 1,
    "username": "testuser",
    "email": "test@example.com",
    "password_hash": "hashed_secret",
    "first_name": "Test",
    "last_name": "User",
    "is_active": True,
    "last_login": None,
    "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
}

REGISTER_PAYLOAD = {
    "username": "testuser",
    "email": "Test@Example.com",
    "password": "password123",
    "firstName": "Test",
    "lastName": "User",
}


@pytest.fixture
def mock_ph(mocker):
    mock_ph = mocker.patch("commentboard.auth_service.users.ph")
    mock_ph.hash.return_value = "hashed_secret"
    mock_ph.check_needs_rehash.return_value = False
    return mock_ph


def test_register_success(client, mock_db, mock_ph):
    mock_conn, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = dict(USER_ROW)

    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    assert body["data"]["user"]["id"] == 1
    assert body["data"]["user"]["fullName"] == "Test User"
    assert "passwordHash" not in body["data"]["user"]
    assert "password_hash" not in body["data"]["user"]
    assert "token" in body["data"]

    # Email is stored lowercased and only the hash reaches the database
    args, _ = mock_cursor.execute.call_args
    assert args[1] == ("testuser", "test@example.com", "hashed_secret", "Test", "User")
    mock_ph.hash.assert_called_once_with("password123")
    assert mock_conn.close.called


def test_register_missing_fields(client):
    response = client.post("/api/auth/register", json={})

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["message"] == "All fields are required"
    assert "username is required" in body["errors"]


def test_register_short_password(client):
    payload = dict(REGISTER_PAYLOAD, password="12345")
    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 400
    assert "Password must be at least 6 characters" in response.get_json()["errors"]


def test_register_invalid_email_and_username(client):
    payload = dict(REGISTER_PAYLOAD, email="not-an-email", username="a b")
    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 400
    assert len(response.get_json()["errors"]) == 2


def test_register_duplicate_email(client, mock_db, mock_ph):
    mock_conn, mock_cursor = mock_db
    mock_cursor.execute.side_effect = psycopg2.errors.UniqueViolation(
        'duplicate key value violates unique constraint "users_email_key"'
    )

    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 409
    assert response.get_json()["message"] == "User already registered with this email address"


def test_register_duplicate_username(client, mock_db, mock_ph):
    mock_conn, mock_cursor = mock_db
    mock_cursor.execute.side_effect = psycopg2.errors.UniqueViolation(
        'duplicate key value violates unique constraint "users_username_key"'
    )

    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 409
    assert response.get_json()["message"] == "Username is already taken"


def test_login_success(client, mock_db, mock_ph):
    mock_conn, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = dict(USER_ROW)
    mock_ph.verify.return_value = True

    response = client.post("/api/auth/login", json={"identifier": "Test@Example.com", "password": "password123"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["user"]["id"] == 1
    assert "token" in data

    # Single lookup matching username OR lowercased email
    lookup_sql, lookup_args = mock_cursor.execute.call_args_list[0][0]
    assert "username = %s OR email = %s" in lookup_sql
    assert lookup_args == ("Test@Example.com", "test@example.com")

    # last_login is stamped
    update_sql, _ = mock_cursor.execute.call_args_list[1][0]
    assert "last_login = CURRENT_TIMESTAMP" in update_sql


def test_login_invalid_credentials(client, mock_db, mock_ph):
    from argon2.exceptions import VerifyMismatchError

    mock_conn, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = dict(USER_ROW)
    mock_ph.verify.side_effect = VerifyMismatchError()

    response = client.post("/api/auth/login", json={"identifier": "testuser", "password": "wrongpassword"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid credentials"


def test_login_unknown_user(client, mock_db, mock_ph):
    mock_conn, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None

    response = client.post("/api/auth/login", json={"identifier": "ghost", "password": "whatever"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid credentials"
    mock_ph.verify.assert_not_called()


def test_login_missing_credentials(client):
    response = client.post("/api/auth/login", json={"identifier": "testuser"})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Email/username and password are required"


def test_get_profile_success(client, mock_db):
    mock_conn, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = dict(USER_ROW)
    token = create_token(1)

    response = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    user = response.get_json()["data"]["user"]
    assert user["email"] == "test@example.com"
    assert "password_hash" not in user


def test_get_profile_unauthorized(client):
    response = client.get("/api/auth/profile")

    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_get_profile_user_deleted(client, mock_db):
    mock_conn, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None
    token = create_token(99)

    response = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_get_profile_user_inactive(client, mock_db):
    mock_conn, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = dict(USER_ROW, is_active=False)
    token = create_token(1)

    response = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_check_availability(client, mock_db):
    mock_conn, mock_cursor = mock_db
    # email lookup finds a row, username lookup does not
    mock_cursor.fetchone.side_effect = [{"?column?": 1}, None]

    response = client.post("/api/auth/check-availability",
                           json={"email": "TAKEN@example.com", "username": "free_name"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["email"]["available"] is False
    assert data["username"]["available"] is True

    email_args = mock_cursor.execute.call_args_list[0][0][1]
    assert email_args == ("taken@example.com",)


def test_check_availability_only_checks_provided_fields(client, mock_db):
    mock_conn, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None

    response = client.post("/api/auth/check-availability", json={"username": "someone"})

    data = response.get_json()["data"]
    assert "email" not in data
    assert data["username"]["available"] is True
    assert mock_cursor.execute.call_count == 1


def test_check_availability_rejects_non_string(client):
    response = client.post("/api/auth/check-availability", json={"email": 42})
    assert response.status_code == 400
