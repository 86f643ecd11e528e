import pytest
import jwt

from amplifier.config import Settings
from amplifier.auth import TokenManager, UserService, hash_password, verify_password
from amplifier.auth.users import validate_registration

from conftest import register_and_login

SECRET = "test-signing-secret-of-at-least-32-bytes"


# --- Passwords ---

def test_password_hash_roundtrip():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_verify_password_malformed_hash():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


# --- Tokens ---

def test_default_signing_secret_is_long_enough_for_hs256():
    default = Settings.model_fields["JWT_SECRET"].default
    assert default == "change-me-to-a-long-random-secret"
    assert len(default.encode()) >= 32


def test_token_issue_and_verify():
    manager = TokenManager(SECRET, expires_minutes=60)
    token = manager.issue("7")
    assert manager.verify(token) == "7"

    claims = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert claims["userId"] == "7"
    assert claims["exp"] - claims["iat"] == 3600


def test_token_expired():
    manager = TokenManager(SECRET, expires_minutes=-1)
    assert manager.verify(manager.issue("7")) is None


def test_token_wrong_secret():
    token = TokenManager(SECRET).issue("7")
    assert TokenManager(SECRET[::-1]).verify(token) is None


def test_token_garbage():
    assert TokenManager(SECRET).verify("not.a.token") is None


# --- Registration rules ---

@pytest.mark.parametrize("username,email,password,error", [
    ("alice", "alice@example.com", "short", "Password must be at least 8 characters long"),
    ("alice", "not-an-email", "longenough", "Please enter a valid email address"),
    ("alice", "a b@example.com", "longenough", "Please enter a valid email address"),
    ("al", "alice@example.com", "longenough", "Username must be 3-20 characters and contain only letters, numbers, and underscores"),
    ("alice-smith", "alice@example.com", "longenough", "Username must be 3-20 characters and contain only letters, numbers, and underscores"),
    ("a" * 21, "alice@example.com", "longenough", "Username must be 3-20 characters and contain only letters, numbers, and underscores"),
])
def test_validate_registration_errors(username, email, password, error):
    assert validate_registration(username, email, password) == error


def test_validate_registration_ok():
    assert validate_registration("alice_01", "alice@example.com", "longenough") is None


def test_user_service_register_and_login():
    users = UserService(TokenManager(SECRET))

    result = users.register("bob", "Bob@Example.com", "password123")
    assert "error" not in result
    assert result["user"]["username"] == "bob"
    assert result["user"]["email"] == "bob@example.com"

    assert users.register("bob", "other@example.com", "password123") == {"error": "User already exists"}
    assert users.register("bobby", "bob@example.com", "password123") == {"error": "User already exists"}

    login = users.login("bob@example.com", "password123")
    assert login["user"] == result["user"]
    assert TokenManager(SECRET).verify(login["token"]) == result["user"]["id"]

    assert users.login("bob@example.com", "wrong-password") is None
    assert users.login("nobody@example.com", "password123") is None


def test_user_service_profile():
    users = UserService(TokenManager(SECRET))
    user = users.register("carol", "carol@example.com", "password123")["user"]
    assert users.get_profile(user["id"]) == user
    assert users.get_profile("999") is None
    assert users.get_profile("abc") is None


# --- API ---

def test_register_endpoint(client):
    response = client.post(
        "/api/register",
        json={"username": "dave", "email": "dave@example.com", "password": "password123"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["username"] == "dave"
    assert "password_hash" not in body["user"]


def test_register_endpoint_duplicate(client):
    register_and_login(client)
    response = client.post(
        "/api/register",
        json={"username": "alice", "email": "alice@example.com", "password": "s3cretpass"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists"


def test_register_endpoint_invalid(client):
    response = client.post(
        "/api/register",
        json={"username": "x", "email": "x@example.com", "password": "password123"},
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Username must be")


def test_login_endpoint_invalid_credentials(client):
    register_and_login(client)
    response = client.post("/api/login", json={"email": "alice@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


def test_me_endpoint(client, auth):
    user_id, headers = auth
    response = client.get("/api/user/me", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"id": user_id, "username": "alice", "email": "alice@example.com"}


def test_me_endpoint_without_token(client):
    response = client.get("/api/user/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Access denied. No token provided."


def test_me_endpoint_with_invalid_token(client):
    response = client.get("/api/user/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Invalid token."
