import jwt

from auth import check_password, decode_token, gravatar_url, hash_password, issue_token
from database import USERS


def test_register_returns_token_for_current_user(client, jane):
    resp = client.get("/api/auth", headers=jane["headers"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == jane["id"]
    assert body["name"] == "Jane Doe"
    assert body["email"] == "jane@devconnector.io"
    assert "password" not in body
    assert body["avatar"].startswith("https://www.gravatar.com/avatar/")


def test_register_stores_hashed_password(client, db, jane):
    user = db[USERS].find_one({"email": "jane@devconnector.io"})
    assert user["password"] != "secret123"
    assert check_password("secret123", user["password"])


def test_register_duplicate_email(client, jane):
    resp = client.post("/api/users", json={"name": "Other", "email": "jane@devconnector.io", "password": "secret123"})
    assert resp.status_code == 400
    assert resp.json() == {"msg": "User already exists"}


def test_register_validation_messages(client):
    resp = client.post("/api/users", json={"name": "", "email": "not-an-email", "password": "123"})
    assert resp.status_code == 400
    errors = {e["param"]: e["msg"] for e in resp.json()["errors"]}
    assert errors == {
        "name": "Name is required",
        "email": "Please include a valid email",
        "password": "Please enter a password with 6 or more characters",
    }


def test_login(client, jane):
    resp = client.post("/api/auth", json={"email": "jane@devconnector.io", "password": "secret123"})
    assert resp.status_code == 200
    token = resp.json()["token"]
    assert client.get("/api/auth", headers={"x-auth-token": token}).json()["id"] == jane["id"]


def test_login_wrong_password_and_unknown_email_look_the_same(client, jane):
    wrong = client.post("/api/auth", json={"email": "jane@devconnector.io", "password": "nope-nope"})
    unknown = client.post("/api/auth", json={"email": "ghost@devconnector.io", "password": "secret123"})
    assert wrong.status_code == unknown.status_code == 400
    assert wrong.json() == unknown.json() == {"msg": "Invalid Credentials"}


def test_missing_token(client):
    resp = client.get("/api/auth")
    assert resp.status_code == 401
    assert resp.json() == {"msg": "No token, authorization denied"}


def test_tampered_token(client, jane):
    token = jane["headers"]["x-auth-token"]
    resp = client.get("/api/auth", headers={"x-auth-token": token[:-2] + "xx"})
    assert resp.status_code == 401
    assert resp.json() == {"msg": "Token is not valid"}


def test_token_signed_with_other_secret(client, jane):
    token = jwt.encode({"user": {"id": jane["id"]}}, "other-secret", algorithm="HS256")
    assert client.get("/api/auth", headers={"x-auth-token": token}).status_code == 401


def test_token_roundtrip(settings):
    token = issue_token("5f1d7f1c2a4b3c0012345678", settings)
    assert decode_token(token, settings) == "5f1d7f1c2a4b3c0012345678"


def test_expired_token(client, settings, jane):
    token = jwt.encode({"user": {"id": jane["id"]}, "exp": 1}, settings.jwt_secret, algorithm="HS256")
    resp = client.get("/api/auth", headers={"x-auth-token": token})
    assert resp.status_code == 401


def test_deleted_user_is_not_found(client, db, jane):
    db[USERS].delete_many({})
    resp = client.get("/api/auth", headers=jane["headers"])
    assert resp.status_code == 404


def test_gravatar_normalizes_email():
    assert gravatar_url(" Jane@DevConnector.io ") == gravatar_url("jane@devconnector.io")
    assert "s=200" in gravatar_url("jane@devconnector.io")


def test_hash_password_is_salted():
    assert hash_password("secret123") != hash_password("secret123")


def test_password_whitespace_is_significant(client, make_user):
    make_user(email="spaces@devconnector.io", password="  secret123  ")
    trimmed = client.post("/api/auth", json={"email": "spaces@devconnector.io", "password": "secret123"})
    assert trimmed.status_code == 400
    exact = client.post("/api/auth", json={"email": "spaces@devconnector.io", "password": "  secret123  "})
    assert exact.status_code == 200


def test_password_length_counts_spaces(client):
    resp = client.post("/api/users", json={"name": "Pad", "email": "pad@devconnector.io", "password": "   abc"})
    assert resp.status_code == 200
