from unittest.mock import patch

from conftest import PASSWORD, auth_headers
from security import decode_token


def test_sign_up(client, db):
    res = client.post(
        "/api/auth/sign-up",
        json={"full_name": "Sari Lestari", "email": "sari@example.com", "password": "secret123"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["email"] == "sari@example.com"
    assert user["role"] == "freelancer"
    assert "password" not in user
    assert decode_token(body["data"]["token"])["id"] == user["_id"]

    stored = db["user"].find_one({"email": "sari@example.com"})
    assert stored["password"] != "secret123"


def test_sign_up_duplicate_email(client, freelancer):
    res = client.post(
        "/api/auth/sign-up",
        json={"full_name": "Other", "email": "budi@example.com", "password": "secret123", "role": "client"},
    )
    assert res.status_code == 400
    assert res.json()["errors"] == {"email": "Email already registered"}


def test_sign_up_validation(client, db):
    res = client.post("/api/auth/sign-up", json={"full_name": "X", "email": "not-an-email", "password": "123"})
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["message"] == "Validation Error"
    assert set(body["errors"]) == {"email", "password"}


def test_sign_in(client, freelancer):
    res = client.post("/api/auth/sign-in", json={"email": "budi@example.com", "password": PASSWORD})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["user"]["full_name"] == "Budi Santoso"
    assert decode_token(data["token"])["sub"] == "budi@example.com"


def test_sign_in_wrong_password(client, freelancer):
    res = client.post("/api/auth/sign-in", json={"email": "budi@example.com", "password": "nope"})
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Invalid email or password"}


def test_sign_in_unknown_email(client, db):
    res = client.post("/api/auth/sign-in", json={"email": "ghost@example.com", "password": PASSWORD})
    assert res.status_code == 401


def test_firebase_token(client, freelancer):
    with patch("integrations.firebase.firebase_admin.get_app"), patch(
        "integrations.firebase.auth.create_custom_token", return_value=b"firebase-token"
    ) as create:
        res = client.post("/api/auth/firebase-token", headers=auth_headers(freelancer))
    assert res.status_code == 200
    assert res.json()["data"] == {"token": "firebase-token"}
    uid, claims = create.call_args.args[:2]
    assert uid == str(freelancer["_id"])
    assert claims == {"role": "freelancer", "email": "budi@example.com"}


def test_firebase_token_not_configured(client, freelancer):
    with patch("integrations.firebase.firebase_admin.get_app", side_effect=ValueError("no app")):
        res = client.post("/api/auth/firebase-token", headers=auth_headers(freelancer))
    assert res.status_code == 503
    assert res.json()["service"] == "firebase"


def test_firebase_token_requires_login(client, db):
    res = client.post("/api/auth/firebase-token")
    assert res.status_code == 401
