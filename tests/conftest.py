"""
Shared fixtures: a mongomock database in place of MongoDB, a TestClient and
signed-in users.
"""

import os

# Settings are read at import, so the environment is fixed before the app loads
os.environ["DATABASE_URL"] = ""
os.environ["DATABASE_NAME"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["MIDTRANS_SERVER_KEY"] = "SB-Mid-server-test"
os.environ["MIDTRANS_CLIENT_KEY"] = "SB-Mid-client-test"
os.environ["GEMINI_API_KEY"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["FIREBASE_CREDENTIALS"] = ""

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import app
from schemas import USER
from security import hash_password, token_for_user

PASSWORD = "secret123"


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["worklytic_test"]
    monkeypatch.setattr(database, "db", mock_db)
    return mock_db


@pytest.fixture
def client(db):
    return TestClient(app, raise_server_exceptions=False)


def make_user(**overrides) -> dict:
    data = {
        "full_name": "Test User",
        "email": "user@example.com",
        "password": hash_password(PASSWORD),
        "role": "freelancer",
        "profile_image": "",
        "profile_image_id": None,
        "balance": 0,
        "skills": [],
        "rating": 0,
        "total_reviews": 0,
    }
    data.update(overrides)
    return database.create_document(USER, data)


def auth_headers(user: dict) -> dict:
    return {"Authorization": f"Bearer {token_for_user(user)}"}


@pytest.fixture
def freelancer(db):
    return make_user(
        full_name="Budi Santoso",
        email="budi@example.com",
        role="freelancer",
        skills=["React Native", "Firebase"],
        hourly_rate=150000,
        about="Mobile developer",
    )


@pytest.fixture
def client_user(db):
    return make_user(full_name="Rina Wijaya", email="rina@example.com", role="client", company_name="Toko Maju")


@pytest.fixture
def freelancer_headers(freelancer):
    return auth_headers(freelancer)


@pytest.fixture
def client_headers(client_user):
    return auth_headers(client_user)
