# tests/conftest.py
import os

# Must be set before anything imports config.appconfig
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ["LOG_LEVEL"] = "WARNING"

import re
from datetime import date

import pytest
import resend
from fastapi.testclient import TestClient

from app.database.connection import async_session_maker, create_all_tables, drop_all_tables
from app.main import app
from app.users.security import get_password_hash
from app.users.user_models.user_model import User

QUEUE_DAY = date(2026, 3, 2)
PASSWORD = "s3cret-pass"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def app_client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def outbox(monkeypatch):
    """Every email the app tries to send, instead of calling Resend."""
    sent = []
    monkeypatch.setattr(resend.Emails, "send", lambda params: sent.append(params) or {"id": "test"})
    return sent


@pytest.fixture
def client(app_client, outbox):
    app_client.portal.call(drop_all_tables)
    app_client.portal.call(create_all_tables)
    yield app_client


def register(client, email, full_name, role, password=PASSWORD):
    response = client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": password,
            "confirm_password": password,
            "full_name": full_name,
            "role": role,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


def login(client, email, password=PASSWORD, role=None):
    body = {"email": email, "password": password}
    if role:
        body["role"] = role
    return client.post("/api/auth/login", json=body)


def auth_headers(client, email, password=PASSWORD):
    response = login(client, email, password)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def receptionist(client):
    register(client, "desk@medicare-clinic.com", "Asha Menon", "receptionist")
    return auth_headers(client, "desk@medicare-clinic.com")


@pytest.fixture
def doctor(client):
    register(client, "ravi@medicare-clinic.com", "Dr. Ravi Kumar", "doctor")
    return auth_headers(client, "ravi@medicare-clinic.com")


@pytest.fixture
def other_doctor(client):
    register(client, "meera@medicare-clinic.com", "Dr. Meera Nair", "doctor")
    return auth_headers(client, "meera@medicare-clinic.com")


@pytest.fixture
def admin(client):
    async def _create_admin():
        async with async_session_maker() as db:
            db.add(
                User(
                    email="admin@medicare-clinic.com",
                    hashed_password=get_password_hash(PASSWORD),
                    full_name="Clinic Admin",
                    role="admin",
                    is_active=True,
                    is_verified=True,
                )
            )
            await db.commit()

    client.portal.call(_create_admin)
    return auth_headers(client, "admin@medicare-clinic.com")


def appointment_payload(**overrides):
    payload = {
        "patient_name": "Kiran Rao",
        "patient_phone": "9876543210",
        "patient_email": "kiran@mailbox-example.com",
        "patient_age": 34,
        "patient_gender": "male",
        "doctor_name": "Dr. Ravi Kumar",
        "appointment_date": QUEUE_DAY.isoformat(),
        "appointment_time": "10:00",
        "appointment_type": "consultation",
        "symptoms": "Fever and cough",
    }
    payload.update(overrides)
    return payload


def book(client, headers, **overrides):
    response = client.post("/api/appointments", json=appointment_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def issue_token(client, headers, appointment_id):
    response = client.post(f"/api/queue/appointments/{appointment_id}/token", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def link_from_email(message) -> str:
    return re.search(r"href='([^']+)'", message["html"]).group(1)
