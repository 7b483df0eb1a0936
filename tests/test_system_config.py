import pytest

from conftest import book
from config.clinicconfig import clinic_settings


@pytest.fixture(autouse=True)
def restore_clinic_settings():
    yield
    clinic_settings.__init__()


def test_read_config(client):
    config = client.get("/api/system/config").json()
    assert config["clinic_name"] == clinic_settings.CLINIC_NAME
    assert config["default_tax_rate"] == 18.0
    assert config["invoice_due_days"] == 7
    assert config["clinic_timezone"] == "Asia/Kolkata"


def test_admin_updates_config_in_memory(client, admin, receptionist):
    response = client.post("/api/system/config", json={"default_tax_rate": 12.0, "invoice_due_days": 14}, headers=admin)
    assert response.status_code == 200
    assert response.json()["default_tax_rate"] == 12.0
    assert clinic_settings.INVOICE_DUE_DAYS == 14

    invoice = client.post(
        "/api/billing/invoices",
        json={"patient_name": "Kiran Rao", "items": [{"description": "Consultation", "unit_price": "100"}]},
        headers=receptionist,
    ).json()
    assert invoice["total_amount"] == "112.00"


def test_only_admin_updates_config(client, receptionist):
    response = client.post("/api/system/config", json={"clinic_name": "Elsewhere"}, headers=receptionist)
    assert response.status_code == 403


def test_out_of_range_values_are_rejected(client, admin):
    response = client.post("/api/system/config", json={"default_tax_rate": 150}, headers=admin)
    assert response.status_code == 422


def test_reset_restores_defaults(client, admin):
    client.post("/api/system/config", json={"clinic_name": "Temporary Name"}, headers=admin)
    response = client.post("/api/system/admin/reset-all-configs", headers=admin)
    assert response.status_code == 200
    assert response.json()["reset_by"] == "admin@medicare-clinic.com"
    assert clinic_settings.CLINIC_NAME == "City Care Clinic"


def test_admin_passes_every_role_gate(client, admin):
    appointment = book(client, admin)
    assert client.post(f"/api/queue/appointments/{appointment['id']}/token", headers=admin).status_code == 200
    assert client.post(f"/api/queue/{appointment['appointment_date']}/call-next", headers=admin).json()["called"]["id"] == appointment["id"]


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
