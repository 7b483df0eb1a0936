import pytest

from conftest import book

MEDICINE = {
    "name": "Paracetamol",
    "category": "Analgesic",
    "strength": "500mg",
    "form": "Tablet",
    "manufacturer": "Cipla",
    "price": "1.50",
    "stock_quantity": 200,
    "reorder_level": 20,
}


def add_medicine(client, headers, **overrides):
    response = client.post("/api/medicines", json={**MEDICINE, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def medicine_line(medicine, **overrides):
    line = {
        "medicine_id": medicine["id"],
        "name": medicine["name"],
        "category": medicine["category"],
        "dosage": "1 tablet",
        "frequency": "Twice daily",
        "duration": "5 days",
        "timing": "after_meal",
    }
    line.update(overrides)
    return line


def prescription_payload(*lines, **overrides):
    payload = {
        "patient_name": "Kiran Rao",
        "patient_phone": "9876543210",
        "patient_age": "34",
        "prescription_date": "2026-03-02",
        "diagnosis": "Viral fever",
        "medicines": list(lines),
        "instructions": "Drink plenty of fluids",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def paracetamol(client, doctor):
    return add_medicine(client, doctor)


@pytest.fixture
def cetirizine(client, doctor):
    return add_medicine(client, doctor, name="Cetirizine", category="Antihistamine", strength="10mg")


def test_doctor_name_comes_from_the_session(client, doctor, paracetamol):
    response = client.post(
        "/api/prescriptions",
        json=prescription_payload(medicine_line(paracetamol), doctor_name="Dr. Somebody Else"),
        headers=doctor,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["doctor_name"] == "Dr. Ravi Kumar"
    assert body["doctor_id"] is not None
    assert body["status"] == "active"
    assert [m["name"] for m in body["medicines"]] == ["Paracetamol"]


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"patient_name": "  "}, "Please select a patient"),
        ({"diagnosis": ""}, "Please enter diagnosis"),
        ({"medicines": []}, "Please add at least one medicine"),
    ],
)
def test_prescription_validation(client, doctor, paracetamol, overrides, message):
    response = client.post(
        "/api/prescriptions",
        json=prescription_payload(medicine_line(paracetamol), **overrides),
        headers=doctor,
    )
    assert response.status_code == 422
    assert message in response.text


def test_medicine_lines_need_dosage_frequency_and_duration(client, doctor, paracetamol):
    response = client.post(
        "/api/prescriptions",
        json=prescription_payload(medicine_line(paracetamol, frequency="  ")),
        headers=doctor,
    )
    assert response.status_code == 422
    assert "Please enter frequency for Paracetamol" in response.text


def test_medicine_appears_once_per_prescription(client, doctor, paracetamol):
    response = client.post(
        "/api/prescriptions",
        json=prescription_payload(medicine_line(paracetamol), medicine_line(paracetamol, dosage="2 tablets")),
        headers=doctor,
    )
    assert response.status_code == 422
    assert "already on this prescription" in response.text


def test_receptionist_cannot_prescribe(client, receptionist, doctor, paracetamol):
    response = client.post("/api/prescriptions", json=prescription_payload(medicine_line(paracetamol)), headers=receptionist)
    assert response.status_code == 403


def test_draft_from_appointment(client, receptionist, doctor):
    appointment = book(client, receptionist, symptoms="Headache")
    draft = client.get(f"/api/prescriptions/draft/from-appointment/{appointment['id']}", headers=doctor).json()
    assert draft["appointment_id"] == appointment["id"]
    assert draft["patient_id"] == "Kiran Rao-9876543210"
    assert draft["symptoms"] == "Headache"
    assert draft["prescription_date"] == appointment["appointment_date"]
    assert draft["medicines"] == []

    missing = client.get("/api/prescriptions/draft/from-appointment/999", headers=doctor)
    assert missing.status_code == 404


def test_edit_replaces_medicine_lines(client, doctor, paracetamol, cetirizine):
    created = client.post("/api/prescriptions", json=prescription_payload(medicine_line(paracetamol)), headers=doctor).json()

    response = client.put(
        f"/api/prescriptions/{created['id']}",
        json=prescription_payload(
            medicine_line(paracetamol, dosage="2 tablets"),
            medicine_line(cetirizine, timing="bedtime"),
            status="completed",
        ),
        headers=doctor,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert [(m["name"], m["dosage"]) for m in body["medicines"]] == [("Paracetamol", "2 tablets"), ("Cetirizine", "1 tablet")]


def test_my_prescriptions_are_matched_by_doctor_name(client, doctor, other_doctor, paracetamol):
    client.post("/api/prescriptions", json=prescription_payload(medicine_line(paracetamol)), headers=doctor)
    client.post(
        "/api/prescriptions",
        json=prescription_payload(medicine_line(paracetamol), patient_name="Other Patient"),
        headers=other_doctor,
    )

    mine = client.get("/api/prescriptions/mine", headers=doctor).json()
    assert [p["patient_name"] for p in mine] == ["Kiran Rao"]

    everything = client.get("/api/prescriptions", headers=doctor).json()
    assert len(everything) == 2


def test_list_filters(client, doctor, paracetamol):
    client.post("/api/prescriptions", json=prescription_payload(medicine_line(paracetamol)), headers=doctor)
    client.post(
        "/api/prescriptions",
        json=prescription_payload(medicine_line(paracetamol), diagnosis="Migraine", status="pending"),
        headers=doctor,
    )

    searched = client.get("/api/prescriptions", params={"search": "migraine"}, headers=doctor).json()
    assert [p["diagnosis"] for p in searched] == ["Migraine"]

    active = client.get("/api/prescriptions", params={"status": "active"}, headers=doctor).json()
    assert [p["diagnosis"] for p in active] == ["Viral fever"]


def test_delete_needs_confirmation(client, doctor, paracetamol):
    created = client.post("/api/prescriptions", json=prescription_payload(medicine_line(paracetamol)), headers=doctor).json()
    url = f"/api/prescriptions/{created['id']}"

    assert client.delete(url, headers=doctor).status_code == 400
    assert client.get(url, headers=doctor).status_code == 200

    assert client.delete(url, params={"confirm": "true"}, headers=doctor).status_code == 200
    assert client.get(url, headers=doctor).status_code == 404
