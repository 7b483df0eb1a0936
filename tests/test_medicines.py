from test_prescriptions import MEDICINE, add_medicine


def test_catalogue_search_and_category(client, doctor, receptionist):
    add_medicine(client, doctor)
    add_medicine(client, doctor, name="Amoxicillin", category="Antibiotic", manufacturer="Sun Pharma")
    add_medicine(client, doctor, name="Azithromycin", category="Antibiotic", manufacturer="Zydus")

    names = [m["name"] for m in client.get("/api/medicines", headers=receptionist).json()]
    assert names == ["Amoxicillin", "Azithromycin", "Paracetamol"]

    antibiotics = client.get("/api/medicines", params={"category": "Antibiotic"}, headers=doctor).json()
    assert [m["name"] for m in antibiotics] == ["Amoxicillin", "Azithromycin"]

    by_maker = client.get("/api/medicines", params={"search": "zydus"}, headers=doctor).json()
    assert [m["name"] for m in by_maker] == ["Azithromycin"]


def test_required_fields(client, doctor):
    response = client.post("/api/medicines", json={**MEDICINE, "strength": " "}, headers=doctor)
    assert response.status_code == 422

    negative = client.post("/api/medicines", json={**MEDICINE, "stock_quantity": -1}, headers=doctor)
    assert negative.status_code == 422


def test_update(client, doctor):
    medicine = add_medicine(client, doctor)
    response = client.put(
        f"/api/medicines/{medicine['id']}",
        json={**MEDICINE, "stock_quantity": 15, "price": "2.25"},
        headers=doctor,
    )
    assert response.status_code == 200
    assert response.json()["stock_quantity"] == 15
    assert response.json()["price"] == "2.25"


def test_receptionist_cannot_change_catalogue(client, doctor, receptionist):
    medicine = add_medicine(client, doctor)
    assert client.post("/api/medicines", json=MEDICINE, headers=receptionist).status_code == 403
    assert client.delete(f"/api/medicines/{medicine['id']}", params={"confirm": "true"}, headers=receptionist).status_code == 403


def test_delete_needs_confirmation(client, doctor):
    medicine = add_medicine(client, doctor)
    url = f"/api/medicines/{medicine['id']}"

    refused = client.delete(url, headers=doctor)
    assert refused.status_code == 400
    assert "confirm=true" in refused.json()["detail"]

    assert client.delete(url, params={"confirm": "true"}, headers=doctor).status_code == 200
    assert client.get(url, headers=doctor).status_code == 404
