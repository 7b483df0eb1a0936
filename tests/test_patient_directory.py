from datetime import date, datetime, timezone
from types import SimpleNamespace

from app.entity_resolver.patient_directory import (
    derive_patient_directory,
    patient_key,
    search_patients,
)


def visit(name, phone, on, created_hour, **extra):
    return SimpleNamespace(
        patient_name=name,
        patient_phone=phone,
        patient_age=extra.get("age"),
        patient_gender=extra.get("gender"),
        patient_email=extra.get("email"),
        appointment_date=on,
        created_at=datetime(2024, 1, 10, created_hour, tzinfo=timezone.utc),
    )


def test_one_entry_per_name_and_phone_first_seen_wins():
    newest = visit("A", "1", date(2024, 1, 5), 12, age="40")
    oldest = visit("A", "1", date(2024, 1, 1), 9, age="39")
    patients = derive_patient_directory([newest, oldest])

    assert len(patients) == 1
    assert patients[0].id == "A-1"
    assert patients[0].last_visit == date(2024, 1, 5)
    assert patients[0].age == "40"


def test_last_visit_follows_creation_order_not_appointment_date():
    # Booked later for an earlier date: it is still the first one seen
    booked_last = visit("A", "1", date(2024, 1, 1), 15)
    booked_first = visit("A", "1", date(2024, 2, 1), 8)
    patients = derive_patient_directory([booked_last, booked_first])
    assert patients[0].last_visit == date(2024, 1, 1)


def test_same_name_different_phone_are_different_patients():
    patients = derive_patient_directory(
        [visit("Priya", "111", date(2024, 1, 2), 10), visit("Priya", "222", date(2024, 1, 3), 9)]
    )
    assert [p.id for p in patients] == ["Priya-111", "Priya-222"]


def test_order_of_first_appearance_is_kept():
    patients = derive_patient_directory(
        [
            visit("C", "3", date(2024, 1, 3), 12),
            visit("A", "1", date(2024, 1, 2), 11),
            visit("C", "3", date(2024, 1, 1), 10),
            visit("B", "2", date(2024, 1, 1), 9),
        ]
    )
    assert [p.name for p in patients] == ["C", "A", "B"]


def test_dict_records_are_accepted():
    patients = derive_patient_directory([{"patient_name": "D", "patient_phone": "4", "appointment_date": None}])
    assert patients[0].to_dict()["id"] == "D-4"


def test_search():
    patients = derive_patient_directory(
        [
            visit("Anita Shah", "9000011111", date(2024, 1, 2), 10, email="anita@mailbox-example.com"),
            visit("Rahul Verma", "9000022222", date(2024, 1, 2), 9),
        ]
    )
    assert [p.name for p in search_patients(patients, "anita")] == ["Anita Shah"]
    assert [p.name for p in search_patients(patients, "22222")] == ["Rahul Verma"]
    assert [p.name for p in search_patients(patients, "MAILBOX")] == ["Anita Shah"]
    assert search_patients(patients, None) == patients


def test_patient_key():
    assert patient_key("Kiran Rao", "98765") == "Kiran Rao-98765"
