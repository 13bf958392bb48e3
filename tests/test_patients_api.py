from datetime import datetime, time

from conftest import add_appointment, add_patient, bearer, upcoming

API = "/api/patients"

PATIENT = {
    "national_id": "35000111",
    "first_name": "Marta",
    "last_name": "Gomez",
    "email": "Marta@Example.com",
    "phone": "",
    "birth_date": "1990-04-12",
}


async def test_create_and_list_patients(client, professional, other_professional):
    res = await client.post(API, json=PATIENT, headers=bearer(professional))
    assert res.status_code == 201
    body = res.json()
    assert body["full_name"] == "Marta Gomez"
    assert body["email"] == "marta@example.com"
    assert body["phone"] is None

    res = await client.post(API, json=PATIENT, headers=bearer(professional))
    assert res.status_code == 409

    assert [p["national_id"] for p in (await client.get(API, headers=bearer(professional))).json()] == [
        "35000111"
    ]
    assert (await client.get(API, headers=bearer(other_professional))).json() == []


async def test_patients_seen_in_appointments_are_listed(client, session_factory, professional):
    patient = await add_patient(session_factory, "37000333")
    await add_appointment(
        session_factory, professional.id, datetime.combine(upcoming(1), time(9)), patient_id=patient.id
    )

    res = await client.get(API, headers=bearer(professional))
    assert [p["id"] for p in res.json()] == [str(patient.id)]


async def test_update_patient(client, session_factory, professional):
    patient = await add_patient(session_factory, "35000111")
    await add_patient(session_factory, "36000222", email="juan@example.com")

    res = await client.put(
        f"{API}/{patient.id}",
        json={**PATIENT, "first_name": "Marta Sofia", "phone": "1155550000"},
        headers=bearer(professional),
    )
    assert res.status_code == 200
    assert res.json()["first_name"] == "Marta Sofia"
    assert res.json()["phone"] == "1155550000"

    res = await client.put(
        f"{API}/{patient.id}", json={**PATIENT, "national_id": "36000222"}, headers=bearer(professional)
    )
    assert res.status_code == 409


async def test_deactivated_patient_is_hidden(client, session_factory, professional):
    patient = await add_patient(session_factory, created_by_professional_id=professional.id)

    res = await client.patch(
        f"{API}/{patient.id}/status", json={"is_active": False}, headers=bearer(professional)
    )
    assert res.status_code == 200
    assert res.json()["is_active"] is False

    assert (await client.get(API, headers=bearer(professional))).json() == []
    res = await client.get(API, params={"include_inactive": True}, headers=bearer(professional))
    assert len(res.json()) == 1

    res = await client.get("/api/public/patients/lookup", params={"national_id": patient.national_id})
    assert res.status_code == 404
