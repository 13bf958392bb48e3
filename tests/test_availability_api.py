from datetime import date, datetime, time

from conftest import bearer, upcoming

API = "/api/availability"


async def test_schedule_crud(client, professional):
    headers = bearer(professional)
    payload = {
        "day_of_week": 1,
        "start_time": "09:00",
        "end_time": "13:00",
        "slot_duration_minutes": 30,
    }

    res = await client.post(f"{API}/schedules", json=payload, headers=headers)
    assert res.status_code == 201
    rule = res.json()
    assert rule["start_time"] == "09:00:00"
    assert rule["professional_id"] == str(professional.id)

    res = await client.post(f"{API}/schedules", json=payload, headers=headers)
    assert res.status_code == 409

    res = await client.get(f"{API}/schedules", headers=headers)
    assert [r["id"] for r in res.json()] == [rule["id"]]

    res = await client.delete(f"{API}/schedules/{rule['id']}", headers=headers)
    assert res.status_code == 204
    res = await client.delete(f"{API}/schedules/{rule['id']}", headers=headers)
    assert res.status_code == 404


async def test_schedule_rejects_bad_windows(client, professional):
    headers = bearer(professional)
    bad = [
        {"day_of_week": 7, "start_time": "09:00", "end_time": "10:00", "slot_duration_minutes": 30},
        {"day_of_week": 1, "start_time": "10:00", "end_time": "09:00", "slot_duration_minutes": 30},
        {"day_of_week": 1, "start_time": "09:00", "end_time": "10:00", "slot_duration_minutes": 0},
    ]
    for body in bad:
        res = await client.post(f"{API}/schedules", json=body, headers=headers)
        assert res.status_code == 400, body


async def test_schedule_routes_are_scoped_to_the_caller(client, professional, other_professional):
    res = await client.post(
        f"{API}/schedules",
        json={"day_of_week": 2, "start_time": "09:00", "end_time": "10:00", "slot_duration_minutes": 15},
        headers=bearer(professional),
    )
    rule_id = res.json()["id"]

    res = await client.get(f"{API}/schedules", headers=bearer(other_professional))
    assert res.json() == []
    res = await client.delete(f"{API}/schedules/{rule_id}", headers=bearer(other_professional))
    assert res.status_code == 404


async def test_all_day_block_is_stored_as_whole_day(client, professional):
    day = upcoming(3)
    res = await client.post(
        f"{API}/blocks",
        json={"starts_at": f"{day.isoformat()}T14:30:00", "is_all_day": True, "reason": "Congress"},
        headers=bearer(professional),
    )
    assert res.status_code == 201
    block = res.json()
    assert block["starts_at"] == f"{day.isoformat()}T00:00:00"
    assert block["ends_at"] == f"{day.isoformat()}T23:59:59"
    assert block["title"] == "Blocked: Congress"


async def test_block_hides_slots_on_public_availability(client, professional):
    headers = bearer(professional)
    day = upcoming(1)
    await client.post(
        f"{API}/schedules",
        json={
            "day_of_week": (day.isoweekday() % 7),
            "start_time": "09:00",
            "end_time": "11:00",
            "slot_duration_minutes": 60,
        },
        headers=headers,
    )
    res = await client.post(
        f"{API}/blocks",
        json={
            "starts_at": datetime.combine(day, time(9)).isoformat(),
            "ends_at": datetime.combine(day, time(10)).isoformat(),
        },
        headers=headers,
    )
    assert res.status_code == 201
    block_id = res.json()["id"]

    params = {"professional_id": str(professional.id), "date": day.isoformat()}
    assert (await client.get("/api/public/availability", params=params)).json() == ["10:00"]

    res = await client.delete(f"{API}/blocks/{block_id}", headers=headers)
    assert res.status_code == 204
    assert (await client.get("/api/public/availability", params=params)).json() == ["09:00", "10:00"]


async def test_block_needs_an_end_unless_all_day(client, professional):
    headers = bearer(professional)
    res = await client.post(
        f"{API}/blocks", json={"starts_at": "2031-01-10T09:00:00"}, headers=headers
    )
    assert res.status_code == 400

    res = await client.post(
        f"{API}/blocks",
        json={"starts_at": "2031-01-10T09:00:00", "ends_at": "2031-01-10T08:00:00"},
        headers=headers,
    )
    assert res.status_code == 400


async def test_blocks_are_listed_in_start_order(client, professional):
    headers = bearer(professional)
    for start in ("2031-02-03T15:00:00", "2031-02-01T09:00:00"):
        await client.post(
            f"{API}/blocks",
            json={"starts_at": start, "ends_at": start[:11] + "18:00:00"},
            headers=headers,
        )

    res = await client.get(f"{API}/blocks", headers=headers)
    starts = [b["starts_at"][:10] for b in res.json()]
    assert starts == [date(2031, 2, 1).isoformat(), date(2031, 2, 3).isoformat()]
