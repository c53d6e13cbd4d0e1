"""
Integration tests for fare quotes and trip recording.
"""

import pytest

ORIGIN = {"lat": 40.71, "lng": -74.00, "address": "1 Centre St, New York"}
DESTINATION = {"lat": 40.64, "lng": -73.78, "address": "JFK Terminal 4"}


@pytest.fixture
async def rate_table(client, admin_headers):
    """Rates from the worked example: 2.50/mi, 0.50/h, $15 airport fee, 10% loyalty."""
    await client.put("/v1/settings/rates", headers=admin_headers,
                     json={"base_mile_rate": 2.5, "base_hour_rate": 0.5})
    fee = await client.post("/v1/settings/surcharge-factors", headers=admin_headers,
                            json={"name": "Airport Fee", "rate": 15, "type": "fixed"})
    loyalty = await client.post("/v1/settings/discounts", headers=admin_headers,
                                json={"name": "Loyalty", "rate": 10})
    return fee.json()["id"], loyalty.json()["id"]


def trip_payload(surcharge_ids=(), discount_ids=(), **overrides):
    payload = {
        "origin": ORIGIN,
        "destination": DESTINATION,
        "distance_miles": 10,
        "duration_seconds": 1800,
        "trip_date": "2024-03-15T14:30:00",
        "surcharge_ids": list(surcharge_ids),
        "discount_ids": list(discount_ids),
    }
    payload.update(overrides)
    return payload


# TEST 1: Quote
@pytest.mark.asyncio
async def test_quote_matches_worked_example(client, user_headers, rate_table):
    fee_id, loyalty_id = rate_table

    response = await client.post("/v1/trips/quote", headers=user_headers, json={
        "distance_miles": 10,
        "duration_seconds": 1800,
        "surcharge_ids": [fee_id],
        "discount_ids": [loyalty_id],
    })

    assert response.status_code == 200
    data = response.json()
    assert data["base_price"] == pytest.approx(25.25)
    assert data["subtotal"] == pytest.approx(40.25)
    assert data["final_price"] == pytest.approx(36.225)
    assert [a["name"] for a in data["adjustments"]] == ["Airport Fee", "Loyalty"]


@pytest.mark.asyncio
async def test_quote_ignores_inactive_adjustments(client, admin_headers, user_headers, rate_table):
    fee_id, _ = rate_table
    await client.patch(f"/v1/settings/surcharge-factors/{fee_id}", headers=admin_headers,
                       json={"is_active": False})

    response = await client.post("/v1/trips/quote", headers=user_headers, json={
        "distance_miles": 10, "duration_seconds": 1800, "surcharge_ids": [fee_id],
    })
    assert response.json()["final_price"] == pytest.approx(25.25)


# TEST 2: Record
@pytest.mark.asyncio
async def test_record_trip_prices_server_side(client, user_headers, user_profile, rate_table):
    fee_id, loyalty_id = rate_table

    response = await client.post("/v1/trips", headers=user_headers,
                                 json=trip_payload([fee_id], [loyalty_id]))

    assert response.status_code == 201
    data = response.json()
    assert data["user_id"] == user_profile.id
    assert data["trip_number"].startswith("TRIP-20240315-")
    assert data["final_price"] == pytest.approx(36.225)
    assert data["base_mile_rate"] == 2.5
    assert [(a["kind"], a["sequence"]) for a in data["adjustments"]] == [("surcharge", 0), ("discount", 1)]


@pytest.mark.asyncio
async def test_snapshot_survives_rate_changes(client, admin_headers, user_headers, rate_table):
    fee_id, _ = rate_table
    created = await client.post("/v1/trips", headers=user_headers, json=trip_payload([fee_id]))
    trip_id = created.json()["id"]

    await client.delete(f"/v1/settings/surcharge-factors/{fee_id}", headers=admin_headers)
    await client.put("/v1/settings/rates", headers=admin_headers, json={"base_mile_rate": 9})

    data = (await client.get(f"/v1/trips/{trip_id}", headers=user_headers)).json()
    assert data["final_price"] == pytest.approx(40.25)
    assert data["adjustments"][0]["name"] == "Airport Fee"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"distance_miles": 0},
    {"duration_seconds": -60},
    {"origin": {"lat": 40.71, "lng": -74.0, "address": ""}},
])
async def test_incomplete_trip_rejected(client, user_headers, rate_table, overrides):
    response = await client.post("/v1/trips", headers=user_headers, json=trip_payload(**overrides))

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_TRIP_001"


@pytest.mark.asyncio
async def test_trip_discounted_to_zero_rejected(client, admin_headers, user_headers):
    free = await client.post("/v1/settings/discounts", headers=admin_headers,
                             json={"name": "Free ride", "rate": 100})
    response = await client.post("/v1/trips", headers=user_headers,
                                 json=trip_payload(discount_ids=[free.json()["id"]]))
    assert response.status_code == 422


# TEST 3: Visibility
@pytest.mark.asyncio
async def test_users_only_see_their_own_trips(client, user_headers, other_headers, admin_headers, rate_table):
    mine = await client.post("/v1/trips", headers=user_headers, json=trip_payload())
    await client.post("/v1/trips", headers=other_headers, json=trip_payload())

    listed = (await client.get("/v1/trips", headers=user_headers)).json()
    assert listed["total"] == 1

    forbidden = await client.get(f"/v1/trips/{mine.json()['id']}", headers=other_headers)
    assert forbidden.status_code == 403

    everything = (await client.get("/v1/trips", headers=admin_headers)).json()
    assert everything["total"] == 2


@pytest.mark.asyncio
async def test_list_trips_by_date_range(client, user_headers, rate_table):
    await client.post("/v1/trips", headers=user_headers, json=trip_payload(trip_date="2024-03-01T09:00:00"))
    await client.post("/v1/trips", headers=user_headers, json=trip_payload(trip_date="2024-03-20T09:00:00"))

    response = await client.get("/v1/trips", headers=user_headers, params={
        "date_from": "2024-03-10T00:00:00", "date_to": "2024-03-31T23:59:59",
    })
    data = response.json()
    assert data["total"] == 1
    assert data["trips"][0]["trip_date"].startswith("2024-03-20")


@pytest.mark.asyncio
async def test_list_trips_for_current_period(client, user_headers, rate_table):
    await client.post("/v1/trips", headers=user_headers, json=trip_payload(trip_date=None))
    await client.post("/v1/trips", headers=user_headers, json=trip_payload(trip_date="2001-01-01T09:00:00"))

    data = (await client.get("/v1/trips", headers=user_headers, params={"period": "day"})).json()
    assert data["total"] == 1

    conflict = await client.get("/v1/trips", headers=user_headers,
                                params={"period": "day", "date_from": "2024-01-01T00:00:00"})
    assert conflict.status_code == 400


@pytest.mark.asyncio
async def test_delete_trip(client, user_headers, rate_table):
    created = await client.post("/v1/trips", headers=user_headers, json=trip_payload())
    trip_id = created.json()["id"]

    response = await client.delete(f"/v1/trips/{trip_id}", headers=user_headers)
    assert response.status_code == 204
    assert (await client.get(f"/v1/trips/{trip_id}", headers=user_headers)).status_code == 404


@pytest.mark.asyncio
async def test_recorded_trip_is_audited_after_commit(client, user_headers, admin_headers, rate_table):
    trip = (await client.post("/v1/trips", headers=user_headers, json=trip_payload())).json()

    logs = await client.get("/v1/admin/audit-logs", headers=admin_headers,
                            params={"target_type": "trip", "target_id": str(trip["id"])})

    assert logs.json()["total"] == 1
    entry = logs.json()["logs"][0]
    assert entry["action"] == "TRIP_RECORDED"
    assert entry["meta_data"]["trip_number"] == trip["trip_number"]
