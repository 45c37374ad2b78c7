"""
Tests for registration endpoints: tier admission, cascading, duplicates.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.registrant import Registrant
from app.models.relationship import Relationship
from conftest import VIP, CLOSE, COLLEAGUES, GENERAL, occupancy, registration_payload


@pytest.mark.asyncio
async def test_register_with_vip_code(client: AsyncClient):
    """A VIP code seats the guest in VIP."""
    response = await client.post("/api/v1/registrations/", json=registration_payload(1, "VIP-2026"))
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Guest 1"
    assert data["requested_tier"] == VIP
    assert data["effective_tier"] == VIP
    assert data["effective_tier_name"] == "VIP"
    assert data["downgraded"] is False
    assert data["payment_url"].startswith("https://app.swish.nu/1/p/sw/?")


@pytest.mark.asyncio
async def test_register_without_code_gets_general(client: AsyncClient):
    response = await client.post("/api/v1/registrations/", json=registration_payload(1))
    assert response.status_code == 201
    assert response.json()["requested_tier"] == GENERAL
    assert response.json()["effective_tier"] == GENERAL


@pytest.mark.asyncio
async def test_unknown_code_gets_general(client: AsyncClient):
    response = await client.post("/api/v1/registrations/", json=registration_payload(1, "BOGUS"))
    assert response.status_code == 201
    assert response.json()["requested_tier"] == GENERAL


@pytest.mark.asyncio
async def test_vip_codes_cascade_down_until_fully_booked(client: AsyncClient, session_factory):
    """Seven VIP-coded guests against VIP:2, Close:1, Colleagues:1, General:2."""
    expected = [VIP, VIP, CLOSE, COLLEAGUES, GENERAL, GENERAL]
    for n, tier in enumerate(expected, start=1):
        response = await client.post("/api/v1/registrations/", json=registration_payload(n, "VIP-2026"))
        assert response.status_code == 201
        data = response.json()
        assert data["effective_tier"] == tier
        assert data["requested_tier"] == VIP
        assert data["downgraded"] == (tier != VIP)

    response = await client.post("/api/v1/registrations/", json=registration_payload(7, "VIP-2026"))
    assert response.status_code == 409
    assert response.json()["error"] == "fully_booked"
    assert await occupancy(session_factory) == {VIP: 2, CLOSE: 1, COLLEAGUES: 1, GENERAL: 2}


@pytest.mark.asyncio
async def test_general_full_does_not_use_higher_tiers(client: AsyncClient, session_factory):
    """No upward cascade: a General guest is rejected while VIP still has seats."""
    for n in (1, 2):
        response = await client.post("/api/v1/registrations/", json=registration_payload(n, "GEN-2026"))
        assert response.status_code == 201

    response = await client.post("/api/v1/registrations/", json=registration_payload(3, "GEN-2026"))
    assert response.status_code == 409
    assert response.json()["error"] == "fully_booked"
    assert await occupancy(session_factory) == {VIP: 0, CLOSE: 0, COLLEAGUES: 0, GENERAL: 2}


@pytest.mark.asyncio
async def test_fully_booked_leaves_occupancy_unchanged(client: AsyncClient, session_factory):
    """Once everything is full, every further attempt is rejected and changes nothing."""
    codes = ["VIP-2026", "VIP-2026", "CLOSE-2026", "WORK-2026", "GEN-2026", "GEN-2026"]
    for n, code in enumerate(codes, start=1):
        assert (await client.post("/api/v1/registrations/", json=registration_payload(n, code))).status_code == 201
    full = await occupancy(session_factory)

    for n, code in enumerate(["VIP-2026", "CLOSE-2026", "WORK-2026", "GEN-2026", None], start=10):
        response = await client.post("/api/v1/registrations/", json=registration_payload(n, code))
        assert response.status_code == 409
        assert response.json()["error"] == "fully_booked"
        assert await occupancy(session_factory) == full

    async with session_factory() as session:
        names = (await session.execute(select(Registrant.name))).scalars().all()
    assert len(names) == 6


@pytest.mark.asyncio
async def test_no_oversell_and_no_upgrade_for_mixed_sequence(client: AsyncClient, session_factory, tier_table):
    codes = ["GEN-2026", "WORK-2026", "VIP-2026", "CLOSE-2026", "WORK-2026", "VIP-2026",
             None, "CLOSE-2026", "VIP-2026", "VIP-2026", "GEN-2026"]
    for n, code in enumerate(codes, start=1):
        await client.post("/api/v1/registrations/", json=registration_payload(n, code))
        for level, count in (await occupancy(session_factory)).items():
            assert count <= tier_table.capacity(level)

    async with session_factory() as session:
        registrants = (await session.execute(select(Registrant))).scalars().all()
    assert registrants
    for registrant in registrants:
        assert registrant.effective_tier <= registrant.requested_tier


@pytest.mark.asyncio
async def test_duplicate_email_rejected(client: AsyncClient, session_factory):
    """Same identity twice while seats remain: 409, not a second seat."""
    first = await client.post("/api/v1/registrations/", json=registration_payload(1, "VIP-2026"))
    assert first.status_code == 201

    response = await client.post(
        "/api/v1/registrations/",
        json={"name": "Someone Else", "email": "GUEST1@example.com", "invitation_code": "VIP-2026"},
    )
    assert response.status_code == 409
    data = response.json()
    assert data["error"] == "duplicate_identity"
    assert data["fields"] == ["email"]
    assert await occupancy(session_factory) == {VIP: 1, CLOSE: 0, COLLEAGUES: 0, GENERAL: 0}


@pytest.mark.asyncio
async def test_duplicate_name_rejected(client: AsyncClient):
    await client.post("/api/v1/registrations/", json=registration_payload(1))
    response = await client.post(
        "/api/v1/registrations/",
        json={"name": "  Guest 1 ", "email": "other@example.com"},
    )
    assert response.status_code == 409
    assert response.json()["fields"] == ["name"]


@pytest.mark.asyncio
async def test_duplicate_identity_names_both_fields(client: AsyncClient):
    await client.post("/api/v1/registrations/", json=registration_payload(1))
    response = await client.post("/api/v1/registrations/", json=registration_payload(1))
    assert response.status_code == 409
    assert response.json()["fields"] == ["name", "email"]


@pytest.mark.asyncio
async def test_duplicate_reported_before_fully_booked(client: AsyncClient):
    """Duplicate identity wins over capacity even when everything is full."""
    for n in (1, 2):
        await client.post("/api/v1/registrations/", json=registration_payload(n, "GEN-2026"))

    response = await client.post("/api/v1/registrations/", json=registration_payload(1, "GEN-2026"))
    assert response.status_code == 409
    assert response.json()["error"] == "duplicate_identity"


@pytest.mark.asyncio
async def test_relationships_written_for_every_existing_registrant(client: AsyncClient, session_factory):
    ids = []
    for n in (1, 2, 3):
        response = await client.post("/api/v1/registrations/", json=registration_payload(n, "VIP-2026"))
        ids.append(response.json()["id"])

    # Knows guest 1 only; 999 is not a registrant and is ignored
    response = await client.post(
        "/api/v1/registrations/",
        json=registration_payload(4, "WORK-2026", known_registrant_ids=[ids[0], 999]),
    )
    assert response.status_code == 201
    new_id = response.json()["id"]

    async with session_factory() as session:
        rows = (
            await session.execute(select(Relationship).where(Relationship.new_registrant_id == new_id))
        ).scalars().all()

    knows = {row.known_registrant_id: row.knows_person for row in rows}
    assert knows == {ids[0]: True, ids[1]: False, ids[2]: False}


@pytest.mark.asyncio
async def test_payment_url_includes_alcohol_surcharge(client: AsyncClient):
    sober = await client.post("/api/v1/registrations/", json=registration_payload(1))
    drinking = await client.post("/api/v1/registrations/", json=registration_payload(2, drinks_alcohol=True))

    assert "amt=400" in sober.json()["payment_url"]
    assert "amt=475" in drinking.json()["payment_url"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "", "email": "a@example.com"},
        {"name": "   ", "email": "a@example.com"},
        {"name": "Guest", "email": "not-an-email"},
        {"email": "a@example.com"},
    ],
)
async def test_invalid_registration_returns_422(client: AsyncClient, payload):
    response = await client.post("/api/v1/registrations/", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_registrants_sorted_by_name(client: AsyncClient):
    await client.post("/api/v1/registrations/", json={"name": "Zoe", "email": "zoe@example.com"})
    await client.post("/api/v1/registrations/", json={"name": "Adam", "email": "adam@example.com"})

    response = await client.get("/api/v1/registrations/")
    assert response.status_code == 200
    data = response.json()
    assert [r["name"] for r in data] == ["Adam", "Zoe"]
    assert "email" not in data[0]


@pytest.mark.asyncio
async def test_availability_preview(client: AsyncClient):
    for n in (1, 2):
        await client.post("/api/v1/registrations/", json=registration_payload(n, "VIP-2026"))

    response = await client.get("/api/v1/registrations/availability", params={"code": "VIP-2026"})
    assert response.status_code == 200
    data = response.json()
    assert data["requested_tier"] == VIP
    assert data["available"] is True
    assert data["effective_tier"] == CLOSE
    assert data["effective_tier_name"] == "Close Friends"
    assert data["downgraded"] is True
    assert data["cached"] is False
    vip = data["tiers"][0]
    assert (vip["level"], vip["occupied"], vip["remaining"]) == (VIP, 2, 0)


@pytest.mark.asyncio
async def test_availability_preview_without_code(client: AsyncClient):
    for n in (1, 2):
        await client.post("/api/v1/registrations/", json=registration_payload(n))

    response = await client.get("/api/v1/registrations/availability")
    data = response.json()
    assert data["requested_tier"] == GENERAL
    assert data["available"] is False
    assert data["effective_tier"] is None
    assert data["effective_tier_name"] is None
