# tests/test_plans_api.py
from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_catalog(client):
    resp = await client.get("/api/plans")
    assert resp.status_code == 200
    data = resp.json()
    assert data["bundleDiscountPercent"] == 20
    assert len(data["plans"]) == 6

    care = [p for p in data["plans"] if p["product"] == "care"]
    assert all(p["maxStaff"] is None for p in care)

    resp = await client.get("/api/plans", params={"product": "core"})
    assert [p["key"] for p in resp.json()["plans"]] == ["essential", "professional", "enterprise"]


@pytest.mark.asyncio
async def test_single_plan(client):
    resp = await client.get("/api/plans/core/enterprise")
    assert resp.status_code == 200
    assert resp.json() == {
        "product": "core",
        "key": "enterprise",
        "price": 25000,
        "maxStaff": 75,
        "maxLocations": 5,
        "maxAdminRoles": 10,
        "label": "Enterprise",
    }

    resp = await client.get("/api/plans/core/platinum")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Plan not found"}


@pytest.mark.asyncio
async def test_bundle_quote(client):
    resp = await client.get("/api/plans/bundle", params={"core": "essential"})
    assert resp.json() == {"baseAmount": 18000, "discountPercent": 20, "finalAmount": 14400}

    resp = await client.get("/api/plans/bundle", params={"core": "professional", "care": "care_professional"})
    assert resp.json()["finalAmount"] == 26400

    resp = await client.get("/api/plans/bundle", params={"core": "platinum"})
    assert resp.json() == {"baseAmount": 0, "discountPercent": 20, "finalAmount": 0}


@pytest.mark.asyncio
async def test_price_quote(client):
    resp = await client.get("/api/plans/price", params={"modules": "core,care", "planKey": "essential"})
    assert resp.json() == {"baseAmount": 18000, "discountPercent": 20, "finalAmount": 14400, "isBundle": True}

    resp = await client.get("/api/plans/price", params=[("modules", "care"), ("planKey", "care_enterprise")])
    assert resp.json() == {"baseAmount": 30000, "discountPercent": 0, "finalAmount": 30000, "isBundle": False}
