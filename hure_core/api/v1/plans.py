# hure_core/api/v1/plans.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from hure_core.core.plans import (
    BUNDLE_DISCOUNT_PERCENT,
    DEFAULT_CARE_PLAN,
    calculate_bundle_price,
    get_plan_details,
    get_plan_price,
    list_plans,
)
from hure_core.schemas.plans import BundleQuoteOut, PlanCatalogOut, PlanOut, PriceQuoteOut

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("", response_model=PlanCatalogOut)
async def get_catalog(product: Optional[str] = Query(default=None)):
    return PlanCatalogOut(
        plans=[PlanOut.from_tier(t) for t in list_plans(product)],
        bundle_discount_percent=BUNDLE_DISCOUNT_PERCENT,
    )


@router.get("/bundle", response_model=BundleQuoteOut)
async def get_bundle_quote(
    core: Optional[str] = Query(default=None),
    care: str = Query(default=DEFAULT_CARE_PLAN),
):
    # unknown keys come back as a zeroed quote, not an error
    return BundleQuoteOut.from_quote(calculate_bundle_price(core, care))


@router.get("/price", response_model=PriceQuoteOut)
async def get_price_quote(
    modules: List[str] = Query(default=[]),
    plan_key: Optional[str] = Query(default=None, alias="planKey"),
):
    # ?modules=core,care and ?modules=core&modules=care are both accepted
    flat = [m for raw in modules for m in raw.split(",")]
    return PriceQuoteOut.from_quote(get_plan_price(flat, plan_key))


@router.get("/{product}/{plan_key}", response_model=PlanOut)
async def get_plan(product: str, plan_key: str):
    tier = get_plan_details(product, plan_key)
    if tier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    return PlanOut.from_tier(tier)
