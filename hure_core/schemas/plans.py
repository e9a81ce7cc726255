from __future__ import annotations

from typing import Optional

from hure_core.core.plan_limits import PlanLimitReport
from hure_core.core.plans import BundleQuote, PlanTier, PriceQuote
from hure_core.schemas.base import CamelModel


class PlanOut(CamelModel):
    product: str
    key: str
    price: int
    # null = unbounded
    max_staff: Optional[int] = None
    max_locations: int
    max_admin_roles: int
    label: str

    @classmethod
    def from_tier(cls, tier: PlanTier) -> "PlanOut":
        return cls(
            product=tier.product.value,
            key=tier.key,
            price=tier.price,
            max_staff=tier.max_staff,
            max_locations=tier.max_locations,
            max_admin_roles=tier.max_admin_roles,
            label=tier.label,
        )


class BundleQuoteOut(CamelModel):
    base_amount: int
    discount_percent: int
    final_amount: int

    @classmethod
    def from_quote(cls, quote: BundleQuote) -> "BundleQuoteOut":
        return cls(
            base_amount=quote.base_amount,
            discount_percent=quote.discount_percent,
            final_amount=quote.final_amount,
        )


class PriceQuoteOut(CamelModel):
    base_amount: int
    discount_percent: int
    final_amount: int
    is_bundle: bool

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> "PriceQuoteOut":
        return cls(
            base_amount=quote.base_amount,
            discount_percent=quote.discount_percent,
            final_amount=quote.final_amount,
            is_bundle=quote.is_bundle,
        )


class LimitsOut(CamelModel):
    staff_within_limit: bool
    locations_within_limit: bool
    admin_roles_within_limit: bool
    staff_usage: float
    locations_usage: float
    admin_roles_usage: float

    @classmethod
    def from_report(cls, report: PlanLimitReport) -> "LimitsOut":
        return cls(
            staff_within_limit=report.staff_within_limit,
            locations_within_limit=report.locations_within_limit,
            admin_roles_within_limit=report.admin_roles_within_limit,
            staff_usage=report.staff_usage,
            locations_usage=report.locations_usage,
            admin_roles_usage=report.admin_roles_usage,
        )


class PlanCatalogOut(CamelModel):
    plans: list[PlanOut]
    bundle_discount_percent: int
