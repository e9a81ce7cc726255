# ============================
# FILE: hure_core/core/plans.py
# Canonical plan catalog and pricing for HURE Core
# ============================
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional


class Product(str, enum.Enum):
    CORE = "core"
    CARE = "care"


# Selectable on the onboarding wizard; "bundle" is core + care.
PRODUCT_BUNDLE = "bundle"

BUNDLE_DISCOUNT_PERCENT = 20
DEFAULT_CORE_PLAN = "essential"
DEFAULT_CARE_PLAN = "care_standard"


@dataclass(frozen=True)
class PlanTier:
    product: Product
    key: str
    price: int
    # None = unbounded (care plans do not cap staff)
    max_staff: Optional[int]
    max_locations: int
    max_admin_roles: int
    label: str

    @property
    def staff_unbounded(self) -> bool:
        return self.max_staff is None


@dataclass(frozen=True)
class BundleQuote:
    base_amount: int
    discount_percent: int
    final_amount: int


@dataclass(frozen=True)
class PriceQuote:
    base_amount: int
    discount_percent: int
    final_amount: int
    is_bundle: bool


def _tier(product: Product, key: str, price: int, max_staff, max_locations: int, max_admin_roles: int, label: str) -> PlanTier:
    return PlanTier(
        product=product,
        key=key,
        price=price,
        max_staff=max_staff,
        max_locations=max_locations,
        max_admin_roles=max_admin_roles,
        label=label,
    )


PLAN_CATALOG: dict[Product, dict[str, PlanTier]] = {
    Product.CORE: {
        "essential": _tier(Product.CORE, "essential", 8000, 10, 1, 1, "Essential"),
        "professional": _tier(Product.CORE, "professional", 15000, 30, 2, 3, "Professional"),
        "enterprise": _tier(Product.CORE, "enterprise", 25000, 75, 5, 10, "Enterprise"),
    },
    Product.CARE: {
        "care_standard": _tier(Product.CARE, "care_standard", 10000, None, 1, 1, "Care Standard"),
        "care_professional": _tier(Product.CARE, "care_professional", 18000, None, 2, 3, "Care Professional"),
        "care_enterprise": _tier(Product.CARE, "care_enterprise", 30000, None, 5, 10, "Care Enterprise"),
    },
}


def normalize_key(value: str | None) -> str:
    return (value or "").strip().lower()


def _product_or_none(product) -> Optional[Product]:
    v = getattr(product, "value", product)
    try:
        return Product(normalize_key(v))
    except ValueError:
        return None


def get_plan_details(product, plan_key: str | None) -> Optional[PlanTier]:
    """
    Returns the plan tier for (product, plan_key), or None when either is unknown.
    """
    p = _product_or_none(product)
    if p is None:
        return None
    return PLAN_CATALOG[p].get(normalize_key(plan_key))


def list_plans(product=None) -> list[PlanTier]:
    if product is None:
        return [tier for tiers in PLAN_CATALOG.values() for tier in tiers.values()]
    p = _product_or_none(product)
    if p is None:
        return []
    return list(PLAN_CATALOG[p].values())


def apply_discount(amount: int, discount_percent: int) -> int:
    """
    amount * (1 - discount_percent/100), rounded to the nearest integer with
    ties away from zero.
    """
    factor = (Decimal(100) - Decimal(discount_percent)) / Decimal(100)
    return int((Decimal(amount) * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_bundle_price(core_key: str | None, care_key: str | None = DEFAULT_CARE_PLAN) -> BundleQuote:
    """
    Core + care at BUNDLE_DISCOUNT_PERCENT off.
    Unknown keys give a zeroed quote; callers treat 0 as "unpriced", not free.
    """
    core = get_plan_details(Product.CORE, core_key)
    care = get_plan_details(Product.CARE, care_key)

    if core is None or care is None:
        return BundleQuote(base_amount=0, discount_percent=BUNDLE_DISCOUNT_PERCENT, final_amount=0)

    base = core.price + care.price
    return BundleQuote(
        base_amount=base,
        discount_percent=BUNDLE_DISCOUNT_PERCENT,
        final_amount=apply_discount(base, BUNDLE_DISCOUNT_PERCENT),
    )


def _normalize_modules(modules: Iterable[str] | None) -> list[str]:
    if not modules:
        return []
    return [normalize_key(m) for m in modules if isinstance(m, str) and m.strip()]


def is_bundle(modules: Iterable[str] | None) -> bool:
    mods = _normalize_modules(modules)
    return Product.CORE.value in mods and Product.CARE.value in mods


def modules_for_product(product: str | None) -> list[str]:
    """
    Wizard product choice -> clinic modules.
    """
    p = normalize_key(product)
    if p == PRODUCT_BUNDLE:
        return [Product.CORE.value, Product.CARE.value]
    return [p] if p else []


def get_plan_price(modules: Iterable[str] | None, plan_key: str | None) -> PriceQuote:
    """
    Price for a clinic's module selection.
    Bundles price the core plan_key with the default care tier.
    """
    if is_bundle(modules):
        bundle = calculate_bundle_price(plan_key)
        return PriceQuote(
            base_amount=bundle.base_amount,
            discount_percent=bundle.discount_percent,
            final_amount=bundle.final_amount,
            is_bundle=True,
        )

    product = Product.CARE if Product.CARE.value in _normalize_modules(modules) else Product.CORE
    plan = get_plan_details(product, plan_key)
    price = plan.price if plan else 0
    return PriceQuote(base_amount=price, discount_percent=0, final_amount=price, is_bundle=False)


def get_plan_label(product, plan_key: str | None) -> str:
    plan = get_plan_details(product, plan_key)
    if plan is not None:
        return plan.label
    return plan_key or ""


def get_modules_label(modules: Iterable[str] | None, bundle: bool) -> str:
    base = " + ".join(_normalize_modules(modules))
    return f"{base} (Bundle -{BUNDLE_DISCOUNT_PERCENT}%)" if bundle else base
