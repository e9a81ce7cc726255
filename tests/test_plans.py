# tests/test_plans.py
from __future__ import annotations

import pytest

from hure_core.core.plans import (
    BUNDLE_DISCOUNT_PERCENT,
    PLAN_CATALOG,
    Product,
    apply_discount,
    calculate_bundle_price,
    get_modules_label,
    get_plan_details,
    get_plan_label,
    get_plan_price,
    is_bundle,
    list_plans,
    modules_for_product,
)


def test_catalog_has_three_tiers_per_product():
    assert set(PLAN_CATALOG[Product.CORE]) == {"essential", "professional", "enterprise"}
    assert set(PLAN_CATALOG[Product.CARE]) == {"care_standard", "care_professional", "care_enterprise"}
    assert len(list_plans()) == 6
    assert [p.key for p in list_plans("care")] == ["care_standard", "care_professional", "care_enterprise"]
    assert list_plans("payroll") == []


def test_get_plan_details_known_and_unknown():
    plan = get_plan_details("core", "professional")
    assert plan is not None
    assert (plan.price, plan.max_staff, plan.max_locations, plan.max_admin_roles) == (15000, 30, 2, 3)
    assert plan.label == "Professional"

    assert get_plan_details(Product.CARE, "care_enterprise").max_staff is None
    assert get_plan_details("core", "platinum") is None
    assert get_plan_details("payroll", "essential") is None
    assert get_plan_details("core", None) is None


def test_bundle_essential_with_default_care():
    quote = calculate_bundle_price("essential")
    assert (quote.base_amount, quote.discount_percent, quote.final_amount) == (18000, 20, 14400)


@pytest.mark.parametrize("core_key", ["essential", "professional", "enterprise"])
@pytest.mark.parametrize("care_key", ["care_standard", "care_professional", "care_enterprise"])
def test_bundle_final_is_discounted_sum(core_key, care_key):
    quote = calculate_bundle_price(core_key, care_key)
    base = PLAN_CATALOG[Product.CORE][core_key].price + PLAN_CATALOG[Product.CARE][care_key].price

    assert quote.base_amount == base
    assert quote.discount_percent == BUNDLE_DISCOUNT_PERCENT
    assert quote.final_amount == apply_discount(base, BUNDLE_DISCOUNT_PERCENT)
    assert quote.final_amount <= quote.base_amount


@pytest.mark.parametrize("core_key,care_key", [("platinum", "care_standard"), ("essential", "care_gold"), (None, None)])
def test_bundle_unknown_key_is_zeroed_not_raised(core_key, care_key):
    quote = calculate_bundle_price(core_key, care_key)
    assert quote.base_amount == 0
    assert quote.final_amount == 0
    assert quote.discount_percent == 20


def test_apply_discount_rounds_half_away_from_zero():
    assert apply_discount(5, 50) == 3
    assert apply_discount(15, 50) == 8
    assert apply_discount(14, 50) == 7
    assert apply_discount(18000, 0) == 18000


def test_price_for_module_selection():
    single_core = get_plan_price(["core"], "professional")
    assert (single_core.final_amount, single_core.discount_percent, single_core.is_bundle) == (15000, 0, False)

    single_care = get_plan_price(["care"], "care_professional")
    assert single_care.final_amount == 18000

    bundle = get_plan_price(["Core", "care"], "essential")
    assert bundle.is_bundle is True
    assert (bundle.base_amount, bundle.final_amount) == (18000, 14400)

    assert get_plan_price(["core"], "unknown").final_amount == 0


def test_modules_and_labels():
    assert modules_for_product("bundle") == ["core", "care"]
    assert modules_for_product("care") == ["care"]
    assert modules_for_product(None) == []

    assert is_bundle(["core", "care"]) is True
    assert is_bundle(["core"]) is False
    assert is_bundle(None) is False

    assert get_plan_label("care", "care_standard") == "Care Standard"
    assert get_plan_label("core", "legacy") == "legacy"
    assert get_modules_label(["core", "care"], True) == "core + care (Bundle -20%)"
    assert get_modules_label(["core"], False) == "core"
