"""
HURE Core - Onboarding flow

Client-side state machine for the five-step signup wizard:

    1 product & plan -> 2 business details -> 3 temporary password
      -> 4 email OTP -> 5 payment (or dev-mode skip, which ends the flow)

Local validation runs before any request; a step only advances when its
request succeeds. Every failure is stored on `session.error` and re-raised.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Optional, TypeVar
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from hure_core.client.api import HureClient
from hure_core.client.errors import HureClientError, ValidationError
from hure_core.core.plans import (
    PRODUCT_BUNDLE,
    PriceQuote,
    Product,
    get_plan_details,
    get_plan_price,
    modules_for_product,
    normalize_key,
)
from hure_core.core.validators import (
    MIN_TEMP_PASSWORD_LENGTH,
    is_blank,
    is_valid_email,
    is_valid_otp,
    normalize_email,
)
from hure_core.schemas.onboard import ClinicCreate
from hure_core.schemas.plans import PriceQuoteOut

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    field_name = ".".join(str(p) for p in err.get("loc", ()))
    return f"{field_name}: {err['msg']}" if field_name else err["msg"]


class OnboardingStep(enum.IntEnum):
    PRODUCT = 1
    BUSINESS = 2
    TEMP_PASSWORD = 3
    VERIFY_EMAIL = 4
    PAYMENT = 5


class StepOrderError(HureClientError):
    """Action called while the wizard is on a different step."""


@dataclass
class BusinessDetails:
    name: str = ""
    email: str = ""
    phone: str = ""
    contact_name: str = ""
    town: Optional[str] = None
    country: str = "Kenya"
    business_license: Optional[str] = None


@dataclass
class OnboardingSession:
    step: OnboardingStep = OnboardingStep.PRODUCT
    product: Optional[str] = None
    plan_key: Optional[str] = None
    business: BusinessDetails = field(default_factory=BusinessDetails)
    # bound once the clinic exists; never cleared by back-navigation
    tenant_id: Optional[UUID] = None
    temp_password_set: bool = False
    email_verified: bool = False
    payment_resolved: bool = False
    quote: Optional[PriceQuoteOut] = None
    error: Optional[str] = None

    @property
    def modules(self) -> list[str]:
        return modules_for_product(self.product)

    @property
    def is_bundle(self) -> bool:
        return normalize_key(self.product) == PRODUCT_BUNDLE

    @property
    def is_complete(self) -> bool:
        return self.payment_resolved


class OnboardingFlow:
    def __init__(
        self,
        client: HureClient,
        *,
        allow_skip_payment: bool = False,
        session: Optional[OnboardingSession] = None,
    ):
        self.client = client
        self.allow_skip_payment = allow_skip_payment
        self.session = session if session is not None else OnboardingSession()

    @property
    def step(self) -> OnboardingStep:
        return self.session.step

    @property
    def pricing(self) -> PriceQuote:
        """Quote for the current product/plan choice; zeroed when the plan is unknown."""
        return get_plan_price(self.session.modules, self.session.plan_key)

    # ---------------------------------------------------------
    # helpers
    # ---------------------------------------------------------
    def _require_step(self, step: OnboardingStep) -> None:
        if self.session.is_complete:
            raise StepOrderError("Onboarding already completed")
        if self.session.step != step:
            raise StepOrderError(f"Expected step {int(step)}, wizard is on step {int(self.session.step)}")

    def _invalid(self, message: str) -> ValidationError:
        self.session.error = message
        return ValidationError(message)

    async def _remote(self, call: Awaitable[T]) -> T:
        try:
            return await call
        except HureClientError as exc:
            self.session.error = exc.message
            raise

    # ---------------------------------------------------------
    # Step 1
    # ---------------------------------------------------------
    def select_plan(self, product: Optional[str], plan_key: Optional[str]) -> None:
        self._require_step(OnboardingStep.PRODUCT)
        if is_blank(product) or is_blank(plan_key):
            raise self._invalid("Please select a product and plan")

        p = normalize_key(product)
        if p not in {Product.CORE.value, Product.CARE.value, PRODUCT_BUNDLE}:
            raise self._invalid("Please select a product and plan")

        # bundles are keyed by their core tier
        catalog_product = Product.CORE if p == PRODUCT_BUNDLE else Product(p)
        if get_plan_details(catalog_product, plan_key) is None:
            raise self._invalid(f"Unknown plan for {p}: {normalize_key(plan_key)}")

        self.session.product = p
        self.session.plan_key = normalize_key(plan_key)
        self.session.error = None
        self.session.step = OnboardingStep.BUSINESS

    # ---------------------------------------------------------
    # Step 2
    # ---------------------------------------------------------
    async def submit_business_details(self, details: BusinessDetails) -> UUID:
        self._require_step(OnboardingStep.BUSINESS)
        if any(is_blank(v) for v in (details.name, details.email, details.phone, details.contact_name)):
            raise self._invalid("Please fill all required fields")
        if not is_valid_email(details.email):
            raise self._invalid("Please enter a valid email")

        # Came back from a later step: the clinic already exists, keep it
        if self.session.tenant_id is not None:
            if normalize_email(details.email) != normalize_email(self.session.business.email):
                raise self._invalid("Email cannot be changed after registration")
            self.session.business = details
            self.session.error = None
            self.session.step = OnboardingStep.TEMP_PASSWORD
            return self.session.tenant_id

        try:
            payload = ClinicCreate(
                name=details.name,
                town=details.town,
                country=details.country,
                contact_name=details.contact_name,
                email=details.email,
                phone=details.phone,
                business_license=details.business_license,
                modules=self.session.modules,
                plan_key=self.session.plan_key,
                plan_product=Product.CORE.value if self.session.is_bundle else self.session.product,
            )
        except PydanticValidationError as exc:
            raise self._invalid(_first_error(exc))

        self.session.business = details
        created = await self._remote(self.client.create_clinic(payload))

        self.session.tenant_id = created.clinic_id
        self.session.error = None
        self.session.step = OnboardingStep.TEMP_PASSWORD
        logger.info("Clinic %s created for %s", created.clinic_id, details.email)
        return created.clinic_id

    # ---------------------------------------------------------
    # Step 3
    # ---------------------------------------------------------
    async def submit_temp_password(self, password: Optional[str], confirm: Optional[str]) -> None:
        self._require_step(OnboardingStep.TEMP_PASSWORD)
        if not password or not confirm:
            raise self._invalid("Please enter password")
        if len(password) < MIN_TEMP_PASSWORD_LENGTH:
            raise self._invalid(f"Password must be at least {MIN_TEMP_PASSWORD_LENGTH} characters")
        if password != confirm:
            raise self._invalid("Passwords do not match")

        await self._remote(
            self.client.set_temp_password(self.session.tenant_id, self.session.business.email, password)
        )
        self.session.temp_password_set = True
        self.session.error = None
        self.session.step = OnboardingStep.VERIFY_EMAIL

        # dispatch failure leaves the wizard on step 4; resend_otp retries
        await self._dispatch_otp()

    async def _dispatch_otp(self) -> None:
        await self._remote(
            self.client.send_verification_code(self.session.tenant_id, self.session.business.email)
        )

    # ---------------------------------------------------------
    # Step 4
    # ---------------------------------------------------------
    async def resend_otp(self) -> None:
        self._require_step(OnboardingStep.VERIFY_EMAIL)
        await self._dispatch_otp()
        self.session.error = None

    async def verify_otp(self, code: Optional[str]) -> PriceQuoteOut:
        self._require_step(OnboardingStep.VERIFY_EMAIL)
        if not is_valid_otp(code):
            raise self._invalid("Please enter the 6-digit code")

        result = await self._remote(self.client.verify_otp(self.session.tenant_id, code))

        self.session.email_verified = True
        self.session.quote = result.pricing
        self.session.error = None
        self.session.step = OnboardingStep.PAYMENT
        return result.pricing

    # ---------------------------------------------------------
    # Step 5
    # ---------------------------------------------------------
    async def skip_payment(self) -> None:
        self._require_step(OnboardingStep.PAYMENT)
        if not self.allow_skip_payment:
            raise self._invalid("Not available in production")
        if self.session.quote is not None and self.session.quote.final_amount <= 0:
            raise self._invalid("Plan is not priced")

        await self._remote(self.client.skip_payment(self.session.tenant_id))

        self.session.payment_resolved = True
        self.session.error = None
        logger.info("Payment skipped for clinic %s", self.session.tenant_id)

    # ---------------------------------------------------------
    # Navigation
    # ---------------------------------------------------------
    def back(self) -> OnboardingStep:
        if self.session.is_complete:
            raise StepOrderError("Onboarding already completed")
        if self.session.step > OnboardingStep.PRODUCT:
            self.session.step = OnboardingStep(self.session.step - 1)
        self.session.error = None
        return self.session.step
