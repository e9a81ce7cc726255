from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import Field

from hure_core.schemas.base import ActionResult, CamelModel
from hure_core.schemas.plans import PriceQuoteOut


# ---------------------------------------------------------
# Requests
# ---------------------------------------------------------
class ClinicCreate(CamelModel):
    # name/email presence is checked in the route so the error text matches the wizard's
    name: Optional[str] = Field(default=None, max_length=200)
    town: Optional[str] = Field(default=None, max_length=120)
    country: str = Field(default="Kenya", max_length=80)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=320)
    phone: Optional[str] = Field(default=None, max_length=32)
    business_license: Optional[str] = Field(default=None, max_length=120)
    modules: List[str] = Field(default_factory=lambda: ["core"])
    plan_key: str = Field(default="essential", max_length=40)
    plan_product: str = Field(default="core", max_length=10)


class TempPasswordRequest(CamelModel):
    clinic_id: Optional[UUID] = None
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyEmailRequest(CamelModel):
    clinic_id: Optional[UUID] = None
    email: Optional[str] = None


class VerifyOtpRequest(CamelModel):
    clinic_id: Optional[UUID] = None
    code: Optional[str] = None


class SkipPaymentRequest(CamelModel):
    clinic_id: Optional[UUID] = None


# ---------------------------------------------------------
# Responses
# ---------------------------------------------------------
class ClinicCreated(ActionResult):
    clinic_id: UUID


class ClinicSummary(CamelModel):
    id: UUID
    name: str
    modules: List[str]
    plan_key: str
    is_bundle: bool


class OtpVerified(ActionResult):
    pricing: PriceQuoteOut
    clinic: ClinicSummary


class PaymentSkipped(ActionResult):
    clinic_id: UUID
    clinic_name: str
