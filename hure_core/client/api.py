"""
HURE Core - API client

Async client for the onboarding, auth, clinic administration, plan and
employer endpoints. Every call returns a parsed response model or raises
one of the errors in hure_core.client.errors.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Type, TypeVar
from uuid import UUID

import httpx
from pydantic import BaseModel

from hure_core.client.errors import AuthExpiry, BackendRejection, NetworkFailure
from hure_core.client.session import ApiSession
from hure_core.schemas.auth import TokenResponse, VerifyTokenResponse
from hure_core.schemas.base import ActionResult
from hure_core.schemas.clinic import ActivationResult, ClinicListOut, ClinicResponse, ClinicStatsOut
from hure_core.schemas.employer import PermissionsOut, PlanUsageOut
from hure_core.schemas.onboard import ClinicCreate, ClinicCreated, OtpVerified, PaymentSkipped
from hure_core.schemas.plans import BundleQuoteOut, PlanCatalogOut, PlanOut, PriceQuoteOut

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _error_message(response: httpx.Response) -> tuple[str, dict[str, Any]]:
    try:
        body = response.json()
    except ValueError:
        return response.text or "API Error", {}
    if isinstance(body, dict):
        return str(body.get("error") or "API Error"), body
    return "API Error", {}


class HureClient:
    def __init__(
        self,
        base_url: str = "",
        *,
        session: Optional[ApiSession] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.session = session if session is not None else ApiSession()
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "HureClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ---------------------------------------------------------
    # Transport
    # ---------------------------------------------------------
    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params,
                headers=self.session.auth_headers(),
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkFailure() from exc

        if response.status_code == 401:
            await self.session.expire()
            message, _ = _error_message(response)
            raise AuthExpiry(message)

        if not response.is_success:
            message, body = _error_message(response)
            raise BackendRejection(response.status_code, message, body)

        return response.json()

    async def _call(self, model: Type[M], method: str, path: str, **kwargs) -> M:
        return model.model_validate(await self.request(method, path, **kwargs))

    @staticmethod
    def _dump(payload: BaseModel) -> dict[str, Any]:
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)

    # ---------------------------------------------------------
    # Onboarding
    # ---------------------------------------------------------
    async def create_clinic(self, payload: ClinicCreate) -> ClinicCreated:
        return await self._call(ClinicCreated, "POST", "/api/onboard/clinic", json=self._dump(payload))

    async def set_temp_password(self, clinic_id: UUID, email: str, password: str) -> ActionResult:
        body = {"clinicId": str(clinic_id), "email": email, "password": password}
        return await self._call(ActionResult, "POST", "/api/onboard/temp-password", json=body)

    async def send_verification_code(self, clinic_id: UUID, email: str) -> ActionResult:
        body = {"clinicId": str(clinic_id), "email": email}
        return await self._call(ActionResult, "POST", "/api/onboard/verify-email", json=body)

    async def verify_otp(self, clinic_id: UUID, code: str) -> OtpVerified:
        body = {"clinicId": str(clinic_id), "code": code}
        return await self._call(OtpVerified, "POST", "/api/onboard/verify-otp", json=body)

    async def skip_payment(self, clinic_id: UUID) -> PaymentSkipped:
        return await self._call(PaymentSkipped, "POST", "/api/onboard/skip-payment", json={"clinicId": str(clinic_id)})

    # ---------------------------------------------------------
    # Auth
    # ---------------------------------------------------------
    async def login(self, identifier: str, password: str) -> TokenResponse:
        result = await self._call(
            TokenResponse, "POST", "/api/auth/login", json={"identifier": identifier, "password": password}
        )
        self.session.login(result.token)
        return result

    async def first_login(self, token: str, temp_password: str, username: str, new_password: str) -> TokenResponse:
        body = {"token": token, "tempPassword": temp_password, "username": username, "newPassword": new_password}
        result = await self._call(TokenResponse, "POST", "/api/auth/first-login", json=body)
        self.session.login(result.token)
        return result

    async def verify_first_login_token(self, token: str) -> VerifyTokenResponse:
        return await self._call(VerifyTokenResponse, "GET", "/api/auth/verify-token", params={"token": token})

    async def resend_activation(self, clinic_id: UUID) -> ActionResult:
        return await self._call(
            ActionResult, "POST", "/api/auth/resend-activation", json={"clinicId": str(clinic_id)}
        )

    # ---------------------------------------------------------
    # Clinic administration (superadmin)
    # ---------------------------------------------------------
    async def list_clinics(
        self,
        *,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> ClinicListOut:
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if status:
            params["status"] = status
        if search:
            params["search"] = search
        return await self._call(ClinicListOut, "GET", "/api/clinics", params=params)

    async def get_clinic(self, clinic_id: UUID) -> ClinicResponse:
        return await self._call(ClinicResponse, "GET", f"/api/clinics/{clinic_id}")

    async def clinic_stats(self) -> ClinicStatsOut:
        return await self._call(ClinicStatsOut, "GET", "/api/clinics/stats/overview")

    async def activate_clinic(self, clinic_id: UUID) -> ActivationResult:
        return await self._call(ActivationResult, "PATCH", f"/api/clinics/{clinic_id}/activate")

    async def suspend_clinic(self, clinic_id: UUID, reason: Optional[str] = None) -> ActionResult:
        return await self._call(ActionResult, "PATCH", f"/api/clinics/{clinic_id}/suspend", json={"reason": reason})

    async def reject_clinic(self, clinic_id: UUID, reason: Optional[str] = None) -> ActionResult:
        return await self._call(ActionResult, "PATCH", f"/api/clinics/{clinic_id}/reject", json={"reason": reason})

    async def change_clinic_plan(
        self, clinic_id: UUID, plan_key: str, modules: Optional[Iterable[str]] = None
    ) -> ActionResult:
        body: dict[str, Any] = {"planKey": plan_key}
        if modules is not None:
            body["modules"] = list(modules)
        return await self._call(ActionResult, "PATCH", f"/api/clinics/{clinic_id}/change-plan", json=body)

    # ---------------------------------------------------------
    # Plans (public)
    # ---------------------------------------------------------
    async def list_plans(self, product: Optional[str] = None) -> PlanCatalogOut:
        params = {"product": product} if product else None
        return await self._call(PlanCatalogOut, "GET", "/api/plans", params=params)

    async def get_plan(self, product: str, plan_key: str) -> PlanOut:
        return await self._call(PlanOut, "GET", f"/api/plans/{product}/{plan_key}")

    async def bundle_quote(self, core: str, care: Optional[str] = None) -> BundleQuoteOut:
        params = {"core": core}
        if care:
            params["care"] = care
        return await self._call(BundleQuoteOut, "GET", "/api/plans/bundle", params=params)

    async def price_quote(self, modules: Iterable[str], plan_key: str) -> PriceQuoteOut:
        params = {"modules": ",".join(modules), "planKey": plan_key}
        return await self._call(PriceQuoteOut, "GET", "/api/plans/price", params=params)

    # ---------------------------------------------------------
    # Employer
    # ---------------------------------------------------------
    async def my_permissions(self) -> PermissionsOut:
        return await self._call(PermissionsOut, "GET", "/api/employer/permissions")

    async def plan_usage(self) -> PlanUsageOut:
        return await self._call(PlanUsageOut, "GET", "/api/employer/plan-usage")
