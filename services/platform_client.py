"""
Async client for the investment platform REST backend.

Thin wrappers only: each method is a single request/response. Errors surface as
PlatformError carrying the backend's message (or a fallback); nothing is retried.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from config import settings
from schemas.portfolio import PaymentSchema, PortfolioItemSchema
from schemas.scheme import SchemeSchema
from services.errors import PlatformError

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "schemes_by_project": "/investment-schemes/project",
    "user_profile_create": "/user_profile/create",
    "user_profile_list": "/user_profile/list",
    "purchased_unit_create": "/purchased-unit/create",
    "payments_list": "/payments/list",
    "portfolio": "/users/portfolio",
    "verify_pan": "/documents/verify-pan",
    "verify_aadhaar": "/documents/verify-aadhaar",
    "verify_gstin": "/documents/verify-gstin",
    "verify_passport": "/documents/verify-passport",
}

_VALID_STATUSES = {"valid", "verified", "success"}


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or fallback
    return fallback


def _verification_passed(body: dict[str, Any], status_key: str) -> bool:
    if body.get("valid") is True:
        return True
    for key in (status_key, "status"):
        status = body.get(key)
        if isinstance(status, str) and status.lower() in _VALID_STATUSES:
            return True
    return False


class PlatformClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = token if token.lower().startswith("bearer ") else f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.platform_api_url,
            timeout=timeout or settings.platform_timeout_seconds,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "PlatformClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, fallback: str, **kwargs) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise PlatformError(fallback) from e
        if response.is_error:
            message = _error_message(response, fallback)
            logger.warning("%s %s returned %s: %s", method, url, response.status_code, message)
            raise PlatformError(message, status_code=response.status_code)
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {"data": body}

    async def list_schemes(self, project_id: str, page: int = 1, limit: int = 10) -> list[SchemeSchema]:
        body = await self._request(
            "GET",
            ENDPOINTS["schemes_by_project"],
            "Error fetching schemes. Please try again.",
            params={"project_id": project_id, "page": page, "limit": limit},
        )
        return [SchemeSchema.model_validate(s) for s in body.get("schemes") or []]

    async def create_user_profile(self, account, documents: Optional[dict[str, Any]] = None) -> str:
        payload = account.data.to_profile_request()
        payload["account_type"] = account.type
        if documents:
            payload["documents"] = documents
        body = await self._request(
            "POST",
            ENDPOINTS["user_profile_create"],
            "Failed to create user profile",
            files={"profile_data": (None, json.dumps(payload), "application/json")},
        )
        profile_id = body.get("user_profile_id") or (body.get("data") or {}).get("user_profile_id")
        if not profile_id:
            raise PlatformError("No user profile ID returned from server")
        return str(profile_id)

    async def list_user_profiles(self) -> list[dict[str, Any]]:
        body = await self._request("GET", ENDPOINTS["user_profile_list"], "Failed to load user profiles")
        return body.get("user_profiles") or body.get("data") or []

    async def create_purchased_unit(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self._request(
            "POST", ENDPOINTS["purchased_unit_create"], "Failed to complete purchase", json=payload
        )
        if body.get("status") == "error":
            raise PlatformError(body.get("message") or "Failed to complete purchase")
        return body

    async def list_payments(self, unit_id: str) -> list[PaymentSchema]:
        body = await self._request(
            "GET", ENDPOINTS["payments_list"], "Failed to load payments", params={"unit_id": unit_id}
        )
        return [PaymentSchema.model_validate(p) for p in body.get("payments") or body.get("data") or []]

    async def get_portfolio(self) -> list[PortfolioItemSchema]:
        body = await self._request("GET", ENDPOINTS["portfolio"], "Failed to load portfolio")
        items = body.get("portfolio") or body.get("data") or []
        return [PortfolioItemSchema.model_validate(i) for i in items]

    async def verify_pan(self, pan_number: str, full_name: str) -> tuple[bool, str]:
        body = await self._request(
            "POST", ENDPOINTS["verify_pan"], "PAN verification failed",
            json={"pan_number": pan_number, "full_name": full_name},
        )
        return _verification_passed(body, "pan_status"), body.get("detail") or body.get("message") or ""

    async def verify_aadhaar(self, aadhar_number: str, image: Optional[tuple[str, bytes, str]] = None) -> tuple[bool, str]:
        files: dict[str, Any] = {"aadhar_number": (None, aadhar_number)}
        if image is not None:
            files["aadhar_image"] = image
        body = await self._request(
            "POST", ENDPOINTS["verify_aadhaar"], "Aadhaar verification failed", files=files
        )
        return _verification_passed(body, "aadhar_status"), body.get("detail") or body.get("message") or ""

    async def verify_gstin(self, gst_number: str) -> tuple[bool, str]:
        body = await self._request(
            "POST", ENDPOINTS["verify_gstin"], "GSTIN verification failed", json={"gst_number": gst_number}
        )
        return _verification_passed(body, "gst_status"), body.get("detail") or body.get("message") or ""

    async def verify_passport(self, passport_number: str, full_name: str, dob: str) -> tuple[bool, str]:
        body = await self._request(
            "POST", ENDPOINTS["verify_passport"], "Passport verification failed",
            json={"passport_number": passport_number, "full_name": full_name, "dob": dob},
        )
        return _verification_passed(body, "passport_status"), body.get("detail") or body.get("message") or ""
