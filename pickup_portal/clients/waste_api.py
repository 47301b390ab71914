from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from pickup_portal.core.config import Settings
from pickup_portal.core.errors import (
    ApiConnectionError,
    ApiRequestError,
    ApiResponseError,
)
from pickup_portal.core.logging_config import mask_token
from pickup_portal.models.service_requests import (
    Municipality,
    ServiceRequest,
    ServiceRequestCreate,
    StatusUpdate,
)

logger = logging.getLogger(__name__)


def token_path(token: str) -> str:
    # one opaque segment; dots are escaped so ".." never resolves upwards
    return "/requests/" + quote(token, safe="").replace(".", "%2E")


async def log_request(request: httpx.Request) -> None:
    logger.debug("HTTP %s %s", request.method, request.url.path)


def make_client(settings: Settings, **kwargs: Any) -> httpx.AsyncClient:
    timeout = httpx.Timeout(
        settings.api_timeout_seconds,
        connect=settings.api_connect_timeout_seconds,
    )
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=timeout,
        headers={"Content-Type": "application/json"},
        event_hooks={"request": [log_request]},
        **kwargs,
    )


class WasteCollectionApi:
    """
    Thin async wrapper around the collection service REST API.

    Every method either returns parsed models or raises one of
    ApiResponseError / ApiConnectionError / ApiRequestError.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        log_path: Optional[str] = None,
    ) -> Any:
        shown = log_path or path
        try:
            response = await self.client.request(method, path, json=json, params=params)
        except httpx.TransportError as exc:
            logger.error("%s %s failed without response: %r", method, shown, exc)
            raise ApiConnectionError(str(exc)) from exc
        except (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError) as exc:
            logger.error("%s %s could not be sent: %r", method, shown, exc)
            raise ApiRequestError(str(exc)) from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            logger.warning(
                "%s %s returned %d body_snippet=%r",
                method,
                shown,
                response.status_code,
                (response.text or "")[:300],
            )
            raise ApiResponseError.from_body(response.status_code, body)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiRequestError(f"Invalid JSON from {shown}") from exc

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ApiRequestError(f"Unexpected {model.__name__} payload: {exc}") from exc

    # -------------------------
    # Municipalities
    # -------------------------
    async def list_municipalities(self) -> List[Municipality]:
        data = await self._send("GET", "/municipalities")
        return [self._parse(Municipality, item) for item in data or []]

    # -------------------------
    # Citizen
    # -------------------------
    async def create_request(self, payload: ServiceRequestCreate) -> ServiceRequest:
        data = await self._send("POST", "/requests", json=payload.to_wire())
        created = self._parse(ServiceRequest, data)
        logger.info(
            "Created request id=%s token=%s", created.id, mask_token(created.token)
        )
        return created

    async def get_request_by_token(self, token: str) -> ServiceRequest:
        path = token_path(token)
        data = await self._send(
            "GET", path, log_path=f"/requests/{mask_token(token)}"
        )
        return self._parse(ServiceRequest, data)

    async def cancel_request(self, token: str) -> Optional[ServiceRequest]:
        path = token_path(token)
        data = await self._send(
            "DELETE", path, log_path=f"/requests/{mask_token(token)}"
        )
        logger.info("Cancelled request token=%s", mask_token(token))
        # some deployments answer 204 with no body
        if data is None:
            return None
        return self._parse(ServiceRequest, data)

    # -------------------------
    # Staff
    # -------------------------
    async def list_staff_requests(
        self, municipality: Optional[str] = None
    ) -> List[ServiceRequest]:
        params = {"municipality": municipality} if municipality else None
        data = await self._send("GET", "/staff/requests", params=params)
        return [self._parse(ServiceRequest, item) for item in data or []]

    async def update_status(self, request_id: int, payload: StatusUpdate) -> ServiceRequest:
        data = await self._send(
            "PUT", f"/staff/requests/{request_id}/status", json=payload.to_wire()
        )
        updated = self._parse(ServiceRequest, data)
        logger.info("Request %s moved to %s", request_id, updated.status)
        return updated
