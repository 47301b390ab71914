"""Pytest configuration and shared fixtures."""
import json
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from pickup_portal.clients.waste_api import WasteCollectionApi
from pickup_portal.main import create_app
from pickup_portal.services.dashboard import DashboardSessions

BASE_URL = "http://collection.test/api"

TRANSITIONS = {
    "RECEIVED": {"ASSIGNED", "CANCELLED"},
    "ASSIGNED": {"IN_PROGRESS", "CANCELLED"},
    "IN_PROGRESS": {"COMPLETED", "CANCELLED"},
    "CANCELLED": {"RECEIVED"},
    "COMPLETED": set(),
}


class FakeCollectionService:
    """In-memory stand-in for the collection REST API."""

    def __init__(self) -> None:
        self.municipalities = [
            {"code": "LIS", "name": "Lisboa"},
            {"code": "PRT", "name": "Porto"},
            {"code": "AVR", "name": "Aveiro"},
        ]
        self.requests: Dict[int, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.forced: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.unreachable = False
        self._next_id = 1

    # -------------------------
    # helpers used by tests
    # -------------------------
    def force(self, method: str, path: str, status: int, body: Any, skip: int = 0) -> None:
        """Answer the next matching call after letting `skip` of them through."""
        self.forced[(method, path)] = (status, body, skip)

    def seed(self, status: str = "RECEIVED", municipality: str = "Lisboa") -> Dict[str, Any]:
        doc = self._new_request(
            {
                "municipalityCode": municipality[:3].upper(),
                "municipalityName": municipality,
                "citizenName": "Maria Silva",
                "citizenEmail": "maria@example.pt",
                "citizenPhone": "912345678",
                "pickupAddress": "Rua Augusta 100, Lisboa",
                "itemDescription": "Old sofa and a broken fridge",
                "preferredDate": (date.today() + timedelta(days=3)).isoformat(),
                "preferredTimeSlot": "MORNING",
            }
        )
        if status != "RECEIVED":
            self._move(doc, status, "seeded")
        return doc

    def external_calls(self) -> List[Tuple[str, str]]:
        return list(self.calls)

    # -------------------------
    # internals
    # -------------------------
    def _now(self) -> str:
        return datetime.utcnow().isoformat()

    def _history(self, doc, previous: Optional[str], new: str, notes: Optional[str]) -> None:
        doc["statusHistory"].append(
            {
                "id": len(doc["statusHistory"]) + 1,
                "previousStatus": previous,
                "newStatus": new,
                "timestamp": self._now(),
                "notes": notes,
            }
        )

    def _new_request(self, body: Dict[str, Any]) -> Dict[str, Any]:
        now = self._now()
        doc = dict(body)
        doc.update(
            {
                "id": self._next_id,
                "token": str(uuid.uuid4()),
                "status": "RECEIVED",
                "createdAt": now,
                "updatedAt": now,
                "statusHistory": [],
            }
        )
        self._history(doc, None, "RECEIVED", "Initial request created")
        self.requests[doc["id"]] = doc
        self._next_id += 1
        return doc

    def _move(self, doc, new_status: str, notes: Optional[str]) -> None:
        previous = doc["status"]
        doc["status"] = new_status
        doc["updatedAt"] = self._now()
        self._history(doc, previous, new_status, notes)

    def _by_token(self, token: str) -> Optional[Dict[str, Any]]:
        for doc in self.requests.values():
            if doc["token"] == token:
                return doc
        return None

    @staticmethod
    def _error(status: int, message: str, errors: Optional[dict] = None) -> httpx.Response:
        body = {"status": status, "message": message, "timestamp": datetime.utcnow().isoformat()}
        if errors:
            body["errors"] = errors
        return httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        # encoded form, so an escaped segment is never mistaken for a route
        path = request.url.raw_path.decode("ascii").split("?", 1)[0].replace("/api", "", 1)
        method = request.method
        self.calls.append((method, path))

        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        forced = self.forced.pop((method, path), None)
        if forced is not None:
            status, body, skip = forced
            if skip:
                self.forced[(method, path)] = (status, body, skip - 1)
            elif isinstance(body, str):
                return httpx.Response(status, text=body)
            else:
                return httpx.Response(status, json=body)

        parts = [p for p in path.split("/") if p]

        if method == "GET" and parts == ["municipalities"]:
            return httpx.Response(200, json=self.municipalities)

        if method == "POST" and parts == ["requests"]:
            body = json.loads(request.content)
            if len(body.get("citizenName", "")) < 2:
                return self._error(
                    400, "Validation failed", {"citizenName": "Citizen name is required"}
                )
            return httpx.Response(201, json=self._new_request(body))

        if parts[:1] == ["requests"] and len(parts) == 2:
            doc = self._by_token(parts[1])
            if doc is None:
                return self._error(404, f"Service request not found with token : '{parts[1]}'")
            if method == "GET":
                return httpx.Response(200, json=doc)
            if method == "DELETE":
                if doc["status"] == "COMPLETED":
                    return self._error(400, "Cannot cancel a completed request")
                if doc["status"] == "CANCELLED":
                    return self._error(400, "Request is already cancelled")
                self._move(doc, "CANCELLED", "Cancelled by citizen")
                return httpx.Response(200, json=doc)

        if method == "GET" and parts == ["staff", "requests"]:
            municipality = request.url.params.get("municipality")
            docs = sorted(self.requests.values(), key=lambda d: d["createdAt"], reverse=True)
            if municipality:
                docs = [d for d in docs if d["municipalityName"] == municipality]
            return httpx.Response(200, json=docs)

        if method == "PUT" and parts[:2] == ["staff", "requests"] and parts[3:] == ["status"]:
            doc = self.requests.get(int(parts[2]))
            if doc is None:
                return self._error(404, f"Service request not found with id : '{parts[2]}'")
            body = json.loads(request.content)
            new_status = body.get("newStatus")
            if new_status not in TRANSITIONS[doc["status"]]:
                return self._error(
                    400, f"Invalid status transition from {doc['status']} to {new_status}"
                )
            self._move(doc, new_status, body.get("notes"))
            return httpx.Response(200, json=doc)

        return self._error(404, "Not found")


@pytest.fixture
def fake_service() -> FakeCollectionService:
    return FakeCollectionService()


@pytest.fixture
def http_client(fake_service: FakeCollectionService) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(fake_service.handler),
    )


@pytest.fixture
def api(http_client: httpx.AsyncClient) -> WasteCollectionApi:
    return WasteCollectionApi(http_client)


@pytest.fixture
def client(api: WasteCollectionApi):
    app = create_app()
    app.state.waste_api = api
    app.state.dashboard_sessions = DashboardSessions()
    with TestClient(app) as test_client:
        yield test_client
