from datetime import date, timedelta

from pickup_portal.models.service_requests import ServiceRequest


def make_request(request_id: int = 1, status: str = "RECEIVED", **overrides) -> ServiceRequest:
    data = {
        "id": request_id,
        "token": f"token-{request_id}",
        "municipalityCode": "LIS",
        "municipalityName": "Lisboa",
        "citizenName": "Maria Silva",
        "citizenPhone": "912345678",
        "pickupAddress": "Rua Augusta 100",
        "itemDescription": "Old wardrobe",
        "preferredDate": (date.today() + timedelta(days=2)).isoformat(),
        "preferredTimeSlot": "AFTERNOON",
        "status": status,
        "createdAt": "2026-10-01T09:00:00",
        "updatedAt": "2026-10-01T09:00:00",
        "statusHistory": [],
    }
    data.update(overrides)
    return ServiceRequest.model_validate(data)
