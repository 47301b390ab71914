from fastapi import APIRouter

from pickup_portal.schemas.views import HomeView
from pickup_portal.services.presenters import build_home

router = APIRouter(prefix="/views", tags=["Views"])


@router.get("/home", response_model=HomeView)
def home() -> HomeView:
    return build_home()
