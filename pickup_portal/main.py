from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pickup_portal.api.citizen import router as citizen_router
from pickup_portal.api.home import router as home_router
from pickup_portal.api.staff import router as staff_router
from pickup_portal.clients.waste_api import WasteCollectionApi, make_client
from pickup_portal.core.config import get_settings
from pickup_portal.core.logging_config import configure_logging
from pickup_portal.models.service_requests import ApiErrorBody
from pickup_portal.services.dashboard import DashboardSessions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # tests may install their own client before startup
    if getattr(app.state, "waste_api", None) is None:
        client = make_client(settings)
        app.state.waste_api = WasteCollectionApi(client)
        owned = client
    else:
        owned = None
    if getattr(app.state, "dashboard_sessions", None) is None:
        app.state.dashboard_sessions = DashboardSessions()
    logger.info("Portal started against %s", settings.api_base_url)
    try:
        yield
    finally:
        if owned is not None:
            await owned.aclose()
        logger.info("Portal stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = {}
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ()) if part != "body"]
            errors.setdefault(".".join(loc) or "body", error.get("msg", "Invalid value"))
        body = ApiErrorBody(
            status=400,
            message="Validation failed",
            timestamp=datetime.utcnow().isoformat(),
            errors=errors,
        )
        logger.warning("Validation failed on %s: %s", request.url.path, errors)
        return JSONResponse(status_code=400, content=body.to_wire())

    # views
    app.include_router(home_router)
    app.include_router(citizen_router)
    app.include_router(staff_router)

    @app.get("/")
    def root():
        return {"ok": True, "docs": "/docs"}

    return app


app = create_app()
