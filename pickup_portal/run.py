"""Start the portal with uvicorn using the configured host/port."""

import uvicorn

from pickup_portal.core.config import get_settings


def main() -> None:
    settings = get_settings()
    config = uvicorn.Config(
        "pickup_portal.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
    uvicorn.Server(config).run()


if __name__ == "__main__":
    main()
