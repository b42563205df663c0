import uvicorn
from fastapi import FastAPI

from academy.api.routes.health import router as health_router
from academy.api.routes.internal_access import router as internal_access_router
from academy.api.routes.internal_entitlements import router as internal_entitlements_router
from academy.api.routes.internal_purchases import router as internal_purchases_router
from academy.core.config import get_settings
from academy.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Academy Entitlements API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.include_router(health_router)
    app.include_router(internal_access_router)
    app.include_router(internal_entitlements_router)
    app.include_router(internal_purchases_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "academy.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
