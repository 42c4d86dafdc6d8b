import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inventory_tracker.api import auth, products, reports
from inventory_tracker.config import Settings, settings
from inventory_tracker.database import Database
from inventory_tracker.errors import InventoryError
from inventory_tracker.services.auth_service import ensure_default_admin

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    logging.basicConfig(
        level=app_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(app_settings.DATABASE_URL)
        database.create_all()
        db = database.session()
        try:
            ensure_default_admin(
                db,
                name=app_settings.DEFAULT_ADMIN_NAME,
                email=app_settings.DEFAULT_ADMIN_EMAIL,
                password=app_settings.DEFAULT_ADMIN_PASSWORD,
            )
        finally:
            db.close()
        app.state.database = database
        logger.info("%s started", app_settings.APP_NAME)
        yield
        database.dispose()
        logger.info("Database connections closed")

    app = FastAPI(
        title=f"{app_settings.APP_NAME} API",
        description="Product catalog with an append-only inventory history ledger",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[u.strip() for u in app_settings.FRONTEND_URL.split(",") if u.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Return JSON for unhandled exceptions so the frontend can parse the error."""
        logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(products.router, prefix="/api/v1")
    app.include_router(reports.router, prefix="/api/v1")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
