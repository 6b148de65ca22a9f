import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from src.api.v1.router import api_router
from src.app.config import Settings, settings as default_settings
from src.app.exceptions import register_exception_handlers
from src.app.logging_config import setup_logging
from src.app.middleware import register_middleware
from src.core.errors import StoreUnavailableError
from src.services.accounts import AccountService
from src.services.files import FileService
from src.services.payments import PlanUpgradeWorkflow, build_verifier
from src.services.quota import QuotaAccountant
from src.services.storage.local import LocalStorage
from src.store import FallbackStore, SqlStore, Store, build_store

logger = logging.getLogger(__name__)


def _prepare_store(store: Store) -> None:
    """Create tables on a reachable database and report the serving mode."""
    if not isinstance(store, FallbackStore):
        return
    if isinstance(store.primary, SqlStore):
        try:
            store.primary.create_schema()
        except StoreUnavailableError as e:
            logger.warning(f"Could not prepare database schema: {e}")
    if not store.probe():
        logger.warning("Starting in degraded mode: data will be kept in memory only")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    app_settings: Settings = app.state.settings
    setup_logging()
    logger.info(f"Starting {app_settings.APP_NAME} ({app_settings.ENVIRONMENT})...")
    _prepare_store(app.state.store)
    app.state.accounts.provision_root_admin(
        app_settings.ROOT_ADMIN_USERNAME,
        app_settings.ROOT_ADMIN_PASSWORD,
        app_settings.ROOT_ADMIN_EMAIL,
        allow_generated=app_settings.IS_DEVELOPMENT,
    )
    yield
    # Shutdown
    logger.info("Shutting down...")


def create_application(app_settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    app_settings = app_settings or default_settings

    application = FastAPI(
        title=app_settings.APP_NAME,
        debug=app_settings.DEBUG,
        version="0.1.0",
        lifespan=lifespan,
    )

    store = store or build_store(app_settings)
    storage = LocalStorage(app_settings.UPLOAD_DIR, app_settings.PUBLIC_BASE_URL, app_settings.API_V1_PREFIX)
    quota = QuotaAccountant(store)

    application.state.settings = app_settings
    application.state.store = store
    application.state.storage = storage
    application.state.accounts = AccountService(store, storage)
    application.state.files = FileService(store, storage, quota)
    application.state.workflow = PlanUpgradeWorkflow(
        store,
        build_verifier(app_settings.PAYMENT_VERIFIER_MODE),
        app_settings.UPI_ID,
    )

    # Middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(GZipMiddleware, minimum_size=1000)
    register_middleware(application)
    register_exception_handlers(application)

    # Routers
    application.include_router(api_router, prefix=app_settings.API_V1_PREFIX)

    @application.get("/health")
    def health_check():
        store_mode = "memory"
        if isinstance(store, FallbackStore):
            store.probe()
            store_mode = store.mode
        return {
            "status": "healthy" if store_mode != "degraded" else "degraded",
            "environment": app_settings.ENVIRONMENT,
            "store": store_mode,
        }

    return application


app = create_application()
