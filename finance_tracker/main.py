# finance_tracker/main.py

import contextlib
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from finance_tracker.api.auth_api import router as auth_router
from finance_tracker.api.categories_api import router as categories_router
from finance_tracker.api.transactions_api import router as transactions_router
from finance_tracker.core.config import Settings
from finance_tracker.core.exceptions import register_exception_handlers
from finance_tracker.core.mailer import NotificationSender, build_notification_sender
from finance_tracker.data.database import build_engine, build_session_factory, check_db_connection, create_tables

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, notifier: Optional[NotificationSender] = None) -> FastAPI:
    """
    Builds the API. Settings are read from the environment only when not given.
    """
    settings = settings or Settings.from_env()
    engine = build_engine(settings.database_url)

    # --- Lifespan Context Manager ---
    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Finance Tracker API ({settings.environment})...")
        try:
            if not check_db_connection(engine):
                logger.critical("Failed to connect to the database.")
            create_tables(engine)
            yield
        finally:
            logger.info("Shutting down Finance Tracker API...")
            engine.dispose()
            logger.info("Database engine disposed.")

    app = FastAPI(
        title="Finance Tracker API",
        description="Personal finance tracker: users, categories, transactions and login tokens.",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.notifier = notifier or build_notification_sender(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/api/health", summary="Health check")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
    app.include_router(categories_router, prefix="/api/categories", tags=["Categories"])
    app.include_router(transactions_router, prefix="/api/transactions", tags=["Transactions"])

    return app
