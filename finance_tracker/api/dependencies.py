# finance_tracker/api/dependencies.py

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from finance_tracker.business_logic.auth_service import AuthService
from finance_tracker.business_logic.category_service import CategoryService
from finance_tracker.business_logic.transaction_service import TransactionService
from finance_tracker.core.config import Settings
from finance_tracker.core.exceptions import UnauthorizedError
from finance_tracker.core.mailer import NotificationSender
from finance_tracker.core.security import decode_access_token
from finance_tracker.data.database import get_db


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notifier(request: Request) -> NotificationSender:
    return request.app.state.notifier


def get_current_user_id(
        authorization: Optional[str] = Header(None),
        settings: Settings = Depends(get_settings)
) -> str:
    """Resolves the bearer token to a user id before any handler logic runs."""
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing token.")
    return decode_access_token(authorization[len("Bearer "):].strip(), settings.jwt_secret)


def get_auth_service(
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
        notifier: NotificationSender = Depends(get_notifier)
) -> AuthService:
    return AuthService(db, settings, notifier)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


def get_transaction_service(db: Session = Depends(get_db)) -> TransactionService:
    return TransactionService(db)
