# finance_tracker/business_logic/auth_service.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_tracker.core.config import Settings
from finance_tracker.core.exceptions import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from finance_tracker.core.mailer import NotificationSender
from finance_tracker.core.security import (
    create_access_token,
    generate_numeric_code,
    hash_login_token,
    hash_password,
    utc_now,
    verify_password,
)
from finance_tracker.data.models import Category, LoginToken, User, SYSTEM_CATEGORY_NAME
from finance_tracker.data.repositories import CategoryRepository, LoginTokenRepository, UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."
INVALID_LOGIN_TOKEN = "Invalid or expired token."
LOGIN_TOKEN_REQUESTED = "If the email is registered, an access token will be sent."
LOGIN_TOKEN_SENT = "Access token sent to the registered email."


@dataclass
class SessionGrant:
    token: str
    user: User


@dataclass
class LoginTokenIssue:
    message: str
    dev_token: Optional[str] = None


class AuthService:
    """
    Password login, registration and one-time login codes.

    Every failed credential check raises the same UnauthorizedError message
    whatever the cause, so callers cannot probe which emails are registered.
    """

    def __init__(self, db: Session, settings: Settings, notifier: NotificationSender,
                 clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.settings = settings
        self.notifier = notifier
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.category_repo = CategoryRepository(db)
        self.login_token_repo = LoginTokenRepository(db)

    def _grant(self, user: User) -> SessionGrant:
        token = create_access_token(user.id, self.settings.jwt_secret,
                                    expires_days=self.settings.jwt_expires_days, now=self.clock())
        return SessionGrant(token=token, user=user)

    # --- Password flow ---

    def register(self, name: str, email: str, password: str) -> SessionGrant:
        email = email.strip().lower()
        if self.user_repo.get_user_by_email(email):
            raise ConflictError("Email already registered.")

        user = User(name=name.strip(), email=email, password_hash=hash_password(password))
        user.categories.append(Category(name=SYSTEM_CATEGORY_NAME, is_system=True))
        self.user_repo.add_user(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email.
            self.db.rollback()
            raise ConflictError("Email already registered.")
        self.db.refresh(user)

        logger.info(f"User {user.id} registered.")
        return self._grant(user)

    def login(self, email: str, password: str) -> SessionGrant:
        user = self.user_repo.get_user_by_email(email.strip().lower())
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Password login rejected.")
            raise UnauthorizedError(INVALID_CREDENTIALS)
        return self._grant(user)

    # --- One-time login codes ---

    def request_login_token(self, email: str) -> LoginTokenIssue:
        user = self.user_repo.get_user_by_email(email.strip().lower())
        if not user:
            return LoginTokenIssue(message=LOGIN_TOKEN_REQUESTED)

        raw_token = generate_numeric_code(self.settings.login_token_length)
        now = self.clock()
        ttl_minutes = self.settings.login_token_ttl_minutes

        try:
            # Same unit of work: the older unused codes go away with the insert.
            self.login_token_repo.delete_unused_tokens(user.id)
            self.login_token_repo.add_token(LoginToken(
                user_id=user.id,
                token_hash=hash_login_token(raw_token),
                expires_at=now + timedelta(minutes=ttl_minutes),
                created_at=now,
            ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Login token issued for user {user.id}.")

        result = self.notifier.send_login_token(user.email, raw_token, ttl_minutes)
        if not result.delivered:
            logger.info(f"[login-token] {user.email} => {raw_token}")

        if self.settings.expose_login_token:
            return LoginTokenIssue(message=LOGIN_TOKEN_SENT, dev_token=raw_token)
        return LoginTokenIssue(message=LOGIN_TOKEN_SENT)

    def verify_login_token(self, email: str, token: str) -> SessionGrant:
        user = self.user_repo.get_user_by_email(email.strip().lower())
        if not user:
            raise UnauthorizedError(INVALID_LOGIN_TOKEN)

        now = self.clock()
        record = self.login_token_repo.find_valid_token(user.id, hash_login_token(token.strip()), now)
        if not record:
            logger.warning(f"Login token rejected for user {user.id}.")
            raise UnauthorizedError(INVALID_LOGIN_TOKEN)

        if not self.login_token_repo.mark_used(record.id, now):
            self.db.rollback()
            logger.warning(f"Login token {record.id} was consumed concurrently.")
            raise UnauthorizedError(INVALID_LOGIN_TOKEN)
        self.db.commit()

        return self._grant(user)

    # --- Profile ---

    def get_profile(self, user_id: str) -> User:
        user = self.user_repo.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")
        return user

    def update_profile(self, user_id: str, name: str, avatar_url: Optional[str] = None) -> User:
        user = self.get_profile(user_id)
        user.name = name.strip()
        user.avatar_url = avatar_url.strip() if avatar_url else None
        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.get_profile(user_id)
        if not verify_password(current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect.")
        # The old password only exists as a hash, so compare through it.
        if verify_password(new_password, user.password_hash):
            raise BadRequestError("New password must be different from the current one.")

        user.password_hash = hash_password(new_password)
        self.db.commit()
        logger.info(f"Password changed for user {user.id}.")
