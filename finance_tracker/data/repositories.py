# finance_tracker/data/repositories.py

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from finance_tracker.data.models import Category, LoginToken, Transaction, User


# Repositories only stage changes; the services own commit and rollback.

class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_user_by_id(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def add_user(self, user: User):
        self.db.add(user)


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_category_for_user(self, category_id: str, user_id: str) -> Category | None:
        return self.db.query(Category).filter(
            Category.id == category_id,
            Category.user_id == user_id
        ).first()

    def list_categories(self, user_id: str) -> List[Category]:
        return self.db.query(Category).filter(
            Category.user_id == user_id
        ).order_by(Category.is_system.desc(), Category.name.asc()).all()

    def get_system_category(self, user_id: str) -> Category | None:
        return self.db.query(Category).filter(
            Category.user_id == user_id,
            Category.is_system.is_(True)
        ).first()

    def add_category(self, category: Category):
        self.db.add(category)

    def delete_category(self, category_id: str) -> int:
        return self.db.query(Category).filter(Category.id == category_id).delete(synchronize_session="fetch")


class TransactionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_transaction_for_user(self, transaction_id: str, user_id: str) -> Transaction | None:
        return self.db.query(Transaction).filter(
            Transaction.id == transaction_id,
            Transaction.user_id == user_id
        ).first()

    def list_transactions(self, user_id: str, start: Optional[date] = None,
                          end: Optional[date] = None) -> List[Transaction]:
        """Transactions of a user, newest first, optionally within [start, end)."""
        query = self.db.query(Transaction).filter(Transaction.user_id == user_id)
        if start is not None:
            query = query.filter(Transaction.date >= start)
        if end is not None:
            query = query.filter(Transaction.date < end)
        return query.order_by(Transaction.date.desc(), Transaction.created_at.desc()).all()

    def add_transaction(self, transaction: Transaction):
        self.db.add(transaction)

    def delete_transaction(self, transaction: Transaction):
        self.db.delete(transaction)

    def reassign_category(self, user_id: str, from_category_id: str, to_category_id: str) -> int:
        """Points every transaction of the user at from_category_id to to_category_id."""
        return self.db.query(Transaction).filter(
            Transaction.user_id == user_id,
            Transaction.category_id == from_category_id
        ).update({Transaction.category_id: to_category_id}, synchronize_session="fetch")


class LoginTokenRepository:
    def __init__(self, db: Session):
        self.db = db

    def delete_unused_tokens(self, user_id: str) -> int:
        # Expired or not: every unused token of the user goes.
        return self.db.query(LoginToken).filter(
            LoginToken.user_id == user_id,
            LoginToken.used_at.is_(None)
        ).delete(synchronize_session="fetch")

    def add_token(self, token: LoginToken):
        self.db.add(token)

    def find_valid_token(self, user_id: str, token_hash: str, now: datetime) -> LoginToken | None:
        return self.db.query(LoginToken).filter(
            LoginToken.user_id == user_id,
            LoginToken.token_hash == token_hash,
            LoginToken.used_at.is_(None),
            LoginToken.expires_at > now
        ).order_by(LoginToken.created_at.desc()).first()

    def mark_used(self, token_id: str, now: datetime) -> bool:
        """
        Consumes the token with a conditional UPDATE. Returns True only for the
        caller whose UPDATE flipped used_at, so two concurrent verifications of
        the same code cannot both win.
        """
        updated = self.db.query(LoginToken).filter(
            LoginToken.id == token_id,
            LoginToken.used_at.is_(None)
        ).update({LoginToken.used_at: now}, synchronize_session="fetch")
        return updated == 1
