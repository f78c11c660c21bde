# finance_tracker/business_logic/transaction_service.py

from sqlalchemy.orm import Session
from datetime import date
from decimal import Decimal
from typing import List, Optional
import logging

from finance_tracker.core.exceptions import NotFoundError
from finance_tracker.data.models import Category, Transaction
from finance_tracker.data.repositories import CategoryRepository, TransactionRepository

logger = logging.getLogger(__name__)


def month_bounds(month: str) -> tuple[date, date]:
    """'2024-03' -> (2024-03-01, 2024-04-01)."""
    year, month_number = (int(part) for part in month.split("-"))
    start = date(year, month_number, 1)
    if month_number == 12:
        return start, date(year + 1, 1, 1)
    return start, date(year, month_number + 1, 1)


class TransactionService:
    def __init__(self, db_session: Session):
        self.db_session = db_session
        self.transaction_repo = TransactionRepository(db_session)
        self.category_repo = CategoryRepository(db_session)

    def _get_owned_category(self, user_id: str, category_id: str) -> Category:
        category = self.category_repo.get_category_for_user(category_id, user_id)
        if not category:
            raise NotFoundError("Category not found.")
        return category

    def _get_owned_transaction(self, user_id: str, transaction_id: str) -> Transaction:
        transaction = self.transaction_repo.get_transaction_for_user(transaction_id, user_id)
        if not transaction:
            raise NotFoundError("Transaction not found.")
        return transaction

    def list_transactions(self, user_id: str, month: Optional[str] = None) -> List[Transaction]:
        if month:
            start, end = month_bounds(month)
            return self.transaction_repo.list_transactions(user_id, start=start, end=end)
        return self.transaction_repo.list_transactions(user_id)

    def create_transaction(self, user_id: str, title: str, amount: Decimal, type: str,
                           transaction_date: date, category_id: str) -> Transaction:
        category = self._get_owned_category(user_id, category_id)

        transaction = Transaction(
            user_id=user_id,
            category_id=category.id,
            title=title.strip(),
            amount=amount,
            type=type,
            date=transaction_date,
        )
        self.transaction_repo.add_transaction(transaction)
        self.db_session.commit()
        self.db_session.refresh(transaction)

        logger.info(f"Transaction {transaction.id} created for user {user_id}.")
        return transaction

    def update_transaction(self, user_id: str, transaction_id: str, title: str, amount: Decimal, type: str,
                           transaction_date: date, category_id: str) -> Transaction:
        transaction = self._get_owned_transaction(user_id, transaction_id)
        category = self._get_owned_category(user_id, category_id)

        transaction.title = title.strip()
        transaction.amount = amount
        transaction.type = type
        transaction.date = transaction_date
        transaction.category_id = category.id
        self.db_session.commit()
        self.db_session.refresh(transaction)
        return transaction

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        transaction = self._get_owned_transaction(user_id, transaction_id)
        self.transaction_repo.delete_transaction(transaction)
        self.db_session.commit()
        logger.info(f"Transaction {transaction_id} deleted for user {user_id}.")
