# finance_tracker/business_logic/category_service.py

import logging
from typing import List

from sqlalchemy.orm import Session

from finance_tracker.core.exceptions import BadRequestError, NotFoundError, ServerError
from finance_tracker.data.models import Category
from finance_tracker.data.repositories import CategoryRepository, TransactionRepository

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: Session):
        self.db = db
        self.category_repo = CategoryRepository(db)
        self.transaction_repo = TransactionRepository(db)

    def _get_owned_category(self, user_id: str, category_id: str) -> Category:
        # Ownership is checked on every call; the id alone proves nothing.
        category = self.category_repo.get_category_for_user(category_id, user_id)
        if not category:
            raise NotFoundError("Category not found.")
        return category

    def list_categories(self, user_id: str) -> List[Category]:
        return self.category_repo.list_categories(user_id)

    def create_category(self, user_id: str, name: str) -> Category:
        category = Category(user_id=user_id, name=name.strip(), is_system=False)
        self.category_repo.add_category(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Category {category.id} created for user {user_id}.")
        return category

    def rename_category(self, user_id: str, category_id: str, name: str) -> Category:
        category = self._get_owned_category(user_id, category_id)
        category.name = name.strip()
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, user_id: str, category_id: str) -> int:
        """
        Deletes a non-system category, moving its transactions to the user's
        system category first. Both steps commit together or not at all.

        Returns:
            Number of transactions reassigned.

        Raises:
            NotFoundError: category missing or owned by someone else
            BadRequestError: category is the system category
            ServerError: the user has no system category to fall back to
        """
        category = self._get_owned_category(user_id, category_id)
        if category.is_system:
            raise BadRequestError("The default category cannot be removed.")

        fallback = self.category_repo.get_system_category(user_id)
        if not fallback:
            logger.error(f"User {user_id} has no system category; refusing to delete {category_id}.")
            raise ServerError("Default category not found for reassignment.")

        try:
            moved = self.transaction_repo.reassign_category(user_id, category.id, fallback.id)
            self.category_repo.delete_category(category.id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete category {category_id}: {e}", exc_info=True)
            raise

        logger.info(f"Category {category_id} deleted; {moved} transaction(s) moved to {fallback.id}.")
        return moved
