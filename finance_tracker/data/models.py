# finance_tracker/data/models.py
import uuid

from sqlalchemy import Column, String, Text, DateTime, Date, ForeignKey, Boolean, Numeric, Index
from sqlalchemy.orm import relationship, declarative_base, configure_mappers

from finance_tracker.core.security import utc_now

# The single declarative Base shared by every model in the project.
Base = declarative_base()

SYSTEM_CATEGORY_NAME = "Other"


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    Account owner. Root of categories, transactions and login tokens.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)  # always lowercase
    password_hash = Column(String, nullable=False)
    avatar_url = Column(Text, nullable=True)  # data URI
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    categories = relationship("Category", back_populates="user", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="user", cascade="all, delete-orphan")
    login_tokens = relationship("LoginToken", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"


class Category(Base):
    """
    Transaction category. Every user owns exactly one system category, created
    at registration, which cannot be deleted.
    """
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="categories")

    def __repr__(self):
        return f"<Category(id='{self.id}', name='{self.name}', is_system={self.is_system})>"


class Transaction(Base):
    """
    Income or expense entry. category_id must always point at an existing
    category of the same user.
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # RESTRICT: a category is only deleted once its transactions were moved away.
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    title = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)  # always positive
    type = Column(String(10), nullable=False)  # 'income' or 'expense'
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="transactions")
    # No backref on Category: CategoryService reassigns transactions before deleting one.
    category = relationship("Category")

    def __repr__(self):
        return f"<Transaction(id='{self.id}', title='{self.title}', category_id='{self.category_id}')>"


class LoginToken(Base):
    """
    Short-lived, single-use numeric code for passwordless login. Only the
    SHA-256 digest of the code is stored.
    """
    __tablename__ = "login_tokens"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(64), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    used_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="login_tokens")

    __table_args__ = (
        Index("ix_login_tokens_user_id_token_hash", "user_id", "token_hash"),
    )

    def __repr__(self):
        return f"<LoginToken(id='{self.id}', user_id='{self.user_id}', used_at={self.used_at})>"


# Make sure every relationship above resolves before the first query.
configure_mappers()
