"""
SQLAlchemy models for PFMS.

Tables:
- accounts: A user's money accounts, unique per (user, name, currency)
- categories: Income/expense categories, unique per (user, name, mode)
- transactions: All financial transactions, manual or imported

Users live in the authentication service; user_id is an opaque integer here.
"""

import enum
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime,
    ForeignKey, Text, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from .database import Base


class Mode(str, enum.Enum):
    INCOME = "Income"
    EXPENSE = "Expense"
    CREDIT_CARD = "Credit Card"


class Currency(str, enum.Enum):
    INR = "INR"
    SAR = "SAR"


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    currency = Column(String(3), nullable=False)  # "INR" or "SAR"
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "name", "currency", name="uq_account_user_name_currency"),
    )

    # Relationships
    transactions = relationship("Transaction", back_populates="account")

    def __repr__(self):
        return f"<Account {self.name} ({self.currency})>"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    mode = Column(String(20), nullable=False)  # "Income", "Expense", "Credit Card"
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "name", "mode", name="uq_category_user_name_mode"),
    )

    # Relationships
    transactions = relationship("Transaction", back_populates="category")

    def __repr__(self):
        return f"<Category {self.name} ({self.mode})>"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    mode = Column(String(20), nullable=False)
    currency = Column(String(3), nullable=False)
    amount = Column(Float, nullable=False)  # Always positive; mode carries direction
    transaction_date = Column(Date, nullable=False)
    description = Column(Text, nullable=False, default="")
    source = Column(String(20), default="manual", nullable=False)  # "manual" or "import"
    created_at = Column(DateTime, default=datetime.utcnow)

    # Indexes
    __table_args__ = (
        Index("idx_transactions_user_date", "user_id", "transaction_date"),
        Index("idx_transactions_account", "account_id"),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")

    def __repr__(self):
        return f"<Transaction {self.transaction_date} {self.mode} {self.amount} {self.currency}>"
