"""
Get-or-create resolution of account and category names for imports.

Accounts are keyed by (user, name, currency) and categories by
(user, name, mode). Both keys carry a UNIQUE constraint, so if another
request creates the same entity between our lookup and our insert, the
insert fails and we reuse the row that won.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import Account, Category, Currency, Mode
from .row_validator import ValidatedRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRow:
    row: ValidatedRow
    account_id: int
    category_id: int


class EntityResolver:
    """Resolves names to ids for one user. Keeps a cache for the life of one import."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self._accounts: dict[tuple, int] = {}
        self._categories: dict[tuple, int] = {}
        self.created_accounts = 0
        self.created_categories = 0

    def resolve_account(self, name: str, currency: Currency) -> int:
        key = (name, currency.value)
        if key not in self._accounts:
            account_id, created = self._get_or_create(Account, name=name, currency=currency.value)
            self.created_accounts += created
            self._accounts[key] = account_id
        return self._accounts[key]

    def resolve_category(self, name: str, mode: Mode) -> int:
        key = (name, mode.value)
        if key not in self._categories:
            category_id, created = self._get_or_create(Category, name=name, mode=mode.value)
            self.created_categories += created
            self._categories[key] = category_id
        return self._categories[key]

    def resolve(self, row: ValidatedRow) -> ResolvedRow:
        return ResolvedRow(
            row=row,
            account_id=self.resolve_account(row.account_name, row.currency),
            category_id=self.resolve_category(row.category_name, row.mode),
        )

    def _find(self, model, **key) -> Optional[int]:
        filters = [getattr(model, column) == value for column, value in key.items()]
        found = (
            self.db.query(model.id)
            .filter(model.user_id == self.user_id, *filters)
            .first()
        )
        return found.id if found else None

    def _get_or_create(self, model, **key) -> tuple[int, bool]:
        """Return (id, created). Commits the new entity on its own."""
        existing = self._find(model, **key)
        if existing is not None:
            return existing, False

        entity = model(user_id=self.user_id, **key)
        self.db.add(entity)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self._find(model, **key)
            if existing is None:
                raise
            logger.info(f"{model.__name__} {key} was created concurrently; reusing id {existing}")
            return existing, False

        logger.info(f"Created {model.__name__.lower()} {key} for user {self.user_id}")
        return entity.id, True
