"""Category catalog helpers and service operations.

This module centralizes small, server-side validated operations for the
``sl_categories`` reference table. Validation is duplicated lightly on the
client (terminal UI) but is authoritatively enforced here.

Exports
-------
- ``create_category(...)``: idempotent category creation with case-insensitive
  conflict detection. Returns the created/existing row and a ``created`` flag.
- ``list_category_names(...)``: catalog names in display order.
- ``normalize_name(...)`` and ``validate_name(...)``: helper utilities shared
  by the terminal UI to provide early feedback before hitting the database.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ledger_db.models.ledger import LedgerCategory
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import UNCATEGORIZED, Category
from .persistence import fetch_categories

# ---------------------------
# Name normalization/validation
# ---------------------------

_ALLOWED_RE = re.compile(r"^[A-Za-z0-9 &\-/]+$")


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``.

    Does not change case; consumers may choose preferred casing conventions.
    """

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class NameValidation:
    ok: bool
    reason: str | None = None


def validate_name(name: str, *, min_len: int = 1, max_len: int = 64) -> NameValidation:
    """Lightweight client/server validation for category names.

    Rules
    -----
    - Trim whitespace; enforce length bounds 1..64.
    - Allowed characters: letters, numbers, spaces, and ``& - /``.
    - ``Uncategorized`` is reserved for transactions without a category.
    """

    n = normalize_name(name)
    if len(n) < min_len:
        return NameValidation(False, "Name cannot be empty")
    if len(n) > max_len:
        return NameValidation(False, f"Name must be at most {max_len} characters")
    if not _ALLOWED_RE.match(n):
        return NameValidation(False, "Only letters, numbers, spaces, and & - / are allowed")
    if n.lower() == UNCATEGORIZED.lower():
        return NameValidation(False, f"'{UNCATEGORIZED}' is reserved")
    return NameValidation(True, None)


# ---------------------------
# Service operations
# ---------------------------


@dataclass(frozen=True, slots=True)
class CreateCategoryResult:
    category: Category
    created: bool


def _find_by_name(session: Session, name: str) -> LedgerCategory | None:
    return (
        session.execute(select(LedgerCategory).where(func.lower(LedgerCategory.name) == name.lower()))
        .scalars()
        .first()
    )


def create_category(session: Session, *, name: str) -> CreateCategoryResult:
    """Create a category if it doesn't exist (case-insensitive).

    Parameters
    ----------
    session:
        SQLAlchemy session to use (callers own the transaction scope).
    name:
        Display name; normalized before validation and storage.

    Idempotency
    -----------
    A case-insensitive duplicate returns the existing row with
    ``created=False``.
    """

    name_n = normalize_name(name)
    v = validate_name(name_n)
    if not v.ok:
        raise ValueError(f"Invalid category name: {v.reason or 'invalid_name'}")

    existing = _find_by_name(session, name_n)
    if existing is not None:
        return CreateCategoryResult(Category(id=existing.id, name=existing.name), created=False)

    row = LedgerCategory(name=name_n)
    session.add(row)
    session.flush()
    return CreateCategoryResult(Category(id=row.id, name=row.name), created=True)


def list_category_names(session: Session) -> list[str]:
    """Return catalog names sorted case-insensitively."""

    return [c.name for c in fetch_categories(session)]


__all__ = [
    "CreateCategoryResult",
    "NameValidation",
    "create_category",
    "list_category_names",
    "normalize_name",
    "validate_name",
]
