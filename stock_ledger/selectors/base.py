"""
Module: stock_ledger.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors are the read side of the store: they turn stored documents into
    frozen records and never mutate anything.
Architecture position: Ledger > Selectors.  May import from db/, models/
    and domain/values.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: Selectors accept a Session from the caller but MUST NOT
      call session.add(), session.delete(), session.commit(), or session.flush().
    - Record return convention: Selectors return frozen records or computed
      results, NOT raw ORM model instances.
    - Session ownership: the caller owns the session and its transaction scope.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from stock_ledger.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return records or computed results.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
