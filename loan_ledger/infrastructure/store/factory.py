"""Backend selection for code running outside a request (scheduler, scripts)"""

from contextlib import contextmanager
from typing import Iterator, Optional

from loan_ledger.config import settings
from loan_ledger.infrastructure.store.interface import LoanStore
from loan_ledger.infrastructure.store.memory import InMemoryLoanStore

_memory_store: Optional[InMemoryLoanStore] = None


def get_memory_store() -> InMemoryLoanStore:
    """Process-wide memory store; every caller must share it"""
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryLoanStore(initial_debt=settings.initial_loan_debt)
    return _memory_store


@contextmanager
def open_store() -> Iterator[LoanStore]:
    if settings.store_backend == "memory":
        yield get_memory_store()
        return

    # Database layer is only loaded for the sql backend
    from loan_ledger.infrastructure.database.repositories import SqlLoanStore
    from loan_ledger.infrastructure.database.session import SessionLocal

    db = SessionLocal()
    try:
        yield SqlLoanStore(db, initial_debt=settings.initial_loan_debt)
    finally:
        db.close()
