"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Callable, Iterator

from fastapi import Depends, Request

from loan_ledger.config import settings
from loan_ledger.domain.accrual import AccrualPolicy
from loan_ledger.domain.ledger import LedgerEngine
from loan_ledger.infrastructure.store.factory import open_store
from loan_ledger.infrastructure.store.interface import LoanStore
from loan_ledger.utils.date_utils import utc_now


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Callable[[], datetime]:
    """Provide the wall clock used to timestamp transactions"""
    return utc_now


def get_store() -> Iterator[LoanStore]:
    """Provide the configured loan store for the duration of a request"""
    with open_store() as store:
        yield store


def get_ledger_engine(
    store: LoanStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> LedgerEngine:
    return LedgerEngine(store, clock=clock, max_retries=settings.commit_max_retries)


def get_accrual_policy(engine: LedgerEngine = Depends(get_ledger_engine)) -> AccrualPolicy:
    return AccrualPolicy(engine, timezone=settings.accrual_timezone)
