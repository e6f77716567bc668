"""Monthly interest accrual - applied once per calendar month, on the 28th"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from loan_ledger.domain.exceptions import ConcurrentUpdateError
from loan_ledger.domain.ledger import LedgerEngine, to_cents
from loan_ledger.domain.models import AccrualResult, AccrualSkipReason, LoanState, TransactionType
from loan_ledger.utils.date_utils import in_timezone, month_key

logger = logging.getLogger(__name__)

ACCRUAL_DAY = 28
MONTHLY_INTEREST_RATE = Decimal("0.05")


def calculate_interest(total_debt: Decimal) -> Decimal:
    """
    One month of interest on the outstanding balance, rounded half-up to cents.

    Example:
        1000.00 * 0.05 = 50.00
        333.33 * 0.05 = 16.6665 -> 16.67
    """
    return to_cents(total_debt * MONTHLY_INTEREST_RATE)


def skip_reason(state: LoanState, local_now: datetime) -> Optional[AccrualSkipReason]:
    """Return why interest must not be accrued for this state at this local time, or None"""
    if local_now.day != ACCRUAL_DAY:
        return AccrualSkipReason.NOT_ACCRUAL_DAY
    if state.last_interest_month == month_key(local_now):
        return AccrualSkipReason.ALREADY_APPLIED
    if calculate_interest(state.total_debt) <= 0:
        return AccrualSkipReason.NO_OUTSTANDING_DEBT
    return None


class AccrualPolicy:
    """Decides whether monthly interest is due and applies it exactly once per month"""

    def __init__(self, engine: LedgerEngine, timezone: str = "UTC"):
        self.engine = engine
        self.timezone = timezone

    def run(self, now: Optional[datetime] = None) -> AccrualResult:
        """
        Accrue interest if today is the accrual day and this month is not yet done.

        Safe to call repeatedly and concurrently: the month check and the
        interest commit are made against the same state version, and a
        conflicting commit re-reads and re-checks.

        Raises:
            StoreError: Persistence failure or persistent contention
        """
        local_now = in_timezone(now or self.engine.clock(), self.timezone)
        if local_now.day != ACCRUAL_DAY:
            return AccrualResult(applied=False, reason=AccrualSkipReason.NOT_ACCRUAL_DAY)

        key = month_key(local_now)
        attempts = self.engine.max_retries
        for attempt in range(1, attempts + 1):
            state = self.engine.store.read()
            reason = skip_reason(state, local_now)
            if reason is not None:
                return AccrualResult(applied=False, reason=reason)

            try:
                result = self.engine.apply_transaction(
                    TransactionType.INTEREST,
                    calculate_interest(state.total_debt),
                    interest_month=key,
                    expected_version=state.version,
                )
            except ConcurrentUpdateError:
                if attempt == attempts:
                    raise
                logger.warning("Loan state changed during accrual, re-evaluating", extra={"month": key})
                continue

            return AccrualResult(applied=True, state=result.state, transaction=result.transaction)

        raise ConcurrentUpdateError("No accrual attempts were made")
