"""Ledger engine - validates mutations and commits the next balance with its transaction"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import TYPE_CHECKING, Any, Callable, Optional

from loan_ledger.domain.exceptions import ConcurrentUpdateError, ValidationError
from loan_ledger.domain.models import LoanState, MutationResult, Transaction, TransactionType
from loan_ledger.utils.date_utils import utc_now

if TYPE_CHECKING:
    from loan_ledger.infrastructure.store.interface import LoanStore

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a Numeric(14, 2) column holds
MAX_AMOUNT = Decimal("999999999999.99")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_type(value: Any) -> TransactionType:
    """Accept only the two ledger transaction kinds"""
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(value)
    except ValueError:
        raise ValidationError("Invalid transaction type") from None


def parse_amount(value: Any) -> Decimal:
    """
    Coerce a requested amount to a positive Decimal in cents.

    Accepts int, float, Decimal and numeric strings. Rejects booleans,
    non-numeric input, NaN, infinities, anything above MAX_AMOUNT and
    anything that is not > 0 once rounded to cents.

    Raises:
        ValidationError: If the amount is unusable
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("Invalid amount")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError("Invalid amount") from None
    else:
        raise ValidationError("Invalid amount")

    # Must check finiteness before comparing: NaN comparisons raise
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Invalid amount")
    if amount > MAX_AMOUNT:
        raise ValidationError("Amount exceeds maximum")

    try:
        amount = to_cents(amount)
    except InvalidOperation:
        raise ValidationError("Invalid amount") from None
    if amount <= 0:
        raise ValidationError("Amount rounds to zero")
    return amount


def next_balance(total_debt: Decimal, tx_type: TransactionType, amount: Decimal) -> Decimal:
    """Interest adds; payments subtract and clamp at zero (overpayment is absorbed)"""
    if tx_type == TransactionType.INTEREST:
        return to_cents(total_debt + amount)
    return max(ZERO, to_cents(total_debt - amount))


class LedgerEngine:
    """Applies payments and interest to the loan through a LoanStore"""

    def __init__(
        self,
        store: LoanStore,
        clock: Callable[[], datetime] = utc_now,
        max_retries: int = 5,
    ):
        self.store = store
        self.clock = clock
        self.max_retries = max(1, max_retries)

    def _build(
        self,
        state: LoanState,
        tx_type: TransactionType,
        amount: Decimal,
        interest_month: Optional[str],
    ) -> tuple[LoanState, Transaction]:
        balance = next_balance(state.total_debt, tx_type, amount)
        if balance > MAX_AMOUNT:
            raise ValidationError("Balance would exceed maximum")
        next_state = state.evolve(
            total_debt=balance,
            last_interest_month=interest_month or state.last_interest_month,
        )
        transaction = Transaction(
            id=str(uuid.uuid4()),
            type=tx_type,
            amount=amount,
            date=self.clock(),
            balance_after=balance,
        )
        return next_state, transaction

    def apply_transaction(
        self,
        tx_type: Any,
        amount: Any,
        *,
        interest_month: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        """
        Validate the mutation, then commit the next state and its transaction.

        Without `expected_version` a version conflict is retried against a
        fresh read, up to `max_retries` attempts. With it, the commit is
        attempted once against that version only, so the caller can
        re-check its own preconditions on conflict.

        Raises:
            ValidationError: Bad type or amount, the store is never touched;
                or a balance above MAX_AMOUNT, nothing is committed
            ConcurrentUpdateError: Conflict on the last allowed attempt
            StoreError: Persistence failure
        """
        parsed_type = parse_type(tx_type)
        parsed_amount = parse_amount(amount)
        if interest_month is not None and parsed_type != TransactionType.INTEREST:
            raise ValidationError("interest_month only applies to interest transactions")

        attempts = 1 if expected_version is not None else self.max_retries
        for attempt in range(1, attempts + 1):
            state = self.store.read()
            if expected_version is not None and state.version != expected_version:
                raise ConcurrentUpdateError(
                    f"Loan state is at version {state.version}, expected {expected_version}"
                )

            next_state, transaction = self._build(state, parsed_type, parsed_amount, interest_month)
            try:
                committed = self.store.commit(next_state, transaction, expected_version=state.version)
            except ConcurrentUpdateError:
                if attempt == attempts:
                    raise
                logger.warning(
                    "Loan state changed during commit, retrying",
                    extra={"attempt": attempt, "transaction_type": parsed_type.value},
                )
                continue

            return MutationResult(state=committed, transaction=transaction)

        raise ConcurrentUpdateError("No commit attempts were made")
