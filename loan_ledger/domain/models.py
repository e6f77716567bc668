"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionType(str, Enum):
    INTEREST = "interest"
    PAYMENT = "payment"


class AccrualSkipReason(str, Enum):
    """Why the accrual policy declined to act"""

    NOT_ACCRUAL_DAY = "not-the-accrual-day"
    ALREADY_APPLIED = "already-applied-this-month"
    NO_OUTSTANDING_DEBT = "no-outstanding-debt"


@dataclass(frozen=True)
class LoanState:
    """The single outstanding loan balance"""

    total_debt: Decimal
    last_interest_month: Optional[str] = None  # "YYYY-MM"
    version: int = 0

    def evolve(self, **changes) -> "LoanState":
        return replace(self, **changes)


@dataclass(frozen=True)
class Transaction:
    """Immutable ledger entry"""

    id: str
    type: TransactionType
    amount: Decimal
    date: datetime
    balance_after: Decimal


@dataclass(frozen=True)
class MutationResult:
    """State after a committed mutation plus the transaction that produced it"""

    state: LoanState
    transaction: Transaction


@dataclass(frozen=True)
class AccrualResult:
    """Outcome of one accrual attempt"""

    applied: bool
    reason: Optional[AccrualSkipReason] = None
    state: Optional[LoanState] = None
    transaction: Optional[Transaction] = None


@dataclass(frozen=True)
class Snapshot:
    """Current state and full history, newest transaction first"""

    state: LoanState
    transactions: List[Transaction] = field(default_factory=list)
