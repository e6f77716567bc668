"""In-process key-value loan store for single-instance deployments and tests"""

import threading
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from loan_ledger.domain.exceptions import ConcurrentUpdateError
from loan_ledger.domain.models import LoanState, Transaction
from loan_ledger.infrastructure.store.interface import LoanStore


class InMemoryLoanStore(LoanStore):
    """Keeps the state record and ledger in process memory, guarded by one lock"""

    def __init__(self, initial_debt: Decimal = Decimal("0")):
        self.initial_debt = initial_debt
        self._lock = threading.Lock()
        self._state: Optional[LoanState] = None
        self._transactions: Dict[str, Tuple[int, Transaction]] = {}
        self._seq = 0

    def _ensure_state(self) -> LoanState:
        if self._state is None:
            self._state = LoanState(total_debt=self.initial_debt, version=0)
        return self._state

    def read(self) -> LoanState:
        with self._lock:
            return self._ensure_state()

    def write(self, state: LoanState) -> LoanState:
        with self._lock:
            current = self._ensure_state()
            self._state = state.evolve(version=current.version + 1)
            return self._state

    def _append(self, transaction: Transaction) -> None:
        if transaction.id in self._transactions:
            return
        self._seq += 1
        self._transactions[transaction.id] = (self._seq, transaction)

    def append_transaction(self, transaction: Transaction) -> None:
        with self._lock:
            self._append(transaction)

    def list_transactions(self) -> List[Transaction]:
        with self._lock:
            entries = sorted(
                self._transactions.values(),
                key=lambda entry: (entry[1].date, entry[0]),
                reverse=True,
            )
        return [tx for _, tx in entries]

    def commit(self, state: LoanState, transaction: Transaction, expected_version: int) -> LoanState:
        with self._lock:
            current = self._ensure_state()
            if current.version != expected_version:
                raise ConcurrentUpdateError(
                    f"Loan state is at version {current.version}, expected {expected_version}"
                )
            self._append(transaction)
            self._state = state.evolve(version=expected_version + 1)
            return self._state
