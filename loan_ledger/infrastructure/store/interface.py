"""
Abstract loan store interface.

The ledger engine only talks to this contract, so the concrete backend
(SQL database, in-process key-value map) is a deployment choice. The one
primitive every backend must provide atomically is `commit`: a conditional
write of the singleton state keyed by its version, together with the
append of the transaction that produced it.
"""

from abc import ABC, abstractmethod
from typing import List

from loan_ledger.domain.models import LoanState, Transaction


class LoanStore(ABC):
    """Durable holder of the singleton loan state and its transaction ledger"""

    @abstractmethod
    def read(self) -> LoanState:
        """
        Return the current loan state, seeding it on first access.

        Seeding must be insert-if-absent: concurrent first reads converge on
        a single persisted row.

        Raises:
            StoreError: If the backend is unavailable
        """

    @abstractmethod
    def write(self, state: LoanState) -> LoanState:
        """
        Overwrite the singleton state unconditionally.

        Returns:
            The stored state with its new version
        """

    @abstractmethod
    def append_transaction(self, transaction: Transaction) -> None:
        """
        Durably record one transaction. Appending an id that already exists
        is a no-op.
        """

    @abstractmethod
    def list_transactions(self) -> List[Transaction]:
        """
        Full history ordered newest first by date; equal dates are ordered
        by insertion, newest insertion first.
        """

    @abstractmethod
    def commit(self, state: LoanState, transaction: Transaction, expected_version: int) -> LoanState:
        """
        Replace the state and append the transaction as one unit.

        Args:
            state: Next state (its version field is ignored)
            transaction: Ledger entry matching the state change
            expected_version: Version the caller read before computing `state`

        Returns:
            The stored state with version `expected_version + 1`

        Raises:
            ConcurrentUpdateError: Stored version differs; nothing was applied
            StoreError: Any other persistence failure; nothing was applied
        """
