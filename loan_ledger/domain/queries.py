"""Read path: current balance and full history"""

from loan_ledger.domain.models import Snapshot
from loan_ledger.infrastructure.store.interface import LoanStore


def get_snapshot(store: LoanStore) -> Snapshot:
    """Current state plus every transaction, newest first. Never mutates anything but the lazy seed."""
    state = store.read()
    return Snapshot(state=state, transactions=store.list_transactions())
