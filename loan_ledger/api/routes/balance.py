"""GET /balance-and-history - Current debt and full ledger"""

import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from loan_ledger.api.dependencies import get_request_id, get_store
from loan_ledger.api.routes.schemas import SnapshotResponse
from loan_ledger.domain.exceptions import StoreError
from loan_ledger.domain.queries import get_snapshot
from loan_ledger.infrastructure.observability.metrics import record_balance, store_failure_counter
from loan_ledger.infrastructure.store.interface import LoanStore

router = APIRouter()


@router.get("/balance-and-history", response_model=SnapshotResponse)
def balance_and_history(request: Request, store: LoanStore = Depends(get_store)):
    """
    Return the loan state and every transaction, newest first.

    The first call against an empty store seeds the balance from the
    configured initial debt.
    """
    try:
        snapshot = get_snapshot(store)
    except StoreError as e:
        store_failure_counter.inc()
        logging.error(f"Store error: {e}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=500, content={"error": "Failed to load balance"})

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=500, content={"error": "Failed to load balance"})

    record_balance(snapshot.state.total_debt)
    return SnapshotResponse.from_domain(snapshot)
