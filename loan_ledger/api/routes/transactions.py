"""POST /transactions - Record a payment or a manual interest charge"""

import time
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from loan_ledger.api.dependencies import get_ledger_engine, get_request_id
from loan_ledger.api.routes.schemas import MutationResponse, TransactionRequest
from loan_ledger.api.security import require_payment_credentials
from loan_ledger.domain.exceptions import StoreError, ValidationError
from loan_ledger.domain.ledger import LedgerEngine
from loan_ledger.infrastructure.observability.logging import log_transaction
from loan_ledger.infrastructure.observability.metrics import (
    record_transaction,
    store_failure_counter,
    validation_failure_counter,
)

router = APIRouter()


@router.post("/transactions", status_code=201, response_model=MutationResponse)
def create_transaction(
    request_body: TransactionRequest,
    request: Request,
    engine: LedgerEngine = Depends(get_ledger_engine),
    _user: str = Depends(require_payment_credentials),
):
    """
    Apply one transaction to the loan.

    Flow:
    1. Check the Basic credential (401 when missing, wrong or unconfigured)
    2. Validate type and amount (400 on failure, store untouched)
    3. Read state, compute the next balance, commit state + ledger entry
       (500 on store failure)
    4. Return the new state and the transaction (201)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = engine.apply_transaction(request_body.type, request_body.amount)

    except ValidationError as e:
        validation_failure_counter.inc()
        logging.warning(f"Rejected transaction: {e}", extra={"request_id": request_id})
        return JSONResponse(status_code=400, content={"error": str(e)})

    except StoreError as e:
        store_failure_counter.inc()
        logging.error(f"Store error: {e}", extra={"request_id": request_id})
        return JSONResponse(status_code=500, content={"error": "Failed to add transaction"})

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        return JSONResponse(status_code=500, content={"error": "Failed to add transaction"})

    duration_ms = (time.time() - start_time) * 1000
    record_transaction(result.transaction)
    log_transaction(request_id, result.transaction, duration_ms)

    return MutationResponse.from_domain(result)
