"""GET /accrue-interest - Periodic trigger for monthly interest"""

import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from loan_ledger.api.dependencies import get_accrual_policy, get_request_id
from loan_ledger.api.routes.schemas import AccrualResponse
from loan_ledger.api.security import require_cron_secret
from loan_ledger.domain.accrual import AccrualPolicy
from loan_ledger.domain.exceptions import StoreError
from loan_ledger.infrastructure.observability.logging import log_accrual
from loan_ledger.infrastructure.observability.metrics import record_accrual, store_failure_counter

router = APIRouter()


@router.get(
    "/accrue-interest",
    response_model=AccrualResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_cron_secret)],
)
def accrue_interest(request: Request, policy: AccrualPolicy = Depends(get_accrual_policy)):
    """
    Accrue this month's interest if today is the accrual day.

    Idempotent within a month: repeated triggers answer applied=false with
    a reason instead of charging twice.
    """
    request_id = get_request_id(request)

    try:
        result = policy.run()
    except StoreError as e:
        store_failure_counter.inc()
        logging.error(f"Store error during accrual: {e}", extra={"request_id": request_id})
        return JSONResponse(status_code=500, content={"error": "Failed to apply interest"})

    except Exception as e:
        logging.error(f"Unexpected error during accrual: {e}", extra={"request_id": request_id})
        return JSONResponse(status_code=500, content={"error": "Failed to apply interest"})

    record_accrual(result)
    log_accrual(request_id, result)
    return AccrualResponse.from_domain(result)
