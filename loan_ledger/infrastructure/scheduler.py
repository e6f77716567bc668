"""In-process monthly accrual loop, for deployments without an external cron"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from loan_ledger.config import settings
from loan_ledger.domain.accrual import AccrualPolicy
from loan_ledger.domain.exceptions import StoreError
from loan_ledger.domain.ledger import LedgerEngine
from loan_ledger.domain.models import AccrualResult
from loan_ledger.infrastructure.observability.logging import log_accrual
from loan_ledger.infrastructure.observability.metrics import record_accrual, store_failure_counter
from loan_ledger.infrastructure.store.factory import open_store
from loan_ledger.utils.date_utils import utc_now


def accrue_once(clock: Callable[[], datetime] = utc_now) -> AccrualResult:
    with open_store() as store:
        engine = LedgerEngine(store, clock=clock, max_retries=settings.commit_max_retries)
        try:
            result = AccrualPolicy(engine, timezone=settings.accrual_timezone).run()
        except StoreError:
            store_failure_counter.inc()
            raise

    record_accrual(result)
    log_accrual(None, result)
    return result


async def accrual_loop() -> None:
    if not settings.accrual_scheduler_enabled:
        return

    interval = max(60, settings.accrual_interval_seconds)
    await asyncio.sleep(3)

    while True:
        try:
            await asyncio.to_thread(accrue_once)
        except Exception as e:
            logging.exception("accrual loop iteration failed", exc_info=e)

        await asyncio.sleep(interval)
