"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from loan_ledger.config import settings
from loan_ledger.domain.models import AccrualResult, Transaction


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_transaction(request_id: str, transaction: Transaction, duration_ms: float) -> None:
    """Log a committed ledger mutation"""
    logging.info(
        "Transaction applied",
        extra={
            "request_id": request_id,
            "step": "transaction_applied",
            "transaction_id": transaction.id,
            "transaction_type": transaction.type.value,
            "amount": str(transaction.amount),
            "balance_after": str(transaction.balance_after),
            "duration_ms": duration_ms,
        },
    )


def log_accrual(request_id: Optional[str], result: AccrualResult) -> None:
    """Log the outcome of an accrual attempt, applied or skipped"""
    fields: Dict[str, Any] = {
        "request_id": request_id,
        "step": "accrual",
        "applied": result.applied,
    }
    if result.reason is not None:
        fields["reason"] = result.reason.value
    if result.transaction is not None:
        fields["transaction_id"] = result.transaction.id
        fields["amount"] = str(result.transaction.amount)
        fields["balance_after"] = str(result.transaction.balance_after)
    logging.info("Interest accrual evaluated", extra=fields)
