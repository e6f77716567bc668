"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from loan_ledger.domain.models import AccrualResult, LoanState, MutationResult, Snapshot, Transaction


class CamelModel(BaseModel):
    """Serializes with the camelCase field names clients already use"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoanStateSchema(CamelModel):
    total_debt: float
    last_interest_month: Optional[str] = None

    @classmethod
    def from_domain(cls, state: LoanState) -> "LoanStateSchema":
        return cls(total_debt=float(state.total_debt), last_interest_month=state.last_interest_month)


class TransactionSchema(CamelModel):
    id: str
    type: Literal["interest", "payment"]
    amount: float
    date: datetime
    balance_after: float

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionSchema":
        return cls(
            id=tx.id,
            type=tx.type.value,
            amount=float(tx.amount),
            date=tx.date,
            balance_after=float(tx.balance_after),
        )


class TransactionRequest(BaseModel):
    """Request body for POST /transactions; type and amount are checked by the ledger engine"""

    type: Any = None
    amount: Any = None


class MutationResponse(CamelModel):
    """Response for POST /transactions"""

    state: LoanStateSchema
    transaction: TransactionSchema

    @classmethod
    def from_domain(cls, result: MutationResult) -> "MutationResponse":
        return cls(
            state=LoanStateSchema.from_domain(result.state),
            transaction=TransactionSchema.from_domain(result.transaction),
        )


class SnapshotResponse(CamelModel):
    """Response for GET /balance-and-history"""

    state: LoanStateSchema
    transactions: List[TransactionSchema]

    @classmethod
    def from_domain(cls, snapshot: Snapshot) -> "SnapshotResponse":
        return cls(
            state=LoanStateSchema.from_domain(snapshot.state),
            transactions=[TransactionSchema.from_domain(tx) for tx in snapshot.transactions],
        )


class AccrualResponse(CamelModel):
    """Response for GET /accrue-interest"""

    applied: bool
    reason: Optional[str] = None
    state: Optional[LoanStateSchema] = None
    transaction: Optional[TransactionSchema] = None

    @classmethod
    def from_domain(cls, result: AccrualResult) -> "AccrualResponse":
        return cls(
            applied=result.applied,
            reason=result.reason.value if result.reason is not None else None,
            state=LoanStateSchema.from_domain(result.state) if result.state is not None else None,
            transaction=TransactionSchema.from_domain(result.transaction) if result.transaction is not None else None,
        )
