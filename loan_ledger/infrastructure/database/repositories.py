"""SQL-backed loan store"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from loan_ledger.domain.exceptions import ConcurrentUpdateError, StoreError
from loan_ledger.domain.ledger import to_cents
from loan_ledger.domain.models import LoanState, Transaction, TransactionType
from loan_ledger.infrastructure.database.models import LOAN_STATE_ID, LedgerTransaction, LoanStateRecord
from loan_ledger.infrastructure.store.interface import LoanStore


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_state(record: LoanStateRecord) -> LoanState:
    return LoanState(
        total_debt=to_cents(Decimal(record.total_debt)),
        last_interest_month=record.last_interest_month,
        version=record.version,
    )


def _to_transaction(row: LedgerTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        type=TransactionType(row.type),
        amount=to_cents(Decimal(row.amount)),
        date=_as_utc(row.date),
        balance_after=to_cents(Decimal(row.balance_after)),
    )


def _to_row(transaction: Transaction) -> LedgerTransaction:
    return LedgerTransaction(
        id=transaction.id,
        type=transaction.type.value,
        amount=transaction.amount,
        date=transaction.date,
        balance_after=transaction.balance_after,
    )


class SqlLoanStore(LoanStore):
    """Loan store over a SQLAlchemy session; one database transaction per commit"""

    def __init__(self, db: Session, initial_debt: Decimal = Decimal("0")):
        self.db = db
        self.initial_debt = initial_debt

    def _fetch_state(self):
        return (
            self.db.execute(
                select(LoanStateRecord)
                .where(LoanStateRecord.id == LOAN_STATE_ID)
                .execution_options(populate_existing=True)
            )
            .scalars()
            .first()
        )

    def _seed(self) -> LoanStateRecord:
        """Insert the seed row; a concurrent seeder winning the race is fine"""
        try:
            self.db.add(LoanStateRecord(id=LOAN_STATE_ID, total_debt=self.initial_debt, version=0))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
        record = self._fetch_state()
        if record is None:
            raise StoreError("Loan state missing after seeding")
        return record

    def read(self) -> LoanState:
        try:
            record = self._fetch_state()
            if record is None:
                record = self._seed()
            return _to_state(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Failed to read loan state: {e}") from e

    def write(self, state: LoanState) -> LoanState:
        self.read()  # seeds the row if absent
        try:
            self.db.execute(
                update(LoanStateRecord)
                .where(LoanStateRecord.id == LOAN_STATE_ID)
                .values(
                    total_debt=state.total_debt,
                    last_interest_month=state.last_interest_month,
                    version=LoanStateRecord.version + 1,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Failed to write loan state: {e}") from e
        return self.read()

    def append_transaction(self, transaction: Transaction) -> None:
        try:
            exists = self.db.execute(
                select(LedgerTransaction.seq).where(LedgerTransaction.id == transaction.id)
            ).first()
            if exists is not None:
                return
            self.db.add(_to_row(transaction))
            self.db.commit()
        except IntegrityError:
            # Same id appended concurrently
            self.db.rollback()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Failed to append transaction {transaction.id}: {e}") from e

    def list_transactions(self) -> List[Transaction]:
        try:
            rows = (
                self.db.execute(
                    select(LedgerTransaction).order_by(
                        LedgerTransaction.date.desc(),
                        LedgerTransaction.seq.desc(),
                    )
                )
                .scalars()
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Failed to list transactions: {e}") from e
        return [_to_transaction(row) for row in rows]

    def commit(self, state: LoanState, transaction: Transaction, expected_version: int) -> LoanState:
        try:
            result = self.db.execute(
                update(LoanStateRecord)
                .where(
                    LoanStateRecord.id == LOAN_STATE_ID,
                    LoanStateRecord.version == expected_version,
                )
                .values(
                    total_debt=state.total_debt,
                    last_interest_month=state.last_interest_month,
                    version=expected_version + 1,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                raise ConcurrentUpdateError(f"Loan state is no longer at version {expected_version}")

            self.db.add(_to_row(transaction))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Failed to commit transaction {transaction.id}: {e}") from e

        return state.evolve(version=expected_version + 1)
