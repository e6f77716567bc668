"""SQLAlchemy ORM models for the loan state record and the transaction ledger"""

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

LOAN_STATE_ID = "state"


class LoanStateRecord(Base):
    """Singleton loan balance, addressed by a fixed key"""

    __tablename__ = "loan_state"

    id = Column(Text, primary_key=True, default=LOAN_STATE_ID)
    total_debt = Column(Numeric(14, 2), nullable=False)
    last_interest_month = Column(String(7), nullable=True)
    version = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class LedgerTransaction(Base):
    """Append-only ledger entry; seq preserves insertion order for equal dates"""

    __tablename__ = "ledger_transaction"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True)
    type = Column(Text, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    balance_after = Column(Numeric(14, 2), nullable=False)
