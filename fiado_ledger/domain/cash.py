"""Cash drawer sessions: opening balance, supplies, withdrawals and closing count"""

from decimal import Decimal
from typing import Iterable, List, Optional, Protocol
from fiado_ledger.domain.exceptions import CashSessionNotFoundError, ConflictError, ValidationError
from fiado_ledger.domain.models import (
    CashSession,
    CashSessionStatus,
    CashTransaction,
    CashTransactionType,
    PaymentMethod,
    Sale,
)
from fiado_ledger.utils.date_utils import Clock, system_clock


class CashStore(Protocol):
    def get_open_session(self) -> Optional[CashSession]: ...

    def get_session(self, session_id: str) -> Optional[CashSession]: ...

    def list_sessions(self) -> List[CashSession]: ...

    def insert_session(self, session: CashSession) -> CashSession: ...

    def update_session(self, session_id: str, **fields) -> CashSession: ...

    def insert_transaction(self, transaction: CashTransaction) -> CashTransaction: ...

    def list_transactions(self, session_id: str) -> List[CashTransaction]: ...


class CashSalesSource(Protocol):
    def list_sales(self, payment_method: Optional[PaymentMethod] = None) -> List[Sale]: ...


def expected_balance(
    session: CashSession,
    sales: Iterable[Sale],
    transactions: Iterable[CashTransaction],
) -> Decimal:
    """
    What the drawer should hold: opening balance, plus cash sales since the
    session opened, plus supplies, minus withdrawals.
    """
    cash_sales = sum(
        (s.total for s in sales if s.payment_method == PaymentMethod.CASH and s.date >= session.opened_at),
        Decimal("0"),
    )
    moves = sum(
        (t.amount if t.type == CashTransactionType.SUPPLY else -t.amount for t in transactions),
        Decimal("0"),
    )
    return session.opening_balance + cash_sales + moves


class CashDrawer:
    """Only one session is open at a time; closing freezes the expected balance"""

    def __init__(self, sessions: CashStore, sales: CashSalesSource, clock: Clock = system_clock):
        self.sessions = sessions
        self.sales = sales
        self.clock = clock

    def get_session(self, session_id: str) -> CashSession:
        session = self.sessions.get_session(session_id)
        if session is None:
            raise CashSessionNotFoundError(f"Cash session {session_id} not found")
        return session

    def active(self) -> CashSession:
        session = self.sessions.get_open_session()
        if session is None:
            raise CashSessionNotFoundError("No cash session is open")
        return session

    def _require_open(self, session_id: str) -> CashSession:
        session = self.get_session(session_id)
        if session.status != CashSessionStatus.OPEN:
            raise ConflictError(f"Cash session {session_id} is already closed")
        return session

    def open(self, opening_balance: Decimal, notes: Optional[str] = None) -> CashSession:
        if opening_balance < 0:
            raise ValidationError("Opening balance cannot be negative")
        if self.sessions.get_open_session() is not None:
            raise ConflictError("A cash session is already open")

        return self.sessions.insert_session(
            CashSession(id=None, opened_at=self.clock(), opening_balance=opening_balance, notes=notes)
        )

    def add_transaction(
        self,
        session_id: str,
        type: CashTransactionType,
        amount: Decimal,
        description: str,
    ) -> CashTransaction:
        self._require_open(session_id)
        if amount <= 0:
            raise ValidationError("Amount must be positive")

        return self.sessions.insert_transaction(
            CashTransaction(
                id=None,
                session_id=session_id,
                type=type,
                amount=amount,
                description=description,
                date=self.clock(),
            )
        )

    def expected(self, session_id: str) -> Decimal:
        """Expected drawer balance right now (or at closing, once closed)"""
        session = self.get_session(session_id)
        if session.expected_balance is not None:
            return session.expected_balance
        return expected_balance(
            session,
            self.sales.list_sales(payment_method=PaymentMethod.CASH),
            self.sessions.list_transactions(session_id),
        )

    def close(self, session_id: str, closing_balance: Decimal) -> CashSession:
        """Record the counted balance next to the expected one"""
        if closing_balance < 0:
            raise ValidationError("Closing balance cannot be negative")
        self._require_open(session_id)

        expected = self.expected(session_id)
        return self.sessions.update_session(
            session_id,
            status=CashSessionStatus.CLOSED,
            closed_at=self.clock(),
            closing_balance=closing_balance,
            expected_balance=expected,
        )
