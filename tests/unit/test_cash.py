"""Unit tests for cash drawer sessions"""

import pytest
from datetime import datetime
from decimal import Decimal
from fiado_ledger.domain.cash import CashDrawer, expected_balance
from fiado_ledger.domain.exceptions import CashSessionNotFoundError, ConflictError, ValidationError
from fiado_ledger.domain.models import (
    CashSession,
    CashSessionStatus,
    CashTransaction,
    CashTransactionType,
    PaymentMethod,
    PaymentStatus,
    SaleDraft,
    SaleItem,
    SaleType,
    Sale,
)
from fiado_ledger.infrastructure.database.repositories import CashRepository, SaleRepository


@pytest.fixture
def drawer(db, clock) -> CashDrawer:
    return CashDrawer(sessions=CashRepository(db), sales=SaleRepository(db), clock=clock)


def _sale(method: PaymentMethod, total: str, when: datetime) -> Sale:
    return Sale(
        id="s",
        sale_type=SaleType.COUNTER,
        payment_method=method,
        total=Decimal(total),
        date=when,
        payment_status=PaymentStatus.PAID,
        customer_name="Consumidor Final",
    )


def _counter_sale(ledger, method: PaymentMethod, price: str):
    return ledger.record_sale(
        SaleDraft(
            sale_type=SaleType.COUNTER,
            payment_method=method,
            items=[SaleItem(description="Câmara de ar", quantity=1, price=Decimal(price))],
        )
    )


def test_expected_balance_counts_cash_since_opening():
    opened = datetime(2024, 1, 1, 8, 0)
    session = CashSession(id="c1", opened_at=opened, opening_balance=Decimal("100"))
    sales = [
        _sale(PaymentMethod.CASH, "50", datetime(2024, 1, 1, 9, 0)),
        _sale(PaymentMethod.CASH, "999", datetime(2023, 12, 31, 18, 0)),  # Before opening
        _sale(PaymentMethod.PIX, "70", datetime(2024, 1, 1, 10, 0)),
    ]
    moves = [
        CashTransaction(None, "c1", CashTransactionType.SUPPLY, Decimal("30"), "Troco", opened),
        CashTransaction(None, "c1", CashTransactionType.WITHDRAWAL, Decimal("45"), "Almoço", opened),
    ]

    assert expected_balance(session, sales, moves) == Decimal("135")


def test_open_and_close_with_difference(drawer, ledger, clock):
    session = drawer.open(Decimal("100.00"), notes="Turno da manhã")
    _counter_sale(ledger, PaymentMethod.CASH, "80.00")
    _counter_sale(ledger, PaymentMethod.CARD, "500.00")
    drawer.add_transaction(session.id, CashTransactionType.WITHDRAWAL, Decimal("20.00"), "Café")

    assert drawer.expected(session.id) == Decimal("160.00")

    clock.now = datetime(2024, 1, 1, 18, 0)
    closed = drawer.close(session.id, Decimal("155.00"))

    assert closed.status == CashSessionStatus.CLOSED
    assert closed.closed_at == clock.now
    assert closed.expected_balance == Decimal("160.00")
    assert closed.difference == Decimal("-5.00")


def test_expected_balance_is_frozen_at_closing(drawer, ledger):
    session = drawer.open(Decimal("50.00"))
    drawer.close(session.id, Decimal("50.00"))

    _counter_sale(ledger, PaymentMethod.CASH, "30.00")

    assert drawer.expected(session.id) == Decimal("50.00")


def test_only_one_open_session(drawer):
    session = drawer.open(Decimal("0"))
    with pytest.raises(ConflictError):
        drawer.open(Decimal("10"))

    assert drawer.active().id == session.id
    drawer.close(session.id, Decimal("0"))
    with pytest.raises(CashSessionNotFoundError):
        drawer.active()
    assert drawer.open(Decimal("10")).id != session.id


def test_closed_session_takes_no_transactions(drawer):
    session = drawer.open(Decimal("0"))
    drawer.close(session.id, Decimal("0"))

    with pytest.raises(ConflictError):
        drawer.add_transaction(session.id, CashTransactionType.SUPPLY, Decimal("10"), "Troco")
    with pytest.raises(ConflictError):
        drawer.close(session.id, Decimal("0"))


def test_rejects_bad_amounts(drawer):
    with pytest.raises(ValidationError):
        drawer.open(Decimal("-1"))
    session = drawer.open(Decimal("0"))
    with pytest.raises(ValidationError):
        drawer.add_transaction(session.id, CashTransactionType.SUPPLY, Decimal("0"), "Nada")
    with pytest.raises(ValidationError):
        drawer.close(session.id, Decimal("-0.01"))
    with pytest.raises(CashSessionNotFoundError):
        drawer.close("missing", Decimal("0"))
