"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from fiado_ledger.config import settings
from fiado_ledger.domain.cash import CashDrawer
from fiado_ledger.domain.ledger import ReceivableLedger
from fiado_ledger.infrastructure.database.repositories import (
    CashRepository,
    CustomerRepository,
    SaleRepository,
    WorkshopRepository,
)
from fiado_ledger.infrastructure.database.session import get_db
from fiado_ledger.utils.date_utils import Clock, system_clock


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Clock:
    """Provide the clock used for aging; overridden in tests"""
    return system_clock


def get_ledger(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ReceivableLedger:
    """Provide a receivable ledger bound to the request's session"""
    return ReceivableLedger(
        sales=SaleRepository(db),
        customers=CustomerRepository(db),
        clock=clock,
        default_term_days=settings.default_term_days,
        reminder_days_before=settings.reminder_days_before,
        labor_share=settings.mechanic_labor_share,
        shop_name=settings.shop_name,
        workshop=WorkshopRepository(db),
    )


def get_cash_drawer(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> CashDrawer:
    return CashDrawer(sessions=CashRepository(db), sales=SaleRepository(db), clock=clock)
