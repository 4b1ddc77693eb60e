"""Cash drawer sessions"""

import logging
from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from fiado_ledger.api.v1.schemas import (
    CashCloseRequest,
    CashSessionOpen,
    CashSessionResponse,
    CashTransactionCreate,
    CashTransactionResponse,
)
from fiado_ledger.api.dependencies import get_cash_drawer, get_request_id
from fiado_ledger.domain.cash import CashDrawer
from fiado_ledger.domain.models import CashSession, CashTransaction
from fiado_ledger.infrastructure.database.repositories import transaction
from fiado_ledger.infrastructure.database.session import get_db
from fiado_ledger.utils.money import round_cents

router = APIRouter()


def _session_response(drawer: CashDrawer, session: CashSession) -> CashSessionResponse:
    return CashSessionResponse(
        id=session.id,
        status=session.status,
        opened_at=session.opened_at,
        closed_at=session.closed_at,
        opening_balance=session.opening_balance,
        expected_balance=round_cents(drawer.expected(session.id)),
        closing_balance=session.closing_balance,
        difference=round_cents(session.difference) if session.difference is not None else None,
        notes=session.notes,
    )


def _transaction_response(t: CashTransaction) -> CashTransactionResponse:
    return CashTransactionResponse(
        id=t.id,
        session_id=t.session_id,
        type=t.type,
        amount=t.amount,
        description=t.description,
        date=t.date,
    )


@router.post("/cash/sessions", response_model=CashSessionResponse, status_code=201)
def open_session(
    request_body: CashSessionOpen,
    db: Session = Depends(get_db),
    drawer: CashDrawer = Depends(get_cash_drawer),
):
    """Open the drawer with the counted opening balance. Only one session may be open."""
    with transaction(db):
        session = drawer.open(request_body.opening_balance, request_body.notes)
    return _session_response(drawer, session)


@router.get("/cash/sessions", response_model=List[CashSessionResponse])
def list_sessions(drawer: CashDrawer = Depends(get_cash_drawer)):
    """Sessions, most recent first"""
    return [_session_response(drawer, s) for s in drawer.sessions.list_sessions()]


@router.get("/cash/sessions/active", response_model=CashSessionResponse)
def get_active_session(drawer: CashDrawer = Depends(get_cash_drawer)):
    return _session_response(drawer, drawer.active())


@router.post(
    "/cash/sessions/{session_id}/transactions",
    response_model=CashTransactionResponse,
    status_code=201,
)
def add_transaction(
    session_id: str,
    request_body: CashTransactionCreate,
    db: Session = Depends(get_db),
    drawer: CashDrawer = Depends(get_cash_drawer),
):
    """Record a supply or withdrawal on an open session"""
    with transaction(db):
        t = drawer.add_transaction(session_id, request_body.type, request_body.amount, request_body.description)
    return _transaction_response(t)


@router.get("/cash/sessions/{session_id}/transactions", response_model=List[CashTransactionResponse])
def list_transactions(session_id: str, drawer: CashDrawer = Depends(get_cash_drawer)):
    drawer.get_session(session_id)
    return [_transaction_response(t) for t in drawer.sessions.list_transactions(session_id)]


@router.post("/cash/sessions/{session_id}/close", response_model=CashSessionResponse)
def close_session(
    session_id: str,
    request_body: CashCloseRequest,
    request: Request,
    db: Session = Depends(get_db),
    drawer: CashDrawer = Depends(get_cash_drawer),
):
    """Close the drawer: store counted and expected balances and report the difference"""
    with transaction(db):
        session = drawer.close(session_id, request_body.closing_balance)

    logging.info(
        "Cash session closed",
        extra={
            "request_id": get_request_id(request),
            "session_id": session.id,
            "step": "cash_closed",
            "expected_balance": str(session.expected_balance),
            "closing_balance": str(session.closing_balance),
            "difference": str(session.difference),
        },
    )
    return _session_response(drawer, session)
