"""Credit sale receivables: aging, settlement, due dates and reminders"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from fiado_ledger.api.v1.schemas import (
    DueDateUpdate,
    NoticeSchema,
    NoticesResponse,
    ReceivableListResponse,
    ReceivableResponse,
)
from fiado_ledger.api.dependencies import get_ledger, get_request_id
from fiado_ledger.domain import aging
from fiado_ledger.domain.exceptions import PersistenceError, ReceivableNotFoundError, ValidationError
from fiado_ledger.domain.ledger import ReceivableLedger
from fiado_ledger.domain.models import PaymentStatus, ReceivableView, Sale
from fiado_ledger.infrastructure.database.repositories import commit
from fiado_ledger.infrastructure.database.session import get_db
from fiado_ledger.infrastructure.observability.logging import log_settlement
from fiado_ledger.infrastructure.observability.metrics import persistence_failures_counter, settlement_counter
from fiado_ledger.utils.money import round_cents

router = APIRouter()


def _receivable_response(view: ReceivableView) -> ReceivableResponse:
    r = view.receivable
    return ReceivableResponse(
        id=r.id,
        customer_id=r.customer_id,
        customer_name=view.customer_name,
        original_amount=round_cents(r.original_amount),
        due_date=r.due_date,
        payment_status=r.payment_status,
        paid_date=r.paid_date,
        status=view.aging.status,
        days_late=view.aging.days_late,
        fine=round_cents(view.aging.fine),
        interest=round_cents(view.aging.interest),
        total_due=round_cents(view.aging.total_due),
    )


def _view(ledger: ReceivableLedger, sale: Sale) -> ReceivableView:
    """Age a single receivable as of now"""
    receivable = sale.as_receivable()
    customer = ledger.get_customer(receivable.customer_id)
    return ReceivableView(
        receivable=receivable,
        customer_name=customer.name,
        aging=aging.evaluate(receivable, customer, ledger.clock()),
    )


@router.get("/receivables", response_model=ReceivableListResponse)
def list_receivables(
    customer_id: Optional[int] = Query(None, description="Only this customer's receivables"),
    ledger: ReceivableLedger = Depends(get_ledger),
):
    """
    Open receivables, earliest due first.

    Fine, interest and total due are computed on every call with the
    customer's current rates; nothing derived is stored.
    """
    return ReceivableListResponse(
        receivables=[_receivable_response(view) for view in ledger.list_open(customer_id)]
    )


@router.get("/receivables/notices", response_model=NoticesResponse)
def list_notices(ledger: ReceivableLedger = Depends(get_ledger)):
    """Collection reminders that apply today, ready to send to the customer's WhatsApp"""
    return NoticesResponse(
        notices=[
            NoticeSchema(
                receivable_id=n.receivable_id,
                customer_id=n.customer_id,
                recipient_phone=n.recipient_phone,
                bucket=n.bucket,
                text=n.text,
            )
            for n in ledger.collection_notices()
        ]
    )


@router.post("/receivables/{receivable_id}/settle", response_model=ReceivableResponse)
def settle_receivable(
    receivable_id: str,
    request: Request,
    db: Session = Depends(get_db),
    ledger: ReceivableLedger = Depends(get_ledger),
):
    """Mark a receivable paid. Repeating the call changes nothing."""
    request_id = get_request_id(request)
    try:
        already_paid = ledger.get_receivable_sale(receivable_id).payment_status == PaymentStatus.PAID
        sale = ledger.settle(receivable_id)
        commit(db)
    except ReceivableNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Receivable not found")
    except PersistenceError as e:
        persistence_failures_counter.inc()
        db.rollback()
        logging.error(f"Settlement failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable, receivable not settled")

    if not already_paid:
        settlement_counter.inc()
    log_settlement(request_id, receivable_id, already_paid)

    return _receivable_response(_view(ledger, sale))


@router.patch("/receivables/{receivable_id}/due-date", response_model=ReceivableResponse)
def update_due_date(
    receivable_id: str,
    request_body: DueDateUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ledger: ReceivableLedger = Depends(get_ledger),
):
    """Move the due date of an open receivable"""
    request_id = get_request_id(request)
    try:
        sale = ledger.reschedule(receivable_id, request_body.due_date)
        commit(db)
    except ReceivableNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Receivable not found")
    except ValidationError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        persistence_failures_counter.inc()
        db.rollback()
        logging.error(f"Due date update failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    return _receivable_response(_view(ledger, sale))
