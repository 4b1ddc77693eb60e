"""POST /v1/sales - counter sales and workshop service orders"""

import time
import logging
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from fiado_ledger.api.v1.schemas import SaleItemSchema, SaleRequest, SaleResponse
from fiado_ledger.api.dependencies import get_ledger, get_request_id
from fiado_ledger.infrastructure.database.session import get_db
from fiado_ledger.infrastructure.database.repositories import SaleRepository, commit, transaction
from fiado_ledger.domain.ledger import ReceivableLedger
from fiado_ledger.domain.models import FixedService, PaymentStatus, Sale, SaleDraft, SaleItem
from fiado_ledger.domain.exceptions import (
    CreditLimitExceeded,
    NotFoundError,
    PersistenceError,
    SaleNotFoundError,
    ValidationError,
)
from fiado_ledger.infrastructure.observability.metrics import (
    persistence_failures_counter,
    record_credit_rejection,
    record_sale,
)
from fiado_ledger.infrastructure.observability.logging import log_credit_rejection, log_sale
from fiado_ledger.utils.money import round_cents

router = APIRouter()


def _sale_response(sale: Sale) -> SaleResponse:
    return SaleResponse(
        id=sale.id,
        sale_type=sale.sale_type,
        payment_method=sale.payment_method,
        total=sale.total,
        labor_value=sale.labor_value,
        commission=sale.commission,
        customer_id=sale.customer_id,
        customer_name=sale.customer_name,
        mechanic_id=sale.mechanic_id,
        mechanic_name=sale.mechanic_name,
        moto_details=sale.moto_details,
        service_description=sale.service_description,
        motorcycle_id=sale.motorcycle_id,
        date=sale.date,
        payment_status=sale.payment_status,
        due_date=sale.due_date,
        paid_date=sale.paid_date,
        items=[
            SaleItemSchema(
                description=item.description,
                quantity=item.quantity,
                price=item.price,
                product_id=item.product_id,
            )
            for item in sale.items
        ],
    )


def _draft(request_body: SaleRequest) -> SaleDraft:
    return SaleDraft(
        sale_type=request_body.sale_type,
        payment_method=request_body.payment_method,
        items=[
            SaleItem(
                description=item.description,
                quantity=item.quantity,
                price=item.price,
                product_id=item.product_id,
            )
            for item in request_body.items
        ],
        labor_value=request_body.labor_value,
        customer_id=request_body.customer_id,
        mechanic_id=request_body.mechanic_id,
        mechanic_name=request_body.mechanic_name,
        fixed_services=[
            # Catalogue lines get their name and payout from the registry
            FixedService(
                description=s.description or "",
                payout=s.payout if s.payout is not None else Decimal("0"),
                quantity=s.quantity,
                service_id=s.service_id,
            )
            for s in request_body.fixed_services
        ],
        due_date=request_body.due_date,
        moto_details=request_body.moto_details,
        service_description=request_body.service_description,
        motorcycle_id=request_body.motorcycle_id,
        km=request_body.km,
    )


@router.post("/sales", response_model=SaleResponse, status_code=201)
def create_sale(
    request_body: SaleRequest,
    request: Request,
    db: Session = Depends(get_db),
    ledger: ReceivableLedger = Depends(get_ledger),
):
    """
    Book a counter sale or service order.

    Flow:
    1. Compute total and mechanic commission
    2. Credit sales: require a customer and check the credit limit
    3. Persist the sale (credit sales as an open receivable) and its items
    4. Commit once, so sale and receivable land together or not at all
    """
    start_time = time.time()
    request_id = get_request_id(request)

    draft = _draft(request_body)

    try:
        sale = ledger.record_sale(draft)
        commit(db)

    except CreditLimitExceeded as e:
        db.rollback()
        record_credit_rejection()
        log_credit_rejection(request_id, request_body.customer_id, e.limit, e.current_debt, e.proposed_amount)
        raise HTTPException(
            status_code=409,
            detail={
                "error": "credit_limit_exceeded",
                "limit": str(round_cents(e.limit)),
                "current_debt": str(round_cents(e.current_debt)),
                "proposed_amount": str(round_cents(e.proposed_amount)),
            },
        )

    except ValidationError as e:
        db.rollback()
        logging.warning(f"Invalid sale: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except NotFoundError as e:
        # Unknown customer, mechanic, catalogue service or motorcycle
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except PersistenceError as e:
        persistence_failures_counter.inc()
        db.rollback()
        logging.error(f"Sale write failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable, sale not recorded")

    duration_ms = (time.time() - start_time) * 1000
    record_sale(sale.sale_type.value, sale.payment_method.value)
    log_sale(request_id, sale.id, sale.sale_type.value, sale.payment_method.value, sale.total, duration_ms)

    return _sale_response(sale)


@router.put("/sales/{sale_id}", response_model=SaleResponse)
def revise_sale(
    sale_id: str,
    request_body: SaleRequest,
    request: Request,
    db: Session = Depends(get_db),
    ledger: ReceivableLedger = Depends(get_ledger),
):
    """
    Edit a sale or service order in place.

    The old items go back into stock before the new ones are taken out. An
    open credit sale is re-checked against the limit without counting itself.
    """
    with transaction(db):
        sale = ledger.revise_sale(sale_id, _draft(request_body))

    logging.info(
        "Sale revised",
        extra={"request_id": get_request_id(request), "sale_id": sale.id, "step": "sale_revised"},
    )
    return _sale_response(sale)

@router.get("/sales", response_model=List[SaleResponse])
def list_sales(
    customer_id: Optional[int] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    db: Session = Depends(get_db),
):
    """Sales, most recent first"""
    sales = SaleRepository(db).list_sales(customer_id=customer_id, payment_status=payment_status)
    return [_sale_response(s) for s in sales]


@router.delete("/sales/{sale_id}", status_code=204)
def delete_sale(
    sale_id: str,
    request: Request,
    db: Session = Depends(get_db),
    ledger: ReceivableLedger = Depends(get_ledger),
):
    """Delete a sale; a credit sale's receivable goes with it"""
    request_id = get_request_id(request)
    try:
        ledger.delete_sale(sale_id)
        commit(db)
    except SaleNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Sale not found")
    except PersistenceError as e:
        persistence_failures_counter.inc()
        db.rollback()
        logging.error(f"Sale delete failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")
