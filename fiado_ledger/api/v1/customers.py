"""Customer registration and credit terms"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from fiado_ledger.api.v1.schemas import (
    CreditStatusResponse,
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
)
from fiado_ledger.api.dependencies import get_ledger, get_request_id
from fiado_ledger.domain.exceptions import CustomerNotFoundError, PersistenceError
from fiado_ledger.domain.ledger import ReceivableLedger
from fiado_ledger.domain.models import Customer
from fiado_ledger.infrastructure.database.repositories import CustomerRepository, commit
from fiado_ledger.infrastructure.database.session import get_db
from fiado_ledger.infrastructure.observability.metrics import persistence_failures_counter
from fiado_ledger.utils.money import round_cents

router = APIRouter()

# Columns that must never be cleared by an explicit null
REQUIRED_FIELDS = {"name", "whatsapp", "credit_limit", "fine_rate", "interest_rate"}


def _customer_response(customer: Customer) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        name=customer.name,
        whatsapp=customer.whatsapp,
        cpf=customer.cpf,
        address=customer.address,
        neighborhood=customer.neighborhood,
        city=customer.city,
        zip_code=customer.zip_code,
        credit_limit=customer.credit_limit,
        fine_rate=customer.fine_rate,
        interest_rate=customer.interest_rate,
    )


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def create_customer(
    request_body: CustomerCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """Register a customer with credit limit and fine/interest rates"""
    request_id = get_request_id(request)
    try:
        customer = CustomerRepository(db).create_customer(Customer(id=None, **request_body.model_dump()))
        commit(db)
    except PersistenceError as e:
        persistence_failures_counter.inc()
        db.rollback()
        logging.error(f"Customer write failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    return _customer_response(customer)


@router.get("/customers", response_model=List[CustomerResponse])
def list_customers(db: Session = Depends(get_db)):
    return [_customer_response(c) for c in CustomerRepository(db).list_customers()]


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = CustomerRepository(db).get_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return _customer_response(customer)


@router.patch("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    request_body: CustomerUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Change contact data, credit limit or rates.

    New rates apply immediately to every open receivable of the customer,
    since aging reads them at evaluation time.
    """
    request_id = get_request_id(request)
    fields = {
        name: value
        for name, value in request_body.model_dump(exclude_unset=True).items()
        if value is not None or name not in REQUIRED_FIELDS
    }

    try:
        customer = CustomerRepository(db).update_customer(customer_id, **fields)
        commit(db)
    except CustomerNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Customer not found")
    except PersistenceError as e:
        persistence_failures_counter.inc()
        db.rollback()
        logging.error(f"Customer write failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    return _customer_response(customer)


@router.get("/customers/{customer_id}/credit", response_model=CreditStatusResponse)
def get_credit_status(customer_id: int, ledger: ReceivableLedger = Depends(get_ledger)):
    """Credit limit, open principal and remaining credit"""
    try:
        status = ledger.credit_status(customer_id)
    except CustomerNotFoundError:
        raise HTTPException(status_code=404, detail="Customer not found")

    return CreditStatusResponse(
        customer_id=customer_id,
        limit=round_cents(status.limit),
        current_debt=round_cents(status.current_debt),
        remaining=round_cents(status.remaining),
    )
