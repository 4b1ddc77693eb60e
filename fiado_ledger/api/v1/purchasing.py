"""Distributors and parts orders"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fiado_ledger.api.v1.schemas import (
    DistributorCreate,
    DistributorResponse,
    PurchaseOrderCreate,
    PurchaseOrderItemSchema,
    PurchaseOrderResponse,
    PurchaseOrderStatusUpdate,
)
from fiado_ledger.api.dependencies import get_clock
from fiado_ledger.domain import purchasing
from fiado_ledger.domain.exceptions import DistributorNotFoundError, PurchaseOrderNotFoundError
from fiado_ledger.domain.models import Distributor, PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus
from fiado_ledger.infrastructure.database.repositories import PurchasingRepository, transaction
from fiado_ledger.infrastructure.database.session import get_db
from fiado_ledger.utils.date_utils import Clock

router = APIRouter()


def _distributor_response(d: Distributor) -> DistributorResponse:
    return DistributorResponse(id=d.id, name=d.name, phone=d.phone, contact_person=d.contact_person)


def _order_response(order: PurchaseOrder) -> PurchaseOrderResponse:
    return PurchaseOrderResponse(
        id=order.id,
        distributor_id=order.distributor_id,
        distributor_name=order.distributor_name,
        date=order.date,
        status=order.status,
        items=[
            PurchaseOrderItemSchema(description=i.description, quantity=i.quantity, product_id=i.product_id)
            for i in order.items
        ],
    )


@router.post("/distributors", response_model=DistributorResponse, status_code=201)
def create_distributor(request_body: DistributorCreate, db: Session = Depends(get_db)):
    with transaction(db):
        distributor = PurchasingRepository(db).create_distributor(Distributor(id=None, **request_body.model_dump()))
    return _distributor_response(distributor)


@router.get("/distributors", response_model=List[DistributorResponse])
def list_distributors(db: Session = Depends(get_db)):
    return [_distributor_response(d) for d in PurchasingRepository(db).list_distributors()]


@router.post("/purchase-orders", response_model=PurchaseOrderResponse, status_code=201)
def create_order(
    request_body: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Place a pending parts order with a distributor"""
    repo = PurchasingRepository(db)
    items = [
        PurchaseOrderItem(description=i.description, quantity=i.quantity, product_id=i.product_id)
        for i in request_body.items
    ]

    with transaction(db):
        purchasing.validate_items(items)
        distributor = repo.get_distributor(request_body.distributor_id)
        if distributor is None:
            raise DistributorNotFoundError(f"Distributor {request_body.distributor_id} not found")
        order = repo.create_order(
            PurchaseOrder(
                id=None,
                distributor_id=distributor.id,
                distributor_name=distributor.name,
                date=clock(),
                items=items,
            )
        )
    return _order_response(order)


@router.get("/purchase-orders", response_model=List[PurchaseOrderResponse])
def list_orders(
    status: Optional[PurchaseOrderStatus] = Query(None),
    db: Session = Depends(get_db),
):
    """Orders, most recent first"""
    return [_order_response(o) for o in PurchasingRepository(db).list_orders(status)]


@router.patch("/purchase-orders/{order_id}/status", response_model=PurchaseOrderResponse)
def update_order_status(
    order_id: str,
    request_body: PurchaseOrderStatusUpdate,
    db: Session = Depends(get_db),
):
    """Move an order along pending, sent, received"""
    repo = PurchasingRepository(db)
    with transaction(db):
        order = repo.get_order(order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(f"Purchase order {order_id} not found")
        status = purchasing.transition(order, request_body.status)
        order = repo.update_order_status(order_id, status)
    return _order_response(order)


@router.delete("/purchase-orders/{order_id}", status_code=204)
def delete_order(order_id: str, db: Session = Depends(get_db)):
    with transaction(db):
        PurchasingRepository(db).delete_order(order_id)
