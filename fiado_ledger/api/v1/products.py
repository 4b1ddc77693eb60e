"""Stock items sold at the counter and used on service orders"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from fiado_ledger.api.v1.schemas import ProductCreate, ProductResponse, ProductUpdate
from fiado_ledger.api.dependencies import get_request_id
from fiado_ledger.domain.exceptions import PersistenceError
from fiado_ledger.domain.models import Product
from fiado_ledger.infrastructure.database.repositories import ProductRepository, commit, transaction
from fiado_ledger.infrastructure.database.session import get_db
from fiado_ledger.infrastructure.observability.metrics import persistence_failures_counter

router = APIRouter()

# Columns that must never be cleared by an explicit null
REQUIRED_FIELDS = {"description", "sale_price", "purchase_price", "stock", "unit"}


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        description=product.description,
        sale_price=product.sale_price,
        purchase_price=product.purchase_price,
        stock=product.stock,
        sku=product.sku,
        barcode=product.barcode,
        unit=product.unit,
        category=product.category,
    )


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(request_body: ProductCreate, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        product = ProductRepository(db).create_product(Product(id=None, **request_body.model_dump()))
        commit(db)
    except PersistenceError as e:
        persistence_failures_counter.inc()
        db.rollback()
        logging.error(f"Product write failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    return _product_response(product)


@router.get("/products", response_model=List[ProductResponse])
def list_products(
    category: Optional[str] = Query(None, description="Only products in this category"),
    db: Session = Depends(get_db),
):
    return [_product_response(p) for p in ProductRepository(db).list_products(category)]


@router.patch("/products/{product_id}", response_model=ProductResponse)
def update_product(product_id: int, request_body: ProductUpdate, db: Session = Depends(get_db)):
    """Change price, stock or catalogue data; omitted fields are left alone"""
    fields = {
        name: value
        for name, value in request_body.model_dump(exclude_unset=True).items()
        if value is not None or name not in REQUIRED_FIELDS
    }
    with transaction(db):
        product = ProductRepository(db).update_product(product_id, **fields)
    return _product_response(product)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    with transaction(db):
        ProductRepository(db).delete_product(product_id)
