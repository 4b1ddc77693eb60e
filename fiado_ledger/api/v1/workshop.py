"""Workshop registry: mechanics, fixed-service catalogue and customer motorcycles"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fiado_ledger.api.v1.schemas import (
    MechanicCreate,
    MechanicResponse,
    MotorcycleCreate,
    MotorcycleResponse,
    WorkshopServiceCreate,
    WorkshopServiceResponse,
)
from fiado_ledger.domain.models import Mechanic, Motorcycle, WorkshopService
from fiado_ledger.infrastructure.database.repositories import WorkshopRepository, transaction
from fiado_ledger.infrastructure.database.session import get_db

router = APIRouter()


def _motorcycle_response(motorcycle: Motorcycle) -> MotorcycleResponse:
    return MotorcycleResponse(
        id=motorcycle.id,
        customer_id=motorcycle.customer_id,
        customer_name=motorcycle.customer_name,
        plate=motorcycle.plate,
        model=motorcycle.model,
        current_km=motorcycle.current_km,
    )


@router.post("/mechanics", response_model=MechanicResponse, status_code=201)
def create_mechanic(request_body: MechanicCreate, db: Session = Depends(get_db)):
    with transaction(db):
        mechanic = WorkshopRepository(db).create_mechanic(Mechanic(id=None, name=request_body.name))
    return MechanicResponse(id=mechanic.id, name=mechanic.name)


@router.get("/mechanics", response_model=List[MechanicResponse])
def list_mechanics(db: Session = Depends(get_db)):
    return [MechanicResponse(id=m.id, name=m.name) for m in WorkshopRepository(db).list_mechanics()]


@router.post("/fixed-services", response_model=WorkshopServiceResponse, status_code=201)
def create_fixed_service(request_body: WorkshopServiceCreate, db: Session = Depends(get_db)):
    """Add a standard job to the catalogue with the mechanic's payout per unit"""
    with transaction(db):
        service = WorkshopRepository(db).create_workshop_service(
            WorkshopService(id=None, name=request_body.name, payout=request_body.payout)
        )
    return WorkshopServiceResponse(id=service.id, name=service.name, payout=service.payout)


@router.get("/fixed-services", response_model=List[WorkshopServiceResponse])
def list_fixed_services(db: Session = Depends(get_db)):
    return [
        WorkshopServiceResponse(id=s.id, name=s.name, payout=s.payout)
        for s in WorkshopRepository(db).list_workshop_services()
    ]


@router.post("/motorcycles", response_model=MotorcycleResponse, status_code=201)
def create_motorcycle(request_body: MotorcycleCreate, db: Session = Depends(get_db)):
    with transaction(db):
        motorcycle = WorkshopRepository(db).create_motorcycle(Motorcycle(id=None, **request_body.model_dump()))
    return _motorcycle_response(motorcycle)


@router.get("/motorcycles", response_model=List[MotorcycleResponse])
def list_motorcycles(
    customer_id: Optional[int] = Query(None, description="Only this customer's motorcycles"),
    db: Session = Depends(get_db),
):
    return [_motorcycle_response(m) for m in WorkshopRepository(db).list_motorcycles(customer_id)]
