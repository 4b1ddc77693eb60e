"""Workshop registry rules: mechanics, the fixed-service catalogue and odometer readings"""

from typing import Iterable, List, Optional, Protocol
from fiado_ledger.domain.exceptions import (
    MechanicNotFoundError,
    MotorcycleNotFoundError,
    ValidationError,
    WorkshopServiceNotFoundError,
)
from fiado_ledger.domain.models import FixedService, Mechanic, Motorcycle, WorkshopService


class WorkshopStore(Protocol):
    def get_mechanic(self, mechanic_id: str) -> Optional[Mechanic]: ...

    def get_workshop_service(self, service_id: str) -> Optional[WorkshopService]: ...

    def get_motorcycle(self, motorcycle_id: int) -> Optional[Motorcycle]: ...

    def update_motorcycle_km(self, motorcycle_id: int, km: int) -> Motorcycle: ...


def require_mechanic(store: WorkshopStore, mechanic_id: str) -> Mechanic:
    mechanic = store.get_mechanic(mechanic_id)
    if mechanic is None:
        raise MechanicNotFoundError(f"Mechanic {mechanic_id} not found")
    return mechanic


def resolve_services(store: WorkshopStore, services: Iterable[FixedService]) -> List[FixedService]:
    """
    Price fixed services from the catalogue.

    Lines that reference a catalogue entry take its name and payout; free lines
    (no service_id) are kept as typed.
    """
    resolved = []
    for service in services:
        if service.quantity <= 0:
            raise ValidationError(f"Quantity must be positive for {service.description!r}")
        if service.service_id is None:
            resolved.append(service)
            continue

        entry = store.get_workshop_service(service.service_id)
        if entry is None:
            raise WorkshopServiceNotFoundError(f"Fixed service {service.service_id} not found")
        resolved.append(
            FixedService(
                description=entry.name,
                payout=entry.payout,
                quantity=service.quantity,
                service_id=entry.id,
            )
        )
    return resolved


def require_motorcycle(store: WorkshopStore, motorcycle_id: int, customer_id: Optional[int]) -> Motorcycle:
    """The vehicle on a service order must exist and belong to the order's customer"""
    motorcycle = store.get_motorcycle(motorcycle_id)
    if motorcycle is None:
        raise MotorcycleNotFoundError(f"Motorcycle {motorcycle_id} not found")
    if customer_id is not None and motorcycle.customer_id != customer_id:
        raise ValidationError(f"Motorcycle {motorcycle.plate} belongs to another customer")
    return motorcycle


def validate_km(km: int) -> int:
    if km < 0:
        raise ValidationError("Odometer reading cannot be negative")
    return km
