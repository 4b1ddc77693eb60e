"""Unit tests for the workshop registry: mechanics, fixed-service catalogue, motorcycles"""

import pytest
from decimal import Decimal
from fiado_ledger.domain import workshop
from fiado_ledger.domain.exceptions import (
    CustomerNotFoundError,
    MechanicNotFoundError,
    MotorcycleNotFoundError,
    ValidationError,
    WorkshopServiceNotFoundError,
)
from fiado_ledger.domain.models import (
    FixedService,
    Motorcycle,
    PaymentMethod,
    SaleDraft,
    SaleItem,
    SaleType,
    WorkshopService,
)
from fiado_ledger.domain.ledger import ReceivableLedger
from fiado_ledger.infrastructure.database.repositories import CustomerRepository, SaleRepository, WorkshopRepository


@pytest.fixture
def registry(db) -> WorkshopRepository:
    return WorkshopRepository(db)


@pytest.fixture
def motorcycle(registry, make_customer) -> Motorcycle:
    customer = make_customer()
    return registry.create_motorcycle(
        Motorcycle(id=None, customer_id=customer.id, plate="ABC1D23", model="CG 160", current_km=12000)
    )


def _service_draft(**fields) -> SaleDraft:
    return SaleDraft(
        sale_type=SaleType.SERVICE,
        payment_method=PaymentMethod.CASH,
        items=[SaleItem(description="Óleo", quantity=1, price=Decimal("40"))],
        labor_value=Decimal("60"),
        **fields,
    )


def test_require_mechanic(registry, mechanic):
    assert workshop.require_mechanic(registry, "M1").name == "Carlos"
    with pytest.raises(MechanicNotFoundError):
        workshop.require_mechanic(registry, "nobody")


def test_resolve_services_prices_catalogue_lines(registry):
    entry = registry.create_workshop_service(WorkshopService(id=None, name="Troca de relação", payout=Decimal("25")))

    resolved = workshop.resolve_services(
        registry,
        [
            FixedService(description="", payout=Decimal("0"), quantity=2, service_id=entry.id),
            FixedService(description="Regulagem de freio", payout=Decimal("10")),
        ],
    )

    assert [(s.description, s.payout, s.quantity) for s in resolved] == [
        ("Troca de relação", Decimal("25.00"), 2),
        ("Regulagem de freio", Decimal("10"), 1),
    ]


def test_resolve_services_unknown_or_zero_quantity(registry):
    with pytest.raises(WorkshopServiceNotFoundError):
        workshop.resolve_services(registry, [FixedService(description="", payout=Decimal("0"), service_id="x")])
    with pytest.raises(ValidationError):
        workshop.resolve_services(registry, [FixedService(description="Lavagem", payout=Decimal("5"), quantity=0)])


def test_motorcycle_belongs_to_customer(registry, motorcycle, make_customer):
    other = make_customer(name="Maria Souza")

    assert workshop.require_motorcycle(registry, motorcycle.id, motorcycle.customer_id).plate == "ABC1D23"
    assert workshop.require_motorcycle(registry, motorcycle.id, None).customer_name == "João Silva"
    with pytest.raises(ValidationError):
        workshop.require_motorcycle(registry, motorcycle.id, other.id)
    with pytest.raises(MotorcycleNotFoundError):
        workshop.require_motorcycle(registry, 999, None)


def test_motorcycle_needs_registered_customer(registry):
    with pytest.raises(CustomerNotFoundError):
        registry.create_motorcycle(Motorcycle(id=None, customer_id=999, plate="XYZ9A87", model="Fazer 250"))


def test_validate_km():
    assert workshop.validate_km(0) == 0
    with pytest.raises(ValidationError):
        workshop.validate_km(-1)


def test_service_order_updates_odometer(ledger, registry, motorcycle):
    sale = ledger.record_sale(
        _service_draft(customer_id=motorcycle.customer_id, motorcycle_id=motorcycle.id, km=15400)
    )

    assert sale.motorcycle_id == motorcycle.id
    assert registry.get_motorcycle(motorcycle.id).current_km == 15400


def test_service_order_without_km_keeps_odometer(ledger, registry, motorcycle):
    ledger.record_sale(_service_draft(customer_id=motorcycle.customer_id, motorcycle_id=motorcycle.id))
    assert registry.get_motorcycle(motorcycle.id).current_km == 12000


def test_service_order_catalogue_commission(ledger, registry, mechanic):
    entry = registry.create_workshop_service(WorkshopService(id=None, name="Troca de óleo", payout=Decimal("20")))

    sale = ledger.record_sale(
        _service_draft(
            mechanic_id="M1",
            fixed_services=[FixedService(description="", payout=Decimal("0"), quantity=2, service_id=entry.id)],
        )
    )

    assert sale.mechanic_name == "Carlos"
    assert Decimal(sale.commission) == Decimal("70.00")


def test_service_order_unknown_mechanic_records_nothing(ledger):
    with pytest.raises(MechanicNotFoundError):
        ledger.record_sale(_service_draft(mechanic_id="ghost"))


def test_registry_references_need_workshop_store(db, clock, mechanic):
    bare = ReceivableLedger(sales=SaleRepository(db), customers=CustomerRepository(db), clock=clock)
    with pytest.raises(ValidationError):
        bare.record_sale(_service_draft(mechanic_id="M1"))
