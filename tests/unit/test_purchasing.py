"""Unit tests for parts orders to distributors"""

import pytest
from datetime import datetime
from fiado_ledger.domain import purchasing
from fiado_ledger.domain.exceptions import ConflictError, ValidationError
from fiado_ledger.domain.models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus


def _order(status: PurchaseOrderStatus) -> PurchaseOrder:
    return PurchaseOrder(
        id="po-1",
        distributor_id=1,
        distributor_name="Distribuidora Sul",
        date=datetime(2024, 1, 1, 9, 0),
        status=status,
        items=[PurchaseOrderItem(description="Pastilha de freio", quantity=10)],
    )


def test_validate_items():
    purchasing.validate_items([PurchaseOrderItem(description="Cabo de embreagem", quantity=2)])
    with pytest.raises(ValidationError):
        purchasing.validate_items([])
    with pytest.raises(ValidationError):
        purchasing.validate_items([PurchaseOrderItem(description="Cabo de embreagem", quantity=0)])


@pytest.mark.parametrize(
    "current,target",
    [
        (PurchaseOrderStatus.PENDING, PurchaseOrderStatus.SENT),
        (PurchaseOrderStatus.PENDING, PurchaseOrderStatus.RECEIVED),
        (PurchaseOrderStatus.SENT, PurchaseOrderStatus.RECEIVED),
        (PurchaseOrderStatus.SENT, PurchaseOrderStatus.SENT),
    ],
)
def test_allowed_transitions(current, target):
    assert purchasing.transition(_order(current), target) == target


@pytest.mark.parametrize(
    "current,target",
    [
        (PurchaseOrderStatus.SENT, PurchaseOrderStatus.PENDING),
        (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.PENDING),
        (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.SENT),
    ],
)
def test_received_orders_do_not_go_back(current, target):
    with pytest.raises(ConflictError):
        purchasing.transition(_order(current), target)
