"""Parts orders to distributors"""

from typing import Dict, FrozenSet, Iterable
from fiado_ledger.domain.exceptions import ConflictError, ValidationError
from fiado_ledger.domain.models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus

# pending -> sent -> received; an order may also be marked received straight away
TRANSITIONS: Dict[PurchaseOrderStatus, FrozenSet[PurchaseOrderStatus]] = {
    PurchaseOrderStatus.PENDING: frozenset({PurchaseOrderStatus.SENT, PurchaseOrderStatus.RECEIVED}),
    PurchaseOrderStatus.SENT: frozenset({PurchaseOrderStatus.RECEIVED}),
    PurchaseOrderStatus.RECEIVED: frozenset(),
}


def validate_items(items: Iterable[PurchaseOrderItem]) -> None:
    items = list(items)
    if not items:
        raise ValidationError("A purchase order needs at least one item")
    for item in items:
        if item.quantity <= 0:
            raise ValidationError(f"Quantity must be positive for {item.description!r}")


def transition(order: PurchaseOrder, status: PurchaseOrderStatus) -> PurchaseOrderStatus:
    """Check a status change; repeating the current status is a no-op"""
    if status == order.status:
        return status
    if status not in TRANSITIONS[order.status]:
        raise ConflictError(f"Purchase order {order.id} cannot go from {order.status.value} to {status.value}")
    return status
