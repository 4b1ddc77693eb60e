"""Credit limit guard for sales on the customer's tab"""

from decimal import Decimal
from typing import Iterable, Optional
from fiado_ledger.domain.models import Customer, CreditCheck, PaymentStatus, Receivable
from fiado_ledger.domain.exceptions import CreditLimitExceeded, ValidationError


def require_customer(customer_id: Optional[int]) -> int:
    """Credit sales need a registered customer; walk-ins pay at the counter"""
    if customer_id is None:
        raise ValidationError("A registered customer is required for a credit sale")
    return customer_id


def current_debt(receivables: Iterable[Receivable]) -> Decimal:
    """Open principal. Accrued fines and interest do not count against the limit."""
    return sum(
        (r.original_amount for r in receivables if r.payment_status == PaymentStatus.PENDING),
        Decimal("0"),
    )


def remaining_credit(customer: Customer, receivables: Iterable[Receivable]) -> Decimal:
    """How much more the customer can buy on credit, never negative"""
    return max(Decimal("0"), customer.credit_limit - current_debt(receivables))


def authorize(
    customer: Customer,
    open_receivables: Iterable[Receivable],
    proposed_amount: Decimal,
) -> CreditCheck:
    """
    Accept a new credit sale iff open principal + proposed <= credit limit.

    Landing exactly on the limit is accepted.

    Raises:
        CreditLimitExceeded: carrying limit, current debt and proposed amount
    """
    debt = current_debt(open_receivables)

    if debt + proposed_amount > customer.credit_limit:
        raise CreditLimitExceeded(
            limit=customer.credit_limit,
            current_debt=debt,
            proposed_amount=proposed_amount,
        )

    return CreditCheck(
        limit=customer.credit_limit,
        current_debt=debt,
        proposed_amount=proposed_amount,
        remaining=customer.credit_limit - debt - proposed_amount,
    )
