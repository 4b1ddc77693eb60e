"""Receivable aging - fine and interest accrual on overdue credit sales"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable
from fiado_ledger.domain.models import (
    AgingSnapshot,
    AgingStatus,
    Customer,
    PaymentStatus,
    PortfolioSummary,
    Receivable,
    ReceivableView,
)
from fiado_ledger.utils.date_utils import days_late, truncate_to_midnight

ZERO = Decimal("0")
DAYS_PER_MONTH = 30


def evaluate(receivable: Receivable, customer: Customer, today: date | datetime) -> AgingSnapshot:
    """
    Compute the collection state of a receivable as of `today`.

    Rules:
    - Paid receivables never accrue: total due is the original amount
    - Not yet due (or due today): no charges
    - Overdue: flat fine of fine_rate% once, plus simple interest of
      interest_rate% per 30-day month pro-rated by whole days late
      (ceiling), growing without bound

    Rates are read from the customer at call time, so changing a customer's
    rates changes the total due of all their open receivables.

    Example:
        150.00 due 2024-01-01, 2% fine, 1%/month, evaluated 2024-01-11
        fine = 3.00, interest = 150 * 1/100/30 * 10 = 0.50, total = 153.50
    """
    original = receivable.original_amount

    if receivable.payment_status == PaymentStatus.PAID:
        return AgingSnapshot(
            status=AgingStatus.PAID,
            fine=ZERO,
            interest=ZERO,
            days_late=0,
            total_due=original,
        )

    late = days_late(receivable.due_date, today)

    if late <= 0:
        due_day = receivable.due_date.date() if isinstance(receivable.due_date, datetime) else receivable.due_date
        status = AgingStatus.DUE_TODAY if truncate_to_midnight(today).date() == due_day else AgingStatus.ON_TIME
        return AgingSnapshot(status=status, fine=ZERO, interest=ZERO, days_late=0, total_due=original)

    fine = original * customer.fine_rate / 100
    # Multiply before dividing to keep exact results on round rates
    interest = original * customer.interest_rate * late / (100 * DAYS_PER_MONTH)

    return AgingSnapshot(
        status=AgingStatus.OVERDUE,
        fine=fine,
        interest=interest,
        days_late=late,
        total_due=original + fine + interest,
    )


def portfolio_summary(views: Iterable[ReceivableView]) -> PortfolioSummary:
    """Sum open receivables for the dashboard. Delinquency counts principal only."""
    open_principal = ZERO
    overdue_principal = ZERO
    total_due = ZERO
    open_count = 0
    overdue_count = 0

    for view in views:
        if view.aging.status == AgingStatus.PAID:
            continue
        open_count += 1
        open_principal += view.receivable.original_amount
        total_due += view.aging.total_due
        if view.aging.status == AgingStatus.OVERDUE:
            overdue_count += 1
            overdue_principal += view.receivable.original_amount

    return PortfolioSummary(
        open_principal=open_principal,
        overdue_principal=overdue_principal,
        total_due=total_due,
        open_count=open_count,
        overdue_count=overdue_count,
    )
