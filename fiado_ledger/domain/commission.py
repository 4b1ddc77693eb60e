"""Sale totals, revenue and mechanic commissions for workshop service orders"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable
from fiado_ledger.domain.models import FixedService, Sale, SaleItem, SaleType
from fiado_ledger.domain.exceptions import ValidationError
from fiado_ledger.utils.date_utils import truncate_to_midnight

PERIODS = ("today", "week", "month", "all")


def sale_total(items: Iterable[SaleItem], labor_value: Decimal = Decimal("0")) -> Decimal:
    """Parts at price * quantity plus labor"""
    parts = sum((item.price * item.quantity for item in items), Decimal("0"))
    return parts + labor_value


def calculate_commission(
    labor_value: Decimal,
    fixed_services: Iterable[FixedService],
    mechanic_assigned: bool,
    labor_share: Decimal = Decimal("0.5"),
) -> Decimal:
    """
    Mechanic commission on a service order.

    - No mechanic assigned: nothing
    - Fixed services pay their catalogued payout per unit
    - Free-form labor pays `labor_share` of its value
    """
    if not mechanic_assigned:
        return Decimal("0")

    commission = sum((s.payout * s.quantity for s in fixed_services), Decimal("0"))
    if labor_value > 0:
        commission += labor_value * labor_share
    return commission


def period_start(period: str, now: datetime) -> datetime:
    """First instant counted for a reporting period"""
    if period == "today":
        return truncate_to_midnight(now)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return truncate_to_midnight(now).replace(day=1)
    if period == "all":
        return datetime.min
    raise ValidationError(f"Unknown period {period!r}, expected one of {', '.join(PERIODS)}")


def commission_for_period(sales: Iterable[Sale], mechanic_id: str, period: str, now: datetime) -> Decimal:
    """Commission earned by a mechanic on service orders since the period start"""
    start = period_start(period, now)
    return sum(
        (
            s.commission
            for s in sales
            if s.mechanic_id == mechanic_id and s.sale_type == SaleType.SERVICE and s.date >= start
        ),
        Decimal("0"),
    )


def revenue_for_period(sales: Iterable[Sale], period: str, now: datetime) -> Decimal:
    """Gross sales booked since the period start, whatever the payment method"""
    start = period_start(period, now)
    return sum((s.total for s in sales if s.date >= start), Decimal("0"))
