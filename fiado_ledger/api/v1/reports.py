"""GET /v1/dashboard/stats and mechanic commission reports"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fiado_ledger.api.v1.schemas import CommissionResponse, DashboardStatsResponse
from fiado_ledger.api.dependencies import get_clock, get_ledger
from fiado_ledger.domain.commission import commission_for_period, revenue_for_period
from fiado_ledger.domain.exceptions import ValidationError
from fiado_ledger.domain.ledger import ReceivableLedger
from fiado_ledger.infrastructure.database.repositories import SaleRepository
from fiado_ledger.infrastructure.database.session import get_db
from fiado_ledger.utils.date_utils import Clock
from fiado_ledger.utils.money import round_cents

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    ledger: ReceivableLedger = Depends(get_ledger),
    clock: Clock = Depends(get_clock),
):
    """
    Headline numbers for the shop dashboard.

    Delinquency is the principal of overdue receivables; accrued fines
    and interest show up only in total_due.
    """
    summary = ledger.summary()
    revenue = revenue_for_period(SaleRepository(db).list_sales(), "month", clock())

    return DashboardStatsResponse(
        month_revenue=round_cents(revenue),
        open_principal=round_cents(summary.open_principal),
        delinquency=round_cents(summary.overdue_principal),
        total_due=round_cents(summary.total_due),
        open_count=summary.open_count,
        overdue_count=summary.overdue_count,
    )


@router.get("/mechanics/{mechanic_id}/commission", response_model=CommissionResponse)
def get_mechanic_commission(
    mechanic_id: str,
    period: str = Query("month", description="today | week | month | all"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Commission a mechanic earned on service orders in the period"""
    sales = SaleRepository(db).list_sales(mechanic_id=mechanic_id)
    try:
        commission = commission_for_period(sales, mechanic_id, period, clock())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return CommissionResponse(mechanic_id=mechanic_id, period=period, commission=round_cents(commission))
