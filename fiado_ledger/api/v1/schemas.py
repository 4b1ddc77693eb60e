"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Optional
from pydantic import BaseModel, BeforeValidator, Field, model_validator

from fiado_ledger.config import settings
from fiado_ledger.domain.models import (
    AgingStatus,
    CashSessionStatus,
    CashTransactionType,
    NotificationBucket,
    PaymentMethod,
    PaymentStatus,
    PurchaseOrderStatus,
    SaleType,
)
from fiado_ledger.utils.money import parse_decimal


def _parse_amount(value):
    return value if value is None else parse_decimal(value)


# Accepts "1.234,56" as well as numbers; parsed before any business logic runs.
# Scale matches the storage columns so nothing is silently truncated on write.
Amount = Annotated[Decimal, BeforeValidator(_parse_amount), Field(ge=0, max_digits=12, decimal_places=2)]
Rate = Annotated[Decimal, BeforeValidator(_parse_amount), Field(ge=0, max_digits=7, decimal_places=3)]


class CustomerCreate(BaseModel):
    """Request body for POST /v1/customers"""

    name: str = Field(..., min_length=1)
    whatsapp: str = Field(..., min_length=1, description="Phone with country code, digits only")
    cpf: Optional[str] = None
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    credit_limit: Amount = Decimal("0")
    fine_rate: Rate = Field(default_factory=lambda: settings.default_fine_rate)
    interest_rate: Rate = Field(default_factory=lambda: settings.default_interest_rate)


class CustomerUpdate(BaseModel):
    """Request body for PATCH /v1/customers/{id}; omitted fields are left alone"""

    name: Optional[str] = Field(None, min_length=1)
    whatsapp: Optional[str] = Field(None, min_length=1)
    cpf: Optional[str] = None
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    credit_limit: Optional[Amount] = None
    fine_rate: Optional[Rate] = None
    interest_rate: Optional[Rate] = None


class CustomerResponse(BaseModel):
    id: int
    name: str
    whatsapp: str
    cpf: Optional[str] = None
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    credit_limit: Decimal
    fine_rate: Decimal
    interest_rate: Decimal


class CreditStatusResponse(BaseModel):
    """Response for GET /v1/customers/{id}/credit"""

    customer_id: int
    limit: Decimal
    current_debt: Decimal
    remaining: Decimal


class ProductCreate(BaseModel):
    """Request body for POST /v1/products"""

    description: str = Field(..., min_length=1)
    sale_price: Amount
    purchase_price: Amount = Decimal("0")
    stock: int = 0
    sku: Optional[str] = None
    barcode: Optional[str] = None
    unit: str = "unit"
    category: Optional[str] = None


class ProductResponse(BaseModel):
    id: int
    description: str
    sale_price: Decimal
    purchase_price: Decimal
    stock: int
    sku: Optional[str] = None
    barcode: Optional[str] = None
    unit: str
    category: Optional[str] = None


class SaleItemSchema(BaseModel):
    """Single line on a sale"""

    description: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    price: Amount
    product_id: Optional[int] = None


class FixedServiceSchema(BaseModel):
    """Workshop job with fixed mechanic payout: a catalogue id, or a free description and payout"""

    service_id: Optional[str] = None
    description: Optional[str] = None
    payout: Optional[Amount] = None
    quantity: int = Field(1, gt=0)

    @model_validator(mode="after")
    def _catalogue_or_free(self):
        if self.service_id is None and (self.description is None or self.payout is None):
            raise ValueError("Give a service_id or both description and payout")
        return self


class SaleRequest(BaseModel):
    """Request body for POST /v1/sales"""

    sale_type: SaleType = SaleType.COUNTER
    payment_method: PaymentMethod
    items: List[SaleItemSchema] = []
    labor_value: Amount = Decimal("0")
    customer_id: Optional[int] = None
    mechanic_id: Optional[str] = None
    mechanic_name: Optional[str] = None
    fixed_services: List[FixedServiceSchema] = []
    due_date: Optional[date] = Field(None, description="Credit sales only; defaults to 30 days out")
    moto_details: Optional[str] = None
    service_description: Optional[str] = None
    motorcycle_id: Optional[int] = None
    km: Optional[int] = Field(None, ge=0, description="Odometer reading; updates the motorcycle")


class SaleResponse(BaseModel):
    id: str
    sale_type: SaleType
    payment_method: PaymentMethod
    total: Decimal
    labor_value: Decimal
    commission: Decimal
    customer_id: Optional[int] = None
    customer_name: str
    mechanic_id: Optional[str] = None
    mechanic_name: Optional[str] = None
    moto_details: Optional[str] = None
    service_description: Optional[str] = None
    motorcycle_id: Optional[int] = None
    date: datetime
    payment_status: PaymentStatus
    due_date: Optional[date] = None
    paid_date: Optional[datetime] = None
    items: List[SaleItemSchema]


class ReceivableResponse(BaseModel):
    """Receivable with aging computed at read time"""

    id: str
    customer_id: int
    customer_name: str
    original_amount: Decimal
    due_date: date
    payment_status: PaymentStatus
    paid_date: Optional[datetime] = None
    status: AgingStatus
    days_late: int
    fine: Decimal
    interest: Decimal
    total_due: Decimal


class ReceivableListResponse(BaseModel):
    """Response for GET /v1/receivables"""

    receivables: List[ReceivableResponse]


class DueDateUpdate(BaseModel):
    """Request body for PATCH /v1/receivables/{id}/due-date"""

    due_date: date


class NoticeSchema(BaseModel):
    receivable_id: str
    customer_id: int
    recipient_phone: str
    bucket: NotificationBucket
    text: str


class NoticesResponse(BaseModel):
    """Response for GET /v1/receivables/notices"""

    notices: List[NoticeSchema]


class DashboardStatsResponse(BaseModel):
    """Response for GET /v1/dashboard/stats"""

    month_revenue: Decimal
    open_principal: Decimal
    delinquency: Decimal  # Principal of overdue receivables, charges excluded
    total_due: Decimal
    open_count: int
    overdue_count: int


class CommissionResponse(BaseModel):
    """Response for GET /v1/mechanics/{mechanic_id}/commission"""

    mechanic_id: str
    period: str
    commission: Decimal


class ProductUpdate(BaseModel):
    """Request body for PATCH /v1/products/{id}; omitted fields are left alone"""

    description: Optional[str] = Field(None, min_length=1)
    sale_price: Optional[Amount] = None
    purchase_price: Optional[Amount] = None
    stock: Optional[int] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None


class MechanicCreate(BaseModel):
    name: str = Field(..., min_length=1)


class MechanicResponse(BaseModel):
    id: str
    name: str


class WorkshopServiceCreate(BaseModel):
    """Request body for POST /v1/fixed-services"""

    name: str = Field(..., min_length=1)
    payout: Amount


class WorkshopServiceResponse(BaseModel):
    id: str
    name: str
    payout: Decimal


class MotorcycleCreate(BaseModel):
    """Request body for POST /v1/motorcycles"""

    customer_id: int
    plate: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    current_km: int = Field(0, ge=0)


class MotorcycleResponse(BaseModel):
    id: int
    customer_id: int
    customer_name: Optional[str] = None
    plate: str
    model: str
    current_km: int


class CashSessionOpen(BaseModel):
    """Request body for POST /v1/cash/sessions"""

    opening_balance: Amount = Decimal("0")
    notes: Optional[str] = None


class CashTransactionCreate(BaseModel):
    """Request body for POST /v1/cash/sessions/{id}/transactions"""

    type: CashTransactionType
    amount: Amount
    description: str = Field(..., min_length=1)


class CashTransactionResponse(BaseModel):
    id: int
    session_id: str
    type: CashTransactionType
    amount: Decimal
    description: str
    date: datetime


class CashCloseRequest(BaseModel):
    """Request body for POST /v1/cash/sessions/{id}/close"""

    closing_balance: Amount


class CashSessionResponse(BaseModel):
    id: str
    status: CashSessionStatus
    opened_at: datetime
    closed_at: Optional[datetime] = None
    opening_balance: Decimal
    expected_balance: Decimal  # Running figure while open, frozen at closing
    closing_balance: Optional[Decimal] = None
    difference: Optional[Decimal] = None
    notes: Optional[str] = None


class DistributorCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    contact_person: Optional[str] = None


class DistributorResponse(BaseModel):
    id: int
    name: str
    phone: str
    contact_person: Optional[str] = None


class PurchaseOrderItemSchema(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    product_id: Optional[int] = None


class PurchaseOrderCreate(BaseModel):
    """Request body for POST /v1/purchase-orders"""

    distributor_id: int
    items: List[PurchaseOrderItemSchema]


class PurchaseOrderStatusUpdate(BaseModel):
    status: PurchaseOrderStatus


class PurchaseOrderResponse(BaseModel):
    id: str
    distributor_id: int
    distributor_name: str
    date: datetime
    status: PurchaseOrderStatus
    items: List[PurchaseOrderItemSchema]
