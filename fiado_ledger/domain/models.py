"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class PaymentMethod(str, Enum):
    PIX = "pix"
    CARD = "card"
    CASH = "cash"
    CREDIT = "credit"  # fiado: sold on the customer's tab


class SaleType(str, Enum):
    COUNTER = "counter"
    SERVICE = "service"  # workshop service order


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class AgingStatus(str, Enum):
    ON_TIME = "on_time"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"
    PAID = "paid"


class NotificationBucket(str, Enum):
    BEFORE_DUE = "before_due"
    ON_DUE = "on_due"
    OVERDUE = "overdue"


class CashSessionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class CashTransactionType(str, Enum):
    SUPPLY = "supply"  # cash put into the drawer
    WITHDRAWAL = "withdrawal"  # cash taken out


class PurchaseOrderStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    RECEIVED = "received"


@dataclass
class Customer:
    """Registered customer; rates are percentages"""

    id: Optional[int]
    name: str
    whatsapp: str
    credit_limit: Decimal = Decimal("0")
    fine_rate: Decimal = Decimal("2")
    interest_rate: Decimal = Decimal("1")  # per 30-day month
    cpf: Optional[str] = None
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None


@dataclass
class Product:
    """Stock item"""

    id: Optional[int]
    description: str
    sale_price: Decimal
    purchase_price: Decimal = Decimal("0")
    stock: int = 0
    sku: Optional[str] = None
    barcode: Optional[str] = None
    unit: str = "unit"
    category: Optional[str] = None


@dataclass
class SaleItem:
    """Line on a sale or service order"""

    description: str
    quantity: int
    price: Decimal
    product_id: Optional[int] = None


@dataclass
class FixedService:
    """Catalogued workshop job with a fixed mechanic payout"""

    description: str
    payout: Decimal
    quantity: int = 1
    service_id: Optional[str] = None  # catalogue entry the payout came from


@dataclass
class SaleDraft:
    """What the operator submits at the counter or the workshop desk"""

    sale_type: SaleType
    payment_method: PaymentMethod
    items: List[SaleItem] = field(default_factory=list)
    labor_value: Decimal = Decimal("0")
    customer_id: Optional[int] = None
    mechanic_id: Optional[str] = None
    mechanic_name: Optional[str] = None
    fixed_services: List[FixedService] = field(default_factory=list)
    due_date: Optional[date] = None
    motorcycle_id: Optional[int] = None
    km: Optional[int] = None  # odometer reading when the order closes
    moto_details: Optional[str] = None
    service_description: Optional[str] = None


@dataclass
class Sale:
    """Persisted sale or service order. Credit sales carry the receivable facet."""

    id: Optional[str]
    sale_type: SaleType
    payment_method: PaymentMethod
    total: Decimal
    date: datetime
    payment_status: PaymentStatus
    customer_name: str
    items: List[SaleItem] = field(default_factory=list)
    labor_value: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    customer_id: Optional[int] = None
    mechanic_id: Optional[str] = None
    mechanic_name: Optional[str] = None
    moto_details: Optional[str] = None
    service_description: Optional[str] = None
    motorcycle_id: Optional[int] = None
    due_date: Optional[date] = None
    paid_date: Optional[datetime] = None

    @property
    def is_credit(self) -> bool:
        return self.payment_method == PaymentMethod.CREDIT

    def as_receivable(self) -> Optional["Receivable"]:
        """Receivable view of a credit sale, None for paid-at-counter sales"""
        if not self.is_credit or self.customer_id is None or self.due_date is None:
            return None
        return Receivable(
            id=self.id,
            customer_id=self.customer_id,
            original_amount=self.total,
            due_date=self.due_date,
            payment_status=self.payment_status,
            paid_date=self.paid_date,
        )


@dataclass
class Receivable:
    """Amount owed on a credit sale"""

    id: str
    customer_id: int
    original_amount: Decimal
    due_date: date
    payment_status: PaymentStatus = PaymentStatus.PENDING
    paid_date: Optional[datetime] = None


@dataclass(frozen=True)
class AgingSnapshot:
    """Collection state of a receivable as of one day. Never persisted."""

    status: AgingStatus
    fine: Decimal
    interest: Decimal
    days_late: int
    total_due: Decimal


@dataclass
class ReceivableView:
    """Receivable paired with its freshly computed aging"""

    receivable: Receivable
    customer_name: str
    aging: AgingSnapshot


@dataclass
class PortfolioSummary:
    """Aggregates over the open receivables"""

    open_principal: Decimal
    overdue_principal: Decimal
    total_due: Decimal
    open_count: int
    overdue_count: int


@dataclass
class CreditCheck:
    """Outcome of an accepted credit limit check"""

    limit: Decimal
    current_debt: Decimal
    proposed_amount: Decimal
    remaining: Decimal


@dataclass
class CollectionNotice:
    """Reminder ready to hand to the messaging sink"""

    receivable_id: str
    customer_id: int
    recipient_phone: str
    bucket: NotificationBucket
    text: str


@dataclass
class Motorcycle:
    """Customer vehicle serviced at the workshop"""

    id: Optional[int]
    customer_id: int
    plate: str
    model: str
    current_km: int = 0
    customer_name: Optional[str] = None


@dataclass
class Mechanic:
    id: Optional[str]
    name: str


@dataclass
class WorkshopService:
    """Catalogue entry: a standard job and what the mechanic earns per unit"""

    id: Optional[str]
    name: str
    payout: Decimal


@dataclass
class CashSession:
    """One opening-to-closing period of the cash drawer"""

    id: Optional[str]
    opened_at: datetime
    opening_balance: Decimal
    status: CashSessionStatus = CashSessionStatus.OPEN
    notes: Optional[str] = None
    closed_at: Optional[datetime] = None
    closing_balance: Optional[Decimal] = None  # counted by the operator
    expected_balance: Optional[Decimal] = None

    @property
    def difference(self) -> Optional[Decimal]:
        """Counted minus expected; negative means cash is missing"""
        if self.closing_balance is None or self.expected_balance is None:
            return None
        return self.closing_balance - self.expected_balance


@dataclass
class CashTransaction:
    """Supply or withdrawal recorded against an open session"""

    id: Optional[int]
    session_id: str
    type: CashTransactionType
    amount: Decimal
    description: str
    date: datetime


@dataclass
class Distributor:
    id: Optional[int]
    name: str
    phone: str
    contact_person: Optional[str] = None


@dataclass
class PurchaseOrderItem:
    description: str
    quantity: int
    product_id: Optional[int] = None


@dataclass
class PurchaseOrder:
    """Parts order placed with a distributor"""

    id: Optional[str]
    distributor_id: int
    distributor_name: str
    date: datetime
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING
    items: List[PurchaseOrderItem] = field(default_factory=list)
