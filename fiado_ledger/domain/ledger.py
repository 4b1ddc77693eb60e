"""Receivable ledger - credit sale lifecycle over an injected row store"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Protocol, Tuple
from fiado_ledger.domain import aging, credit, workshop
from fiado_ledger.domain.commission import calculate_commission, sale_total
from fiado_ledger.domain.exceptions import (
    CustomerNotFoundError,
    ReceivableNotFoundError,
    SaleNotFoundError,
    ValidationError,
)
from fiado_ledger.domain.models import (
    CollectionNotice,
    CreditCheck,
    Customer,
    PaymentMethod,
    PaymentStatus,
    PortfolioSummary,
    Receivable,
    ReceivableView,
    Sale,
    SaleDraft,
    SaleType,
)
from fiado_ledger.domain.notifications import build_message, select_bucket
from fiado_ledger.domain.workshop import WorkshopStore
from fiado_ledger.utils.date_utils import Clock, add_days, system_clock
from fiado_ledger.utils.money import round_cents

WALK_IN_NAME = "Consumidor Final"
SERVICE_WALK_IN_NAME = "Cliente O.S."


class SaleStore(Protocol):
    def get_sale(self, sale_id: str) -> Optional[Sale]: ...

    def list_sales(
        self,
        customer_id: Optional[int] = None,
        payment_method: Optional[PaymentMethod] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> List[Sale]: ...

    def insert_sale(self, sale: Sale) -> Sale: ...

    def update_sale(self, sale_id: str, **fields) -> Sale: ...

    def replace_sale(self, sale: Sale) -> Sale: ...

    def delete_sale(self, sale_id: str) -> None: ...


class CustomerStore(Protocol):
    def get_customer(self, customer_id: int) -> Optional[Customer]: ...


class ReceivableLedger:
    """
    Owns credit sales (fiado) from checkout to settlement.

    Stored rows never carry fine, interest or total due: every read runs
    the aging calculator with the clock's current time.
    """

    def __init__(
        self,
        sales: SaleStore,
        customers: CustomerStore,
        clock: Clock = system_clock,
        default_term_days: int = 30,
        reminder_days_before: int = 2,
        labor_share: Decimal = Decimal("0.5"),
        shop_name: str = "",
        workshop: Optional[WorkshopStore] = None,
    ):
        self.sales = sales
        self.customers = customers
        self.clock = clock
        self.default_term_days = default_term_days
        self.reminder_days_before = reminder_days_before
        self.labor_share = labor_share
        self.shop_name = shop_name
        self.workshop = workshop

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.customers.get_customer(customer_id)
        if customer is None:
            raise CustomerNotFoundError(f"Customer {customer_id} not found")
        return customer

    def open_receivables(self, customer_id: Optional[int] = None) -> List[Receivable]:
        sales = self.sales.list_sales(
            customer_id=customer_id,
            payment_method=PaymentMethod.CREDIT,
            payment_status=PaymentStatus.PENDING,
        )
        return [r for r in (s.as_receivable() for s in sales) if r is not None]

    def authorize_credit(self, customer: Customer, amount: Decimal) -> CreditCheck:
        """Run the credit limit guard against the customer's open principal"""
        return credit.authorize(customer, self.open_receivables(customer.id), amount)

    def credit_status(self, customer_id: int) -> CreditCheck:
        """Limit, open principal and what is left to spend"""
        customer = self.get_customer(customer_id)
        receivables = self.open_receivables(customer_id)
        return CreditCheck(
            limit=customer.credit_limit,
            current_debt=credit.current_debt(receivables),
            proposed_amount=Decimal("0"),
            remaining=credit.remaining_credit(customer, receivables),
        )

    def _validate(self, draft: SaleDraft) -> None:
        if not draft.items and draft.labor_value <= 0:
            raise ValidationError("Add at least one item or a labor value")
        for item in draft.items:
            if item.quantity <= 0:
                raise ValidationError(f"Quantity must be positive for {item.description!r}")
            if item.price < 0:
                raise ValidationError(f"Price cannot be negative for {item.description!r}")
        if draft.labor_value < 0:
            raise ValidationError("Labor value cannot be negative")
        if draft.km is not None:
            workshop.validate_km(draft.km)

        if draft.payment_method == PaymentMethod.CREDIT:
            credit.require_customer(draft.customer_id)

        uses_registry = (
            draft.mechanic_id is not None
            or draft.motorcycle_id is not None
            or any(s.service_id is not None for s in draft.fixed_services)
        )
        if uses_registry and self.workshop is None:
            raise ValidationError("Workshop records are not available")

    def _build_sale(self, draft: SaleDraft, sale_id: Optional[str], when: datetime) -> Tuple[Sale, Optional[Customer]]:
        """Price a draft: resolve customer and workshop references, total and commission"""
        customer = self.get_customer(draft.customer_id) if draft.customer_id is not None else None

        services = list(draft.fixed_services)
        mechanic_name = draft.mechanic_name
        if self.workshop is not None:
            if draft.mechanic_id is not None:
                mechanic_name = workshop.require_mechanic(self.workshop, draft.mechanic_id).name
            services = workshop.resolve_services(self.workshop, services)
            if draft.motorcycle_id is not None:
                workshop.require_motorcycle(self.workshop, draft.motorcycle_id, draft.customer_id)

        total = round_cents(sale_total(draft.items, draft.labor_value))

        commission = Decimal("0")
        if draft.sale_type == SaleType.SERVICE:
            commission = round_cents(
                calculate_commission(
                    draft.labor_value,
                    services,
                    mechanic_assigned=draft.mechanic_id is not None,
                    labor_share=self.labor_share,
                )
            )

        if customer is not None:
            customer_name = customer.name
        elif draft.sale_type == SaleType.SERVICE:
            customer_name = SERVICE_WALK_IN_NAME
        else:
            customer_name = WALK_IN_NAME

        sale = Sale(
            id=sale_id,
            sale_type=draft.sale_type,
            payment_method=draft.payment_method,
            total=total,
            date=when,
            payment_status=PaymentStatus.PAID,
            customer_name=customer_name,
            items=list(draft.items),
            labor_value=draft.labor_value,
            commission=commission,
            customer_id=draft.customer_id,
            mechanic_id=draft.mechanic_id,
            mechanic_name=mechanic_name,
            moto_details=draft.moto_details,
            service_description=draft.service_description,
            motorcycle_id=draft.motorcycle_id,
            due_date=draft.due_date,
        )
        return sale, customer

    def _record_km(self, draft: SaleDraft) -> None:
        """Closing a service order updates the vehicle's odometer"""
        if self.workshop is not None and draft.motorcycle_id is not None and draft.km is not None:
            self.workshop.update_motorcycle_km(draft.motorcycle_id, draft.km)

    def record_sale(self, draft: SaleDraft) -> Sale:
        """
        Book a counter sale or service order.

        Flow:
        1. Validate the draft (something to charge, sane quantities)
        2. Credit sales: require a registered customer, then the limit guard
        3. Credit sales become open receivables; everything else is paid now
        4. Service orders with a vehicle and km reading update its odometer

        Raises:
            ValidationError: malformed draft or credit sale without customer
            NotFoundError: customer, mechanic, catalogue service or vehicle missing
            CreditLimitExceeded: guard rejected the sale
        """
        self._validate(draft)
        now = self.clock()
        sale, customer = self._build_sale(draft, None, now)

        if sale.is_credit:
            self.authorize_credit(customer, sale.total)
            saved = self.open(sale)
        else:
            sale.due_date = None
            sale.paid_date = now
            saved = self.sales.insert_sale(sale)

        self._record_km(draft)
        return saved

    def revise_sale(self, sale_id: str, draft: SaleDraft) -> Sale:
        """
        Edit a recorded sale or service order in place.

        Stock taken by the old items is put back before the new items are
        taken out. The credit guard runs against the customer's other open
        receivables, so the sale is not counted twice. Settled credit sales
        are final.
        """
        existing = self.sales.get_sale(sale_id)
        if existing is None:
            raise SaleNotFoundError(f"Sale {sale_id} not found")
        if existing.is_credit and existing.payment_status == PaymentStatus.PAID:
            raise ValidationError(f"Sale {sale_id} is already settled")

        self._validate(draft)
        sale, customer = self._build_sale(draft, sale_id, existing.date)

        if sale.is_credit:
            others = [r for r in self.open_receivables(customer.id) if r.id != sale_id]
            credit.authorize(customer, others, sale.total)
            if sale.total <= 0:
                raise ValidationError("Receivable amount must be positive")
            sale.payment_status = PaymentStatus.PENDING
            sale.paid_date = None
            if sale.due_date is None:
                sale.due_date = existing.due_date or add_days(existing.date.date(), self.default_term_days)
        else:
            sale.due_date = None
            sale.paid_date = existing.paid_date or self.clock()

        saved = self.sales.replace_sale(sale)
        self._record_km(draft)
        return saved

    def open(self, sale: Sale) -> Sale:
        """Persist an authorized credit sale as a pending receivable"""
        if not sale.is_credit:
            raise ValidationError("Only credit sales open a receivable")
        credit.require_customer(sale.customer_id)
        if sale.total <= 0:
            raise ValidationError("Receivable amount must be positive")

        sale.payment_status = PaymentStatus.PENDING
        sale.paid_date = None
        if sale.due_date is None:
            sale.due_date = add_days(sale.date.date(), self.default_term_days)

        return self.sales.insert_sale(sale)

    def get_receivable_sale(self, sale_id: str) -> Sale:
        sale = self.sales.get_sale(sale_id)
        if sale is None or not sale.is_credit:
            raise ReceivableNotFoundError(f"Receivable {sale_id} not found")
        return sale

    def settle(self, sale_id: str) -> Sale:
        """Mark a receivable paid. A second call leaves the first paid date untouched."""
        sale = self.get_receivable_sale(sale_id)
        if sale.payment_status == PaymentStatus.PAID:
            return sale
        return self.sales.update_sale(
            sale_id,
            payment_status=PaymentStatus.PAID,
            paid_date=self.clock(),
        )

    def reschedule(self, sale_id: str, due_date: date) -> Sale:
        """Move the due date of an open receivable"""
        sale = self.get_receivable_sale(sale_id)
        if sale.payment_status == PaymentStatus.PAID:
            raise ValidationError(f"Receivable {sale_id} is already paid")
        return self.sales.update_sale(sale_id, due_date=due_date)

    def delete_sale(self, sale_id: str) -> None:
        """Remove a sale together with its receivable facet"""
        if self.sales.get_sale(sale_id) is None:
            raise SaleNotFoundError(f"Sale {sale_id} not found")
        self.sales.delete_sale(sale_id)

    def _open_with_customers(self, customer_id: Optional[int] = None) -> List[Tuple[Receivable, Customer]]:
        cache: Dict[int, Customer] = {}
        pairs = []
        for receivable in self.open_receivables(customer_id):
            if receivable.customer_id not in cache:
                cache[receivable.customer_id] = self.get_customer(receivable.customer_id)
            pairs.append((receivable, cache[receivable.customer_id]))
        pairs.sort(key=lambda pair: pair[0].due_date)
        return pairs

    def list_open(self, customer_id: Optional[int] = None) -> List[ReceivableView]:
        """Pending receivables, earliest due first, each aged as of now"""
        today = self.clock()
        return [
            ReceivableView(
                receivable=receivable,
                customer_name=customer.name,
                aging=aging.evaluate(receivable, customer, today),
            )
            for receivable, customer in self._open_with_customers(customer_id)
        ]

    def summary(self) -> PortfolioSummary:
        return aging.portfolio_summary(self.list_open())

    def collection_notices(self) -> List[CollectionNotice]:
        """Reminders due today: exactly N days before, on the due date, or overdue"""
        today = self.clock()
        notices = []
        for receivable, customer in self._open_with_customers():
            bucket = select_bucket(receivable.due_date, today, self.reminder_days_before)
            if bucket is None:
                continue
            notices.append(
                CollectionNotice(
                    receivable_id=receivable.id,
                    customer_id=customer.id,
                    recipient_phone=customer.whatsapp,
                    bucket=bucket,
                    text=build_message(receivable, customer, bucket, self.shop_name),
                )
            )
        return notices
