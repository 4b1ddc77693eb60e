"""Data access layer: maps ORM rows to domain dataclasses"""

from contextlib import contextmanager
from typing import Iterator, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fiado_ledger.infrastructure.database.models import (
    CashSessionRow,
    CashTransactionRow,
    CustomerRow,
    DistributorRow,
    MechanicRow,
    MotorcycleRow,
    ProductRow,
    PurchaseOrderItemRow,
    PurchaseOrderRow,
    SaleItemRow,
    SaleRow,
    WorkshopServiceRow,
)
from fiado_ledger.domain.exceptions import (
    CashSessionNotFoundError,
    CustomerNotFoundError,
    DomainException,
    MotorcycleNotFoundError,
    PersistenceError,
    ProductNotFoundError,
    PurchaseOrderNotFoundError,
    SaleNotFoundError,
)
from fiado_ledger.domain.models import (
    CashSession,
    CashSessionStatus,
    CashTransaction,
    CashTransactionType,
    Customer,
    Distributor,
    Mechanic,
    Motorcycle,
    PaymentMethod,
    PaymentStatus,
    Product,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    Sale,
    SaleItem,
    SaleType,
    WorkshopService,
)

CUSTOMER_FIELDS = (
    "name", "whatsapp", "cpf", "address", "neighborhood", "city", "zip_code",
    "credit_limit", "fine_rate", "interest_rate",
)
PRODUCT_FIELDS = (
    "description", "sku", "barcode", "purchase_price", "sale_price", "stock", "unit", "category",
)
SALE_UPDATABLE_FIELDS = ("payment_status", "paid_date", "due_date")
CASH_SESSION_UPDATABLE_FIELDS = ("status", "closed_at", "closing_balance", "expected_balance")


@contextmanager
def store_errors() -> Iterator[None]:
    """Surface driver failures as PersistenceError, never retried"""
    try:
        yield
    except SQLAlchemyError as e:
        raise PersistenceError(f"Row store failure: {e}") from e


def _enum_value(value):
    return getattr(value, "value", value)


def _customer_to_domain(row: CustomerRow) -> Customer:
    return Customer(
        id=row.id,
        name=row.name,
        whatsapp=row.whatsapp,
        credit_limit=row.credit_limit,
        fine_rate=row.fine_rate,
        interest_rate=row.interest_rate,
        cpf=row.cpf,
        address=row.address,
        neighborhood=row.neighborhood,
        city=row.city,
        zip_code=row.zip_code,
    )


def _product_to_domain(row: ProductRow) -> Product:
    return Product(
        id=row.id,
        description=row.description,
        sale_price=row.sale_price,
        purchase_price=row.purchase_price,
        stock=row.stock,
        sku=row.sku,
        barcode=row.barcode,
        unit=row.unit,
        category=row.category,
    )


def _sale_to_domain(row: SaleRow) -> Sale:
    return Sale(
        id=row.id,
        sale_type=SaleType(row.sale_type),
        payment_method=PaymentMethod(row.payment_method),
        total=row.total,
        date=row.date,
        payment_status=PaymentStatus(row.payment_status),
        customer_name=row.customer_name,
        items=[
            SaleItem(
                description=item.description,
                quantity=item.quantity,
                price=item.price,
                product_id=item.product_id,
            )
            for item in row.items
        ],
        labor_value=row.labor_value,
        commission=row.commission,
        customer_id=row.customer_id,
        mechanic_id=row.mechanic_id,
        mechanic_name=row.mechanic_name,
        moto_details=row.moto_details,
        service_description=row.service_description,
        motorcycle_id=row.motorcycle_id,
        due_date=row.due_date,
        paid_date=row.paid_date,
    )


def _motorcycle_to_domain(row: MotorcycleRow) -> Motorcycle:
    return Motorcycle(
        id=row.id,
        customer_id=row.customer_id,
        plate=row.plate,
        model=row.model,
        current_km=row.current_km,
        customer_name=row.customer.name if row.customer is not None else None,
    )


def _session_to_domain(row: CashSessionRow) -> CashSession:
    return CashSession(
        id=row.id,
        opened_at=row.opened_at,
        opening_balance=row.opening_balance,
        status=CashSessionStatus(row.status),
        notes=row.notes,
        closed_at=row.closed_at,
        closing_balance=row.closing_balance,
        expected_balance=row.expected_balance,
    )


def _transaction_to_domain(row: CashTransactionRow) -> CashTransaction:
    return CashTransaction(
        id=row.id,
        session_id=row.session_id,
        type=CashTransactionType(row.type),
        amount=row.amount,
        description=row.description,
        date=row.date,
    )


def _order_to_domain(row: PurchaseOrderRow) -> PurchaseOrder:
    return PurchaseOrder(
        id=row.id,
        distributor_id=row.distributor_id,
        distributor_name=row.distributor.name,
        date=row.date,
        status=PurchaseOrderStatus(row.status),
        items=[
            PurchaseOrderItem(description=item.description, quantity=item.quantity, product_id=item.product_id)
            for item in row.items
        ],
    )


class CustomerRepository:
    """Repository for customers"""

    def __init__(self, db: Session):
        self.db = db

    def create_customer(self, customer: Customer) -> Customer:
        """Persist a new customer and return it as stored"""
        with store_errors():
            row = CustomerRow(**{name: getattr(customer, name) for name in CUSTOMER_FIELDS})
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return _customer_to_domain(row)

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        with store_errors():
            row = self.db.get(CustomerRow, customer_id)
            return _customer_to_domain(row) if row else None

    def list_customers(self) -> List[Customer]:
        with store_errors():
            rows = self.db.query(CustomerRow).order_by(CustomerRow.name).all()
            return [_customer_to_domain(row) for row in rows]

    def update_customer(self, customer_id: int, **fields) -> Customer:
        """Partial update; unknown field names are rejected"""
        unknown = set(fields) - set(CUSTOMER_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update customer fields: {sorted(unknown)}")

        with store_errors():
            row = self.db.get(CustomerRow, customer_id)
            if row is None:
                raise CustomerNotFoundError(f"Customer {customer_id} not found")
            for name, value in fields.items():
                setattr(row, name, value)
            self.db.flush()
            self.db.refresh(row)
            return _customer_to_domain(row)


class ProductRepository:
    """Repository for stock items"""

    def __init__(self, db: Session):
        self.db = db

    def create_product(self, product: Product) -> Product:
        with store_errors():
            row = ProductRow(**{name: getattr(product, name) for name in PRODUCT_FIELDS})
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return _product_to_domain(row)

    def get_product(self, product_id: int) -> Optional[Product]:
        with store_errors():
            row = self.db.get(ProductRow, product_id)
            return _product_to_domain(row) if row else None

    def list_products(self, category: Optional[str] = None) -> List[Product]:
        with store_errors():
            query = self.db.query(ProductRow)
            if category is not None:
                query = query.filter(ProductRow.category == category)
            return [_product_to_domain(row) for row in query.order_by(ProductRow.description).all()]

    def update_product(self, product_id: int, **fields) -> Product:
        unknown = set(fields) - set(PRODUCT_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update product fields: {sorted(unknown)}")

        with store_errors():
            row = self.db.get(ProductRow, product_id)
            if row is None:
                raise ProductNotFoundError(f"Product {product_id} not found")
            for name, value in fields.items():
                setattr(row, name, value)
            self.db.flush()
            self.db.refresh(row)
            return _product_to_domain(row)

    def delete_product(self, product_id: int) -> None:
        """Delete a product; past sale and order lines keep their description but lose the link"""
        with store_errors():
            row = self.db.get(ProductRow, product_id)
            if row is None:
                raise ProductNotFoundError(f"Product {product_id} not found")
            for line_type in (SaleItemRow, PurchaseOrderItemRow):
                self.db.query(line_type).filter(line_type.product_id == product_id).update(
                    {line_type.product_id: None}, synchronize_session="fetch"
                )
            self.db.delete(row)
            self.db.flush()


class SaleRepository:
    """Repository for sales and their receivable facet"""

    def __init__(self, db: Session):
        self.db = db

    def _adjust_stock(self, items, direction: int) -> None:
        """direction -1 takes items out of stock, +1 puts them back"""
        for item in items:
            if item.product_id is None:
                continue
            product = self.db.get(ProductRow, item.product_id)
            if product is not None:
                product.stock = product.stock + direction * item.quantity

    @staticmethod
    def _item_rows(sale: Sale) -> List[SaleItemRow]:
        return [
            SaleItemRow(
                product_id=item.product_id,
                description=item.description,
                quantity=item.quantity,
                price=item.price,
            )
            for item in sale.items
        ]

    @staticmethod
    def _write_columns(row: SaleRow, sale: Sale) -> None:
        row.sale_type = sale.sale_type.value
        row.payment_method = sale.payment_method.value
        row.total = sale.total
        row.labor_value = sale.labor_value
        row.commission = sale.commission
        row.customer_id = sale.customer_id
        row.customer_name = sale.customer_name
        row.mechanic_id = sale.mechanic_id
        row.mechanic_name = sale.mechanic_name
        row.moto_details = sale.moto_details
        row.service_description = sale.service_description
        row.motorcycle_id = sale.motorcycle_id
        row.date = sale.date
        row.payment_status = sale.payment_status.value
        row.due_date = sale.due_date
        row.paid_date = sale.paid_date

    def insert_sale(self, sale: Sale) -> Sale:
        """
        Persist a sale with its items and take the sold quantities out of stock.

        Everything goes into the caller's transaction; nothing is committed here.
        """
        with store_errors():
            row = SaleRow()
            if sale.id is not None:
                row.id = sale.id
            self._write_columns(row, sale)
            row.items.extend(self._item_rows(sale))
            self._adjust_stock(sale.items, -1)

            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return _sale_to_domain(row)

    def replace_sale(self, sale: Sale) -> Sale:
        """Overwrite a sale and its items, putting the old items back in stock first"""
        with store_errors():
            row = self.db.get(SaleRow, sale.id)
            if row is None:
                raise SaleNotFoundError(f"Sale {sale.id} not found")

            self._adjust_stock(row.items, +1)
            row.items.clear()
            self._write_columns(row, sale)
            row.items.extend(self._item_rows(sale))
            self._adjust_stock(sale.items, -1)

            self.db.flush()
            self.db.refresh(row)
            return _sale_to_domain(row)

    def get_sale(self, sale_id: str) -> Optional[Sale]:
        with store_errors():
            row = self.db.get(SaleRow, sale_id)
            return _sale_to_domain(row) if row else None

    def list_sales(
        self,
        customer_id: Optional[int] = None,
        payment_method: Optional[PaymentMethod] = None,
        payment_status: Optional[PaymentStatus] = None,
        mechanic_id: Optional[str] = None,
    ) -> List[Sale]:
        """Most recent first"""
        with store_errors():
            query = self.db.query(SaleRow)
            if customer_id is not None:
                query = query.filter(SaleRow.customer_id == customer_id)
            if payment_method is not None:
                query = query.filter(SaleRow.payment_method == payment_method.value)
            if payment_status is not None:
                query = query.filter(SaleRow.payment_status == payment_status.value)
            if mechanic_id is not None:
                query = query.filter(SaleRow.mechanic_id == mechanic_id)
            return [_sale_to_domain(row) for row in query.order_by(SaleRow.date.desc()).all()]

    def update_sale(self, sale_id: str, **fields) -> Sale:
        """Partial update of the receivable columns"""
        unknown = set(fields) - set(SALE_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update sale fields: {sorted(unknown)}")

        with store_errors():
            row = self.db.get(SaleRow, sale_id)
            if row is None:
                raise SaleNotFoundError(f"Sale {sale_id} not found")
            for name, value in fields.items():
                setattr(row, name, _enum_value(value))
            self.db.flush()
            return _sale_to_domain(row)

    def delete_sale(self, sale_id: str) -> None:
        """Delete a sale; its items and receivable go with it"""
        with store_errors():
            row = self.db.get(SaleRow, sale_id)
            if row is None:
                raise SaleNotFoundError(f"Sale {sale_id} not found")
            self.db.delete(row)
            self.db.flush()


class WorkshopRepository:
    """Repository for mechanics, the fixed-service catalogue and customer vehicles"""

    def __init__(self, db: Session):
        self.db = db

    def create_mechanic(self, mechanic: Mechanic) -> Mechanic:
        with store_errors():
            row = MechanicRow(name=mechanic.name)
            if mechanic.id is not None:
                row.id = mechanic.id
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return Mechanic(id=row.id, name=row.name)

    def get_mechanic(self, mechanic_id: str) -> Optional[Mechanic]:
        with store_errors():
            row = self.db.get(MechanicRow, mechanic_id)
            return Mechanic(id=row.id, name=row.name) if row else None

    def list_mechanics(self) -> List[Mechanic]:
        with store_errors():
            rows = self.db.query(MechanicRow).order_by(MechanicRow.name).all()
            return [Mechanic(id=row.id, name=row.name) for row in rows]

    def create_workshop_service(self, service: WorkshopService) -> WorkshopService:
        with store_errors():
            row = WorkshopServiceRow(name=service.name, payout=service.payout)
            if service.id is not None:
                row.id = service.id
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return WorkshopService(id=row.id, name=row.name, payout=row.payout)

    def get_workshop_service(self, service_id: str) -> Optional[WorkshopService]:
        with store_errors():
            row = self.db.get(WorkshopServiceRow, service_id)
            return WorkshopService(id=row.id, name=row.name, payout=row.payout) if row else None

    def list_workshop_services(self) -> List[WorkshopService]:
        with store_errors():
            rows = self.db.query(WorkshopServiceRow).order_by(WorkshopServiceRow.name).all()
            return [WorkshopService(id=row.id, name=row.name, payout=row.payout) for row in rows]

    def create_motorcycle(self, motorcycle: Motorcycle) -> Motorcycle:
        with store_errors():
            if self.db.get(CustomerRow, motorcycle.customer_id) is None:
                raise CustomerNotFoundError(f"Customer {motorcycle.customer_id} not found")
            row = MotorcycleRow(
                customer_id=motorcycle.customer_id,
                plate=motorcycle.plate,
                model=motorcycle.model,
                current_km=motorcycle.current_km,
            )
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return _motorcycle_to_domain(row)

    def get_motorcycle(self, motorcycle_id: int) -> Optional[Motorcycle]:
        with store_errors():
            row = self.db.get(MotorcycleRow, motorcycle_id)
            return _motorcycle_to_domain(row) if row else None

    def list_motorcycles(self, customer_id: Optional[int] = None) -> List[Motorcycle]:
        with store_errors():
            query = self.db.query(MotorcycleRow)
            if customer_id is not None:
                query = query.filter(MotorcycleRow.customer_id == customer_id)
            return [_motorcycle_to_domain(row) for row in query.order_by(MotorcycleRow.plate).all()]

    def update_motorcycle_km(self, motorcycle_id: int, km: int) -> Motorcycle:
        with store_errors():
            row = self.db.get(MotorcycleRow, motorcycle_id)
            if row is None:
                raise MotorcycleNotFoundError(f"Motorcycle {motorcycle_id} not found")
            row.current_km = km
            self.db.flush()
            self.db.refresh(row)
            return _motorcycle_to_domain(row)


class CashRepository:
    """Repository for cash drawer sessions and their transactions"""

    def __init__(self, db: Session):
        self.db = db

    def get_open_session(self) -> Optional[CashSession]:
        with store_errors():
            row = (
                self.db.query(CashSessionRow)
                .filter(CashSessionRow.status == CashSessionStatus.OPEN.value)
                .order_by(CashSessionRow.opened_at.desc())
                .first()
            )
            return _session_to_domain(row) if row else None

    def get_session(self, session_id: str) -> Optional[CashSession]:
        with store_errors():
            row = self.db.get(CashSessionRow, session_id)
            return _session_to_domain(row) if row else None

    def list_sessions(self) -> List[CashSession]:
        """Most recent first"""
        with store_errors():
            rows = self.db.query(CashSessionRow).order_by(CashSessionRow.opened_at.desc()).all()
            return [_session_to_domain(row) for row in rows]

    def insert_session(self, session: CashSession) -> CashSession:
        with store_errors():
            row = CashSessionRow(
                opened_at=session.opened_at,
                opening_balance=session.opening_balance,
                status=session.status.value,
                notes=session.notes,
            )
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return _session_to_domain(row)

    def update_session(self, session_id: str, **fields) -> CashSession:
        unknown = set(fields) - set(CASH_SESSION_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update cash session fields: {sorted(unknown)}")

        with store_errors():
            row = self.db.get(CashSessionRow, session_id)
            if row is None:
                raise CashSessionNotFoundError(f"Cash session {session_id} not found")
            for name, value in fields.items():
                setattr(row, name, _enum_value(value))
            self.db.flush()
            self.db.refresh(row)
            return _session_to_domain(row)

    def insert_transaction(self, transaction: CashTransaction) -> CashTransaction:
        with store_errors():
            row = CashTransactionRow(
                session_id=transaction.session_id,
                type=transaction.type.value,
                amount=transaction.amount,
                description=transaction.description,
                date=transaction.date,
            )
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return _transaction_to_domain(row)

    def list_transactions(self, session_id: str) -> List[CashTransaction]:
        with store_errors():
            rows = (
                self.db.query(CashTransactionRow)
                .filter(CashTransactionRow.session_id == session_id)
                .order_by(CashTransactionRow.date)
                .all()
            )
            return [_transaction_to_domain(row) for row in rows]


class PurchasingRepository:
    """Repository for distributors and parts orders"""

    def __init__(self, db: Session):
        self.db = db

    def create_distributor(self, distributor: Distributor) -> Distributor:
        with store_errors():
            row = DistributorRow(
                name=distributor.name,
                phone=distributor.phone,
                contact_person=distributor.contact_person,
            )
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return Distributor(id=row.id, name=row.name, phone=row.phone, contact_person=row.contact_person)

    def get_distributor(self, distributor_id: int) -> Optional[Distributor]:
        with store_errors():
            row = self.db.get(DistributorRow, distributor_id)
            if row is None:
                return None
            return Distributor(id=row.id, name=row.name, phone=row.phone, contact_person=row.contact_person)

    def list_distributors(self) -> List[Distributor]:
        with store_errors():
            rows = self.db.query(DistributorRow).order_by(DistributorRow.name).all()
            return [
                Distributor(id=row.id, name=row.name, phone=row.phone, contact_person=row.contact_person)
                for row in rows
            ]

    def create_order(self, order: PurchaseOrder) -> PurchaseOrder:
        with store_errors():
            row = PurchaseOrderRow(
                distributor_id=order.distributor_id,
                date=order.date,
                status=order.status.value,
            )
            row.items.extend(
                PurchaseOrderItemRow(
                    product_id=item.product_id,
                    description=item.description,
                    quantity=item.quantity,
                )
                for item in order.items
            )
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return _order_to_domain(row)

    def get_order(self, order_id: str) -> Optional[PurchaseOrder]:
        with store_errors():
            row = self.db.get(PurchaseOrderRow, order_id)
            return _order_to_domain(row) if row else None

    def list_orders(self, status: Optional[PurchaseOrderStatus] = None) -> List[PurchaseOrder]:
        """Most recent first"""
        with store_errors():
            query = self.db.query(PurchaseOrderRow)
            if status is not None:
                query = query.filter(PurchaseOrderRow.status == status.value)
            return [_order_to_domain(row) for row in query.order_by(PurchaseOrderRow.date.desc()).all()]

    def update_order_status(self, order_id: str, status: PurchaseOrderStatus) -> PurchaseOrder:
        with store_errors():
            row = self.db.get(PurchaseOrderRow, order_id)
            if row is None:
                raise PurchaseOrderNotFoundError(f"Purchase order {order_id} not found")
            row.status = status.value
            self.db.flush()
            self.db.refresh(row)
            return _order_to_domain(row)

    def delete_order(self, order_id: str) -> None:
        with store_errors():
            row = self.db.get(PurchaseOrderRow, order_id)
            if row is None:
                raise PurchaseOrderNotFoundError(f"Purchase order {order_id} not found")
            self.db.delete(row)
            self.db.flush()


def commit(db: Session) -> None:
    """Commit the request's unit of work"""
    with store_errors():
        db.commit()


@contextmanager
def transaction(db: Session) -> Iterator[None]:
    """
    One request, one commit. Any domain error rolls the session back before
    it propagates, so nothing half-written survives a failed request.
    """
    try:
        yield
        commit(db)
    except DomainException:
        db.rollback()
        raise
