"""SQLAlchemy ORM models for the shop: customers, stock, sales, workshop, cash drawer and purchasing"""

import uuid
from sqlalchemy import Column, String, Integer, Numeric, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

Money = Numeric(12, 2)
Rate = Numeric(7, 3)


class CustomerRow(Base):
    """Registered customer with credit terms"""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    whatsapp = Column(Text, nullable=False)
    cpf = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    neighborhood = Column(Text, nullable=True)
    city = Column(Text, nullable=True)
    zip_code = Column(Text, nullable=True)
    credit_limit = Column(Money, nullable=False, default=0)
    fine_rate = Column(Rate, nullable=False, default=2)
    interest_rate = Column(Rate, nullable=False, default=1)


class ProductRow(Base):
    """Stock item"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(Text, nullable=False)
    sku = Column(Text, nullable=True)
    barcode = Column(Text, nullable=True)
    purchase_price = Column(Money, nullable=False, default=0)
    sale_price = Column(Money, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    unit = Column(Text, nullable=False, default="unit")
    category = Column(Text, nullable=True, index=True)


class SaleRow(Base):
    """Counter sale or service order; credit sales carry the receivable columns"""

    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sale_type = Column(Text, nullable=False)
    payment_method = Column(Text, nullable=False)
    total = Column(Money, nullable=False)
    labor_value = Column(Money, nullable=False, default=0)
    commission = Column(Money, nullable=False, default=0)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = Column(Text, nullable=False)
    mechanic_id = Column(Text, nullable=True, index=True)
    mechanic_name = Column(Text, nullable=True)
    moto_details = Column(Text, nullable=True)
    service_description = Column(Text, nullable=True)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=True, index=True)
    date = Column(DateTime, nullable=False)

    # Receivable facet
    payment_status = Column(Text, nullable=False)
    due_date = Column(Date, nullable=True)
    paid_date = Column(DateTime, nullable=True)

    items = relationship("SaleItemRow", back_populates="sale", cascade="all, delete-orphan")


class SaleItemRow(Base):
    """Line on a sale"""

    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(String(36), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    description = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Money, nullable=False)

    sale = relationship("SaleRow", back_populates="items")


def _new_id() -> str:
    return str(uuid.uuid4())


class MotorcycleRow(Base):
    """Customer vehicle"""

    __tablename__ = "motorcycles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    plate = Column(Text, nullable=False)
    model = Column(Text, nullable=False)
    current_km = Column(Integer, nullable=False, default=0)

    customer = relationship("CustomerRow")


class MechanicRow(Base):
    __tablename__ = "mechanics"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)


class WorkshopServiceRow(Base):
    """Fixed-service catalogue"""

    __tablename__ = "fixed_services"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    payout = Column(Money, nullable=False)


class CashSessionRow(Base):
    __tablename__ = "cash_sessions"

    id = Column(String(36), primary_key=True, default=_new_id)
    opened_at = Column(DateTime, nullable=False)
    closed_at = Column(DateTime, nullable=True)
    opening_balance = Column(Money, nullable=False)
    closing_balance = Column(Money, nullable=True)
    expected_balance = Column(Money, nullable=True)
    status = Column(Text, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    transactions = relationship("CashTransactionRow", back_populates="session", cascade="all, delete-orphan")


class CashTransactionRow(Base):
    """Supply or withdrawal during a cash session"""

    __tablename__ = "cash_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("cash_sessions.id"), nullable=False, index=True)
    type = Column(Text, nullable=False)
    amount = Column(Money, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(DateTime, nullable=False)

    session = relationship("CashSessionRow", back_populates="transactions")


class DistributorRow(Base):
    __tablename__ = "distributors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    contact_person = Column(Text, nullable=True)


class PurchaseOrderRow(Base):
    """Parts order to a distributor"""

    __tablename__ = "purchase_orders"

    id = Column(String(36), primary_key=True, default=_new_id)
    distributor_id = Column(Integer, ForeignKey("distributors.id"), nullable=False, index=True)
    date = Column(DateTime, nullable=False)
    status = Column(Text, nullable=False)

    distributor = relationship("DistributorRow")
    items = relationship("PurchaseOrderItemRow", back_populates="order", cascade="all, delete-orphan")


class PurchaseOrderItemRow(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    description = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("PurchaseOrderRow", back_populates="items")
