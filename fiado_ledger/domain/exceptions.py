"""Domain-specific exceptions"""

from decimal import Decimal


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """A required field is missing or malformed; nothing was written"""

    pass


class ConflictError(DomainException):
    """The request clashes with the current state of a record"""

    pass


class CreditLimitExceeded(ConflictError):
    """Credit sale would push the customer's open principal past their limit"""

    def __init__(self, limit: Decimal, current_debt: Decimal, proposed_amount: Decimal):
        self.limit = limit
        self.current_debt = current_debt
        self.proposed_amount = proposed_amount
        super().__init__(
            f"Credit limit exceeded: limit {limit}, current debt {current_debt}, "
            f"this sale {proposed_amount}"
        )


class PersistenceError(DomainException):
    """Row store failed. Never retried automatically."""

    pass


class NotFoundError(DomainException):
    """Referenced record does not exist"""

    pass


class CustomerNotFoundError(NotFoundError):
    pass


class ProductNotFoundError(NotFoundError):
    pass


class SaleNotFoundError(NotFoundError):
    pass


class ReceivableNotFoundError(SaleNotFoundError):
    """Referenced sale does not exist or was not sold on credit"""

    pass


class MechanicNotFoundError(NotFoundError):
    pass


class WorkshopServiceNotFoundError(NotFoundError):
    pass


class MotorcycleNotFoundError(NotFoundError):
    pass


class CashSessionNotFoundError(NotFoundError):
    pass


class DistributorNotFoundError(NotFoundError):
    pass


class PurchaseOrderNotFoundError(NotFoundError):
    pass
