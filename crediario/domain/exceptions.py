"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidScheduleInput(DomainException):
    """Installment count, financed amount or rate cannot produce a schedule"""

    pass


class CreditLimitExceeded(DomainException):
    """Requested amount is above the customer's available credit"""

    def __init__(self, requested_cents: int, available_cents: int):
        self.requested_cents = requested_cents
        self.available_cents = available_cents
        super().__init__(
            f"Requested {requested_cents} cents exceeds available credit of {available_cents} cents"
        )


class InvalidCreditLimit(DomainException):
    """Credit limit is negative or below the customer's current debt"""

    pass


class InvalidPaymentAmount(DomainException):
    """Payment amount (or its fee/discount) is not a positive value"""

    pass


class PaymentExceedsBalance(DomainException):
    """Payment is larger than the open balance of the installment"""

    def __init__(self, amount_cents: int, ceiling_cents: int):
        self.amount_cents = amount_cents
        self.ceiling_cents = ceiling_cents
        super().__init__(
            f"Payment of {amount_cents} cents exceeds open balance of {ceiling_cents} cents"
        )


class InstallmentNotPayable(DomainException):
    """Installment is cancelled and no longer accepts payments"""

    pass


class InactiveCustomer(DomainException):
    """Customer was deactivated and cannot take new sales"""

    pass


class SaleNotCancellable(DomainException):
    """Sale is already cancelled or fully paid"""

    pass


class DuplicateCustomer(DomainException):
    """A customer with the same CPF already exists in the tenant"""

    pass


class PermissionDenied(DomainException):
    """Acting user's role is below the one required for the operation"""

    pass


class NotFoundError(DomainException):
    """Requested aggregate does not exist in the caller's tenant"""

    pass


class CustomerNotFound(NotFoundError):
    pass


class SaleNotFound(NotFoundError):
    pass


class InstallmentNotFound(NotFoundError):
    pass


class ConcurrentModificationError(DomainException):
    """Row changed between read and write; the caller should try again"""

    pass


class DocumentRenderError(DomainException):
    """Document rendering service returned an error or is unavailable"""

    pass
