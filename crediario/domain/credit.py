"""Credit exposure rules - keeps a customer's debt within the credit limit"""

from crediario.domain.models import Customer
from crediario.domain.exceptions import CreditLimitExceeded, InvalidCreditLimit


def available_credit(customer: Customer) -> int:
    """Credit limit minus current debt, in cents"""
    return customer.credit_limit_cents - customer.current_debt_cents


def check_available_credit(customer: Customer, requested_cents: int) -> None:
    """
    Fail when the requested amount does not fit in the available credit.

    The boundary passes: requesting exactly the available credit is allowed.

    Raises:
        CreditLimitExceeded: requested_cents > credit_limit - current_debt
    """
    available = available_credit(customer)
    if requested_cents > available:
        raise CreditLimitExceeded(requested_cents, available)


def apply_debt_delta(customer: Customer, delta_cents: int) -> int:
    """
    New debt after a signed change, floored at zero.

    Increases are checked against the available credit before they are
    applied. Decreases may overshoot (interest is repaid along with principal)
    and are clamped so debt never goes negative.
    """
    if delta_cents > 0:
        check_available_credit(customer, delta_cents)
    return max(0, customer.current_debt_cents + delta_cents)


def validate_credit_limit(customer: Customer, new_limit_cents: int) -> None:
    """A new limit may not be negative nor fall below the debt already taken"""
    if new_limit_cents < 0:
        raise InvalidCreditLimit("Credit limit cannot be negative")
    if new_limit_cents < customer.current_debt_cents:
        raise InvalidCreditLimit(
            f"Credit limit of {new_limit_cents} cents is below current debt of "
            f"{customer.current_debt_cents} cents"
        )
