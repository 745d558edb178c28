"""Translation of domain and persistence failures into HTTP errors"""

import logging
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from crediario.domain.exceptions import (
    ConcurrentModificationError,
    CreditLimitExceeded,
    DocumentRenderError,
    DomainException,
    DuplicateCustomer,
    InactiveCustomer,
    InstallmentNotPayable,
    InvalidCreditLimit,
    InvalidPaymentAmount,
    InvalidScheduleInput,
    NotFoundError,
    PaymentExceedsBalance,
    PermissionDenied,
    SaleNotCancellable,
)

# Caller input/state errors are shown to the user as validation messages
STATUS_BY_ERROR = [
    (NotFoundError, 404),
    (PermissionDenied, 403),
    (DuplicateCustomer, 409),
    (SaleNotCancellable, 409),
    (ConcurrentModificationError, 409),
    (InvalidScheduleInput, 422),
    (CreditLimitExceeded, 422),
    (InvalidPaymentAmount, 422),
    (PaymentExceedsBalance, 422),
    (InstallmentNotPayable, 422),
    (InvalidCreditLimit, 422),
    (InactiveCustomer, 422),
    (DocumentRenderError, 503),
]


def to_http_exception(error: Exception, request_id: str = "unknown") -> HTTPException:
    """
    Map an error raised by an operation to the response the client sees.

    Persistence and document-service failures are transient: the user is
    asked to try again, nothing is retried here.
    """
    if isinstance(error, DomainException):
        for error_type, status_code in STATUS_BY_ERROR:
            if isinstance(error, error_type):
                if status_code >= 500:
                    logging.error(f"Dependency failure: {error}", extra={"request_id": request_id})
                return HTTPException(status_code=status_code, detail=str(error))

    if isinstance(error, SQLAlchemyError):
        logging.error(f"Database error: {error}", extra={"request_id": request_id})
        return HTTPException(status_code=503, detail="Database unavailable, try again")

    logging.error(f"Unexpected error: {error}", extra={"request_id": request_id})
    return HTTPException(status_code=500, detail="Internal server error")
