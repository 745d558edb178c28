"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from crediario.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_sale_created(
    request_id: str,
    tenant_id: str,
    user_id: str,
    sale_number: str,
    financed_cents: int,
    installments_count: int,
) -> None:
    """Log structured sale outcome for analysis"""
    logging.info(
        "Sale created",
        extra={
            "request_id": request_id,
            "tenant_id": tenant_id,
            "user_id": user_id,
            "step": "sale_created",
            "sale_number": sale_number,
            "financed_cents": financed_cents,
            "installments_count": installments_count,
        },
    )


def log_credit_rejected(
    request_id: str,
    tenant_id: str,
    user_id: str,
    requested_cents: int,
    available_cents: int,
) -> None:
    logging.warning(
        "Credit limit exceeded",
        extra={
            "request_id": request_id,
            "tenant_id": tenant_id,
            "user_id": user_id,
            "step": "credit_check",
            "requested_cents": requested_cents,
            "available_cents": available_cents,
        },
    )


def log_payment_recorded(
    request_id: str,
    tenant_id: str,
    user_id: str,
    installment_id: str,
    amount_cents: int,
    settled: bool,
) -> None:
    """Log structured payment outcome"""
    logging.info(
        "Payment recorded",
        extra={
            "request_id": request_id,
            "tenant_id": tenant_id,
            "user_id": user_id,
            "step": "payment_recorded",
            "installment_id": installment_id,
            "amount_cents": amount_cents,
            "installment_outcome": "settled" if settled else "partial",
        },
    )
