"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter
from fiado_ledger.config import settings


class CustomJsonFormatter(JsonFormatter):
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


def log_sale(
    request_id: str,
    sale_id: str,
    sale_type: str,
    payment_method: str,
    total: Decimal,
    duration_ms: float,
) -> None:
    """Log structured sale outcome for analysis"""
    logging.info(
        "Sale recorded",
        extra={
            "request_id": request_id,
            "sale_id": sale_id,
            "step": "sale_recorded",
            "sale_type": sale_type,
            "payment_method": payment_method,
            "total": str(total),
            "duration_ms": duration_ms,
        },
    )


def log_credit_rejection(
    request_id: str,
    customer_id: int | None,
    limit: Decimal,
    current_debt: Decimal,
    proposed_amount: Decimal,
) -> None:
    """Log a credit sale refused by the limit guard"""
    logging.warning(
        "Credit limit exceeded",
        extra={
            "request_id": request_id,
            "customer_id": customer_id,
            "step": "credit_rejected",
            "limit": str(limit),
            "current_debt": str(current_debt),
            "proposed_amount": str(proposed_amount),
        },
    )


def log_settlement(request_id: str, receivable_id: str, already_paid: bool) -> None:
    """Log a receivable settlement"""
    logging.info(
        "Receivable settled",
        extra={
            "request_id": request_id,
            "receivable_id": receivable_id,
            "step": "receivable_settled",
            "already_paid": already_paid,
        },
    )
