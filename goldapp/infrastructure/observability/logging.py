"""Structured JSON logging for order and payment lifecycle events"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from goldapp.config import settings


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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_order_event(
    step: str,
    merchant_transaction_id: str,
    side: str,
    outcome: str,
    simulated: bool = False,
    request_id: Optional[str] = None,
    **fields: Any,
) -> None:
    """Log one step of an order's lifecycle (submitted, paid, verified, ...)"""
    logging.getLogger("goldapp.orders").info(
        f"Order {step}",
        extra={
            "request_id": request_id,
            "merchant_transaction_id": merchant_transaction_id,
            "step": step,
            "side": side,
            "outcome": outcome,
            "simulated": simulated,
            **fields,
        },
    )
