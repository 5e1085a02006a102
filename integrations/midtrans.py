"""
Midtrans payment gateway.

Snap creates the hosted checkout (token + redirect_url), Core API reads the
transaction status back. Both clients come straight from midtransclient.
"""

import hashlib
import logging
import uuid
from typing import Optional

import midtransclient
from midtransclient.error_midtrans import MidtransAPIError

from responses import ExternalServiceError
from settings import MIDTRANS_CLIENT_KEY, MIDTRANS_IS_PRODUCTION, MIDTRANS_SERVER_KEY

logger = logging.getLogger(__name__)

snap = midtransclient.Snap(
    is_production=MIDTRANS_IS_PRODUCTION,
    server_key=MIDTRANS_SERVER_KEY,
    client_key=MIDTRANS_CLIENT_KEY,
)

core_api = midtransclient.CoreApi(
    is_production=MIDTRANS_IS_PRODUCTION,
    server_key=MIDTRANS_SERVER_KEY,
    client_key=MIDTRANS_CLIENT_KEY,
)

FAILED_STATUSES = {"cancel", "deny", "failure"}
REFUNDED_STATUSES = {"refund", "partial_refund"}


class TransactionNotFound(Exception):
    """Midtrans has no transaction for the order id (yet)."""


def new_order_id(prefix: str = "ORDER") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10].upper()}"


def create_transaction(order_id: str, amount: float, customer: Optional[dict] = None, items: Optional[list] = None) -> dict:
    """Create a Snap transaction and return Midtrans' response (token, redirect_url)."""
    parameter = {
        "transaction_details": {"order_id": order_id, "gross_amount": int(round(amount))},
    }
    if customer:
        parameter["customer_details"] = customer
    if items:
        parameter["item_details"] = [
            {
                "id": str(item["id"]),
                "price": int(round(item["price"])),
                "quantity": int(item.get("quantity", 1)),
                "name": str(item["name"])[:50],
            }
            for item in items
        ]
    try:
        transaction = snap.create_transaction(parameter)
    except MidtransAPIError as e:
        logger.error("Snap transaction for %s failed: %s", order_id, e)
        raise ExternalServiceError("midtrans", f"Failed to create transaction: {e}")
    if not transaction.get("token"):
        logger.warning("Snap response for %s has no token", order_id)
    logger.info("Snap transaction created for %s", order_id)
    return transaction


def get_transaction_status(order_id: str) -> dict:
    try:
        return core_api.transactions.status(order_id)
    except MidtransAPIError as e:
        message = str(getattr(e, "message", e))
        if e.http_status_code == 404:
            raise TransactionNotFound(order_id)
        logger.error("Status check for %s failed: %s", order_id, message)
        raise ExternalServiceError("midtrans", f"Failed to get transaction status: {message}")


def map_status(transaction_status: Optional[str], fraud_status: Optional[str] = None, check_fraud: bool = False) -> str:
    """Translate a Midtrans transaction_status into our payment status.

    Notifications pass check_fraud=True: a captured card payment only counts
    once fraud_status is "accept".
    """
    if transaction_status == "capture":
        if check_fraud and fraud_status != "accept":
            return "pending"
        return "success"
    if transaction_status == "settlement":
        return "success"
    if transaction_status in FAILED_STATUSES:
        return "failed"
    if transaction_status == "expire":
        return "expired"
    if transaction_status in REFUNDED_STATUSES:
        return "refunded"
    return "pending"


def signature_for(order_id: str, status_code: str, gross_amount: str, server_key: str = None) -> str:
    key = MIDTRANS_SERVER_KEY if server_key is None else server_key
    raw = f"{order_id}{status_code}{gross_amount}{key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_signature(notification: dict) -> bool:
    expected = signature_for(
        str(notification.get("order_id", "")),
        str(notification.get("status_code", "")),
        str(notification.get("gross_amount", "")),
    )
    return notification.get("signature_key") == expected


def customer_details(user: dict) -> dict:
    details = {"first_name": user.get("full_name", ""), "email": user.get("email", "")}
    if user.get("phone"):
        details["phone"] = user["phone"]
    return details
