import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from database import (
    create_document,
    delete_document,
    get_document,
    get_document_by_id,
    get_documents,
    get_joined_documents,
    parse_object_id,
    serialize_doc,
    serialize_docs,
    to_object_ids,
    update_document,
)
from integrations import mailer, midtrans
from responses import result
from schemas import PAYMENT, PROJECT, USER, CheckStatus, Payment, PaymentUpdate, PrePayment
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])

PAYMENT_REFS = ["project_id", "user_id"]
JOINS = [(PROJECT, "project_id", "project"), (USER, "user_id", "user")]


def send_receipt(payment: dict) -> None:
    payer = get_document(USER, {"_id": payment.get("user_id")})
    if not payer or not payer.get("email"):
        logger.warning("No email address for payment %s", payment.get("order_id"))
        return
    try:
        mailer.send_payment_receipt(payer["email"], payer.get("full_name", ""), payment["amount"], payment["order_id"])
    except Exception:
        logger.exception("Receipt email for %s failed", payment.get("order_id"))


def apply_transaction_status(payment: dict, transaction: dict, check_fraud: bool = False) -> dict:
    """Store the mapped Midtrans status and raw response on the payment."""
    status = midtrans.map_status(transaction.get("transaction_status"), transaction.get("fraud_status"), check_fraud)
    metadata = dict(payment.get("metadata") or {})
    metadata["midtrans_response"] = transaction
    values = {"status": status, "metadata": metadata}
    if transaction.get("payment_type"):
        values["payment_method"] = transaction["payment_type"]
    if transaction.get("transaction_id"):
        values["transaction_id"] = transaction["transaction_id"]

    became_paid = status == "success" and payment.get("status") != "success"
    if became_paid:
        values["paid_at"] = datetime.now(timezone.utc)

    updated = update_document(PAYMENT, {"_id": payment["_id"]}, values)
    logger.info("Payment %s: %s -> %s", payment["order_id"], payment.get("status"), status)
    if became_paid:
        send_receipt(updated)
    return updated


def _payment_by_order_or_404(order_id: str) -> dict:
    payment = get_document(PAYMENT, {"order_id": order_id})
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.get("")
def list_payments():
    payments = get_joined_documents(PAYMENT, {}, JOINS, sort={"created_at": -1})
    return result(serialize_docs(payments))


@router.post("", status_code=201)
def create_payment(body: Payment):
    doc = create_document(PAYMENT, to_object_ids(body.model_dump(), PAYMENT_REFS))
    return result(serialize_doc(doc), "Payment created successfully")


@router.get("/detail/{order_id}")
def payment_detail(order_id: str):
    return result(serialize_doc(_payment_by_order_or_404(order_id)))


@router.get("/history/{user_id}")
def payment_history(user_id: str):
    payments = get_documents(PAYMENT, {"user_id": parse_object_id(user_id, "user_id")}, sort=[("created_at", -1)])
    return result(serialize_docs(payments))


@router.post("/pre-payment", status_code=201)
def pre_payment(body: PrePayment, user: dict = Depends(get_current_user)):
    payer = get_document_by_id(USER, body.user_id) if body.user_id else user
    if not payer:
        raise HTTPException(status_code=404, detail="User not found")

    order_id = midtrans.new_order_id("PRE-ORDER")
    transaction = midtrans.create_transaction(
        order_id,
        body.amount,
        customer=midtrans.customer_details(payer),
        items=[{"id": order_id, "price": body.amount, "quantity": 1, "name": body.title}],
    )
    payment = Payment(
        user_id=str(payer["_id"]),
        amount=body.amount,
        order_id=order_id,
        snap_token=transaction.get("token", ""),
        payment_url=transaction.get("redirect_url", ""),
        metadata={"title": body.title, "type": "pre-payment"},
    )
    create_document(PAYMENT, to_object_ids(payment.model_dump(), PAYMENT_REFS))
    logger.info("Pre-payment %s created for %s", order_id, payer["email"])
    return result(
        {
            "order_id": order_id,
            "redirect_url": transaction.get("redirect_url"),
            "payment_url": transaction.get("redirect_url"),
            "token": transaction.get("token"),
        },
        "Pre-payment created successfully",
    )


@router.post("/check-status")
def check_status(body: Optional[CheckStatus] = None):
    order_id = body.order_id if body else None
    if not order_id:
        raise HTTPException(status_code=400, detail="order_id is required")
    payment = _payment_by_order_or_404(order_id)

    try:
        transaction = midtrans.get_transaction_status(order_id)
    except midtrans.TransactionNotFound:
        logger.info("Midtrans has no transaction for %s yet", order_id)
        return result(serialize_doc(payment), "Payment is still being processed")

    updated = apply_transaction_status(payment, transaction)
    return result(serialize_doc(updated), f"Payment status: {updated['status']}")


@router.post("/callback")
@router.post("/notification")
def midtrans_notification(notification: Dict[str, Any] = Body(...)):
    order_id = notification.get("order_id")
    if not order_id:
        raise HTTPException(status_code=400, detail="order_id is required")
    if "signature_key" in notification and not midtrans.verify_signature(notification):
        logger.warning("Rejected notification for %s: bad signature", order_id)
        raise HTTPException(status_code=403, detail="Invalid signature")
    payment = _payment_by_order_or_404(order_id)

    try:
        transaction = midtrans.get_transaction_status(order_id)
    except midtrans.TransactionNotFound:
        # only the status Core API reports is trusted
        logger.warning("Notification for %s but Midtrans has no such transaction", order_id)
        return result(serialize_doc(payment), "Payment is still being processed")

    updated = apply_transaction_status(payment, transaction, check_fraud=True)
    return result(serialize_doc(updated), "Notification processed")


@router.get("/{payment_id}")
def get_payment(payment_id: str):
    docs = get_joined_documents(PAYMENT, {"_id": parse_object_id(payment_id)}, JOINS)
    if not docs:
        raise HTTPException(status_code=404, detail="Payment not found")
    return result(serialize_doc(docs[0]))


@router.put("/{payment_id}")
def update_payment(payment_id: str, body: PaymentUpdate):
    payment = update_document(PAYMENT, {"_id": parse_object_id(payment_id)}, body.model_dump(exclude_unset=True))
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return result(serialize_doc(payment), "Payment updated successfully")


@router.delete("/{payment_id}")
def delete_payment(payment_id: str):
    payment = delete_document(PAYMENT, {"_id": parse_object_id(payment_id)})
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return result(serialize_doc(payment), "Payment deleted successfully")
