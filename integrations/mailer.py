import logging

import resend

from settings import MAIL_FROM, RESEND_API_KEY

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def format_idr(amount) -> str:
    """1500000 -> 'Rp 1.500.000'"""
    return "Rp " + f"{int(round(amount)):,}".replace(",", ".")


def payment_receipt_html(name: str, amount, order_id: str) -> str:
    return (
        f"<h2>Payment received</h2>"
        f"<p>Hi {name or 'there'},</p>"
        f"<p>We have received your payment of <strong>{format_idr(amount)}</strong>.</p>"
        f"<p>Order ID: <code>{order_id}</code></p>"
        f"<p>Thank you for using Worklytic.</p>"
    )


def send_email(to: str, subject: str, html: str):
    if not RESEND_API_KEY:
        logger.warning("RESEND_API_KEY not set, skipping email to %s", to)
        return None
    res = resend.Emails.send({"from": MAIL_FROM, "to": [to], "subject": subject, "html": html})
    logger.info("Sent '%s' to %s", subject, to)
    return res


def send_payment_receipt(email: str, name: str, amount, order_id: str):
    return send_email(email, f"Payment receipt {order_id}", payment_receipt_html(name, amount, order_id))
