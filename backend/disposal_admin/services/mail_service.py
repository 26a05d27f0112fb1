# Overview: Outbound email collaborator; SMTP delivery or an in-app outbox when sending is suppressed.

from __future__ import annotations

import smtplib
from email.message import EmailMessage

from flask import current_app

from ..errors import UpstreamFailure, ValidationError
from ..time_utils import to_utc_z, utcnow
from .totals import display_amount


def outbox() -> list[dict]:
    """Messages recorded while MAIL_SUPPRESS_SEND is on (per app instance)."""
    return current_app.extensions.setdefault("mail_outbox", [])


def _build_message(to: str, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = current_app.config["MAIL_DEFAULT_SENDER"]
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    return message


def send_email(to: str, subject: str, body: str) -> dict:
    """
    Deliver one plain-text message.

    Raises:
        ValidationError: missing recipient
        UpstreamFailure: the SMTP server refused or could not be reached
    """
    to = (to or "").strip()
    if not to or "@" not in to:
        raise ValidationError("A valid recipient email is required", details={"field": "email"})

    config = current_app.config
    record = {"to": to, "subject": subject, "body": body, "sent_at": to_utc_z(utcnow())}

    if config.get("MAIL_SUPPRESS_SEND", True):
        outbox().append(record)
        current_app.logger.warning("Mail sending suppressed; queued '%s' to %s in outbox", subject, to)
        return record

    message = _build_message(to, subject, body)
    try:
        with smtplib.SMTP(config["MAIL_SERVER"], config["MAIL_PORT"], timeout=30) as smtp:
            if config.get("MAIL_USE_TLS"):
                smtp.starttls()
            if config.get("MAIL_USERNAME"):
                smtp.login(config["MAIL_USERNAME"], config.get("MAIL_PASSWORD") or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        current_app.logger.warning("Mail delivery to %s failed: %s", to, exc)
        raise UpstreamFailure("Email could not be sent", details={"to": to}) from exc

    current_app.logger.info("Sent '%s' to %s", subject, to)
    return record


def render_invoice_email(invoice, message: str | None = None) -> tuple[str, str]:
    subject = f"Invoice {invoice.invoice_number}"
    lines = [
        f"Dear {invoice.customer_name},",
        "",
        f"Please find invoice {invoice.invoice_number} below.",
        "",
        f"Total: ${display_amount(invoice.total_amount)}",
        f"Balance due: ${display_amount(invoice.balance_due)}",
    ]
    if invoice.due_date:
        lines.append(f"Due date: {invoice.due_date.isoformat()}")
    if message:
        lines.extend(["", message.strip()])
    lines.extend(["", "Thank you for your business."])
    return subject, "\n".join(lines)


def render_estimate_email(estimate, message: str | None = None) -> tuple[str, str]:
    subject = f"Estimate {estimate.estimate_number}"
    lines = [
        f"Dear {estimate.customer_name},",
        "",
        f"Please find estimate {estimate.estimate_number} below.",
        "",
        f"Estimated total: ${display_amount(estimate.total_amount)}",
    ]
    if estimate.valid_until_date:
        lines.append(f"Valid until: {estimate.valid_until_date.isoformat()}")
    if message:
        lines.extend(["", message.strip()])
    return subject, "\n".join(lines)
