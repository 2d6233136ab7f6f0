from __future__ import annotations

import html as html_lib
import logging
import os
import subprocess
from typing import Any, Dict, Optional

from python_http_client.exceptions import HTTPError as SendGridHTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

logger = logging.getLogger(__name__)

DEFAULT_FROM = "Discover Group <noreply@discovergroup.com>"


def _smtp_config() -> dict:
    user = (os.getenv("SMTP_USER") or "").strip()
    return {
        "url": (os.getenv("SMTP_URL") or "").strip(),
        "user": user,
        "password": os.getenv("SMTP_PASS") or "",
        "from": (os.getenv("SMTP_FROM") or "").strip() or user,
    }


def provider() -> str:
    if (os.getenv("SENDGRID_API_KEY") or "").strip():
        return "sendgrid"
    cfg = _smtp_config()
    if cfg["url"] and cfg["user"] and cfg["password"]:
        return "smtp"
    return "none"


def _send_sendgrid(to_email: str, subject: str, body: str, html: Optional[str]) -> tuple[bool, str]:
    from_email = (os.getenv("SENDGRID_FROM_EMAIL") or "").strip() or DEFAULT_FROM
    message = Mail(
        from_email=from_email,
        to_emails=to_email,
        subject=subject,
        plain_text_content=body,
        html_content=html or None,
    )
    try:
        response = SendGridAPIClient(os.getenv("SENDGRID_API_KEY")).send(message)
    except SendGridHTTPError as exc:
        return False, f"SendGrid error ({exc.status_code}): {exc.body}"
    if 200 <= int(response.status_code) < 300:
        return True, "sent"
    return False, f"SendGrid returned {response.status_code}"


def _send_smtp(to_email: str, subject: str, body: str, html: Optional[str]) -> tuple[bool, str]:
    cfg = _smtp_config()
    cmd = [
        "curl",
        "--url",
        cfg["url"],
        "--ssl-reqd",
        "--user",
        f"{cfg['user']}:{cfg['password']}",
        "--mail-from",
        cfg["from"],
        "--mail-rcpt",
        to_email,
        "-T",
        "-",
    ]

    headers = f"From: {cfg['from']}\nTo: {to_email}\nSubject: {subject}\n"
    if html:
        headers += "MIME-Version: 1.0\nContent-Type: text/html; charset=utf-8\n"
    msg = f"{headers}\n{html or body}\n"

    try:
        res = subprocess.run(
            cmd,
            input=msg.encode("utf-8"),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=25,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        return False, str(exc)
    if res.returncode == 0:
        return True, "sent"
    err = (res.stderr or res.stdout or b"").decode("utf-8", errors="ignore").strip()
    return False, err or f"curl failed (code {res.returncode})"


def send_email(to_email: str, subject: str, body: str, html: Optional[str] = None) -> tuple[bool, str]:
    """Send an e-mail through SendGrid, or SMTP (curl) when SendGrid is not set up."""
    to_email = (to_email or "").strip()
    if not to_email:
        return False, "Missing recipient email"

    p = provider()
    if p == "sendgrid":
        ok, msg = _send_sendgrid(to_email, subject, body, html)
    elif p == "smtp":
        ok, msg = _send_smtp(to_email, subject, body, html)
    else:
        return False, "Email is not configured (set SENDGRID_API_KEY or SMTP_URL/SMTP_USER/SMTP_PASS)"

    if ok:
        logger.info("Email '%s' sent to %s via %s", subject, to_email, p)
    else:
        logger.error("Email '%s' to %s failed via %s: %s", subject, to_email, p, msg)
    return ok, msg


# ---------- Templates ----------
def _php(amount: Any) -> str:
    try:
        return f"PHP {float(amount):,.2f}"
    except (TypeError, ValueError):
        return f"PHP {amount}"


def render_booking_confirmation(d: Dict[str, Any]) -> tuple[str, str, str]:
    """Build ``(subject, text, html)`` for a booking confirmation."""
    subject = f"Booking Confirmation - {d.get('tourTitle')} ({d.get('bookingId')})"

    rows = [
        ("Booking ID", d.get("bookingId")),
        ("Tour", d.get("tourTitle")),
    ]
    if d.get("country"):
        rows.append(("Country", d.get("country")))
    rows += [
        ("Travel Date", d.get("tourDate")),
        ("Passengers", d.get("passengers")),
        ("Price per Person", _php(d.get("pricePerPerson"))),
        ("Total Amount", _php(d.get("totalAmount"))),
    ]
    if d.get("isDownpaymentOnly"):
        rows.append(("Downpayment Paid", _php(d.get("downpaymentAmount") or 0)))
        rows.append(("Remaining Balance", _php(d.get("remainingBalance") or 0)))
    if d.get("paymentMethod"):
        method = str(d.get("paymentMethod"))
        if d.get("paymentGateway"):
            method += f" via {d.get('paymentGateway')}"
        rows.append(("Payment Method", method))
    if d.get("appointmentDate"):
        when = str(d.get("appointmentDate"))
        if d.get("appointmentTime"):
            when += f" at {d.get('appointmentTime')}"
        rows.append(("Office Appointment", when))
        if d.get("appointmentPurpose"):
            rows.append(("Appointment Purpose", d.get("appointmentPurpose")))

    name = str(d.get("customerName") or "")
    text_lines = [f"Dear {name},", "", "Thank you for booking with Discover Group!", ""]
    text_lines += [f"{label}: {value}" for label, value in rows]
    if d.get("isDownpaymentOnly"):
        text_lines += ["", "Please settle the remaining balance before your departure date."]
    text_lines += ["", "We look forward to travelling with you.", "Discover Group"]
    text = "\n".join(text_lines)

    esc = html_lib.escape
    table = "".join(
        f"<tr><td style=\"padding:4px 12px 4px 0;color:#555\">{esc(label)}</td>"
        f"<td style=\"padding:4px 0\"><strong>{esc(str(value))}</strong></td></tr>"
        for label, value in rows
    )
    balance_note = (
        "<p>Please settle the remaining balance before your departure date.</p>"
        if d.get("isDownpaymentOnly")
        else ""
    )
    html = (
        "<div style=\"font-family:Arial,sans-serif;max-width:600px;margin:0 auto\">"
        "<h2 style=\"color:#1e40af\">Booking Confirmed</h2>"
        f"<p>Dear {esc(name)},</p>"
        "<p>Thank you for booking with Discover Group!</p>"
        f"<table>{table}</table>"
        f"{balance_note}"
        "<p>We look forward to travelling with you.<br>Discover Group</p>"
        "</div>"
    )
    return subject, text, html
