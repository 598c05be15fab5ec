"""
Unified Email Service using Resend or Custom SMTP
Provides email functionality using MJML templates for responsive design
"""

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import (
    EMAIL_FROM_ADDRESS,
    RESEND_API_KEY,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
)
from .email_templates import (
    booking_cancelled_template,
    booking_confirmation_template,
    booking_reminder_template,
    booking_request_template,
    booking_status_update_template,
)
from .shared.time_utils import utc_now

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

# template name -> (MJML builder, subject builder)
EMAIL_TEMPLATES = {
    "booking-request": (
        booking_request_template,
        lambda data: f"New booking request - {data['booking_code']}",
    ),
    "booking-confirmation": (
        booking_confirmation_template,
        lambda data: f"Booking received - {data['booking_code']}",
    ),
    "booking-status-update": (
        booking_status_update_template,
        lambda data: f"Booking {data['status']} - {data['booking_code']}",
    ),
    "booking-cancelled": (
        booking_cancelled_template,
        lambda data: f"Booking cancelled - {data['booking_code']}",
    ),
    "booking-reminder": (
        booking_reminder_template,
        lambda data: f"Reminder: your booking tomorrow at {data['start_time']}",
    ),
}


def send_via_smtp(
    to: list[str],
    subject: str,
    html_content: str,
    from_address: str,
) -> dict:
    """Send email via the configured SMTP relay"""
    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = from_address
        msg["To"] = ", ".join(to)
        msg.attach(MIMEText(html_content, "html"))

        if SMTP_PORT == 465:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=30)
        else:
            server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
            if SMTP_USE_TLS:
                context = ssl.create_default_context()
                server.starttls(context=context)

        try:
            if SMTP_USERNAME:
                server.login(SMTP_USERNAME, SMTP_PASSWORD or "")
            server.sendmail(from_address.split("<")[-1].rstrip(">"), to, msg.as_string())
        finally:
            server.quit()

        logger.info(f"✅ SMTP email sent successfully via {SMTP_HOST}")
        return {"id": f"smtp-{utc_now().timestamp()}", "success": True}

    except Exception as e:
        logger.error(f"❌ SMTP send failed: {e}")
        raise Exception(f"SMTP failed: {str(e)}") from e


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict-like result with 'html' and 'errors'
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        return html if html is not None else str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using SMTP (if configured) or Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)

    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if SMTP_HOST:
        try:
            logger.info(f"📧 Sending email via SMTP: {SMTP_HOST}")
            return send_via_smtp(recipients, subject, html_content, sender)
        except Exception as e:
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and no SMTP relay")
        raise Exception("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": sender,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def dispatch_email(template_name: str, recipient: Optional[str], data: dict) -> dict:
    """
    Render a named template and send it. Never raises.

    Returns:
        {"success": bool, "error": str | None}
    """
    if not recipient:
        logger.debug(f"⚠️ No recipient for {template_name} email")
        return {"success": False, "error": "No recipient address"}

    entry = EMAIL_TEMPLATES.get(template_name)
    if entry is None:
        logger.error(f"❌ Unknown email template: {template_name}")
        return {"success": False, "error": f"Unknown template: {template_name}"}

    build_template, build_subject = entry
    try:
        await send_email(
            to=recipient,
            subject=build_subject(data),
            mjml_content=build_template(**data),
        )
        logger.info(f"✅ {template_name} email sent to {recipient}")
        return {"success": True, "error": None}
    except Exception as e:
        logger.error(f"❌ Failed to send {template_name} email to {recipient}: {e}")
        return {"success": False, "error": str(e)}
