"""
MJML Email Templates
Booking notification emails using MJML for responsive, cross-client compatibility
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Indigo/Slate color scheme
THEME = {
    "primary": "#4f46e5",
    "primary_dark": "#4338ca",
    "primary_light": "#e0e7ff",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700" color="{THEME['primary']}" padding="0">
              Bookly
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 0 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="24px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              You're receiving this because you have a booking on Bookly.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _booking_details(service_title: str, scheduled_date: str, start_time: str, booking_code: str) -> str:
    return f"""
    <mj-text font-size="15px" color="{THEME['text_primary']}" padding="16px 0 0 0">
      <strong>{escape(service_title)}</strong>
    </mj-text>
    <mj-text font-size="15px" color="{THEME['text_primary']}" padding="4px 0">
      📅 {scheduled_date} &nbsp; ⏰ {start_time}
    </mj-text>
    <mj-text font-size="13px" color="{THEME['text_muted']}" padding="4px 0 16px 0">
      Reference: {booking_code}
    </mj-text>
    """


def booking_request_template(
    provider_name: str,
    customer_name: str,
    service_title: str,
    scheduled_date: str,
    start_time: str,
    booking_code: str,
    notes: Optional[str] = None,
) -> str:
    """New booking request notification for the provider"""
    notes_section = ""
    if notes:
        notes_section = f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Note from {escape(customer_name)}: {escape(notes)}
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {escape(provider_name)},
    </mj-text>

    <mj-text>
      <strong>{escape(customer_name)}</strong> requested a booking. Accept or decline it from your dashboard.
    </mj-text>

    {_booking_details(service_title, scheduled_date, start_time, booking_code)}
    {notes_section}
    """

    return get_base_template(
        title="New Booking Request",
        preview_text=f"New booking request from {escape(customer_name)}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/provider/bookings",
        cta_label="Review Request",
    )


def booking_confirmation_template(
    customer_name: str,
    service_title: str,
    scheduled_date: str,
    start_time: str,
    booking_code: str,
    total_amount: float,
    currency: str,
) -> str:
    """Booking received confirmation for the customer"""
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      Your booking request has been received and is waiting for the provider to confirm it.
    </mj-text>

    {_booking_details(service_title, scheduled_date, start_time, booking_code)}

    <mj-text font-size="15px" color="{THEME['text_primary']}">
      Total: {total_amount:.2f} {currency}
    </mj-text>
    """

    return get_base_template(
        title="Booking Received",
        preview_text=f"Booking {booking_code} received",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="View Booking",
    )


STATUS_HEADLINES = {
    "confirmed": ("Booking Confirmed", "Great news! Your booking has been confirmed.", "success"),
    "rejected": ("Booking Declined", "Unfortunately the provider could not accept this booking.", "danger"),
    "in-progress": ("Booking Started", "Your provider has started the service.", "primary"),
    "completed": ("Booking Completed", "Your booking is complete. We'd love to hear how it went.", "success"),
    "no-show": ("Booking Marked as No-Show", "This booking was marked as a no-show.", "warning"),
}


def booking_status_update_template(
    recipient_name: str,
    status: str,
    service_title: str,
    scheduled_date: str,
    start_time: str,
    booking_code: str,
    note: Optional[str] = None,
) -> str:
    """Booking status change notification"""
    title, lead, color = STATUS_HEADLINES.get(
        status, ("Booking Updated", f"Your booking status is now {status}.", "primary")
    )

    note_section = ""
    if note:
        note_section = f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      {escape(note)}
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {escape(recipient_name)},
    </mj-text>

    <mj-text color="{THEME[color]}" font-weight="600">
      {lead}
    </mj-text>

    {_booking_details(service_title, scheduled_date, start_time, booking_code)}
    {note_section}
    """

    cta_label = "Leave a Review" if status == "completed" else "View Booking"
    return get_base_template(
        title=title,
        preview_text=f"{title} - {booking_code}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label=cta_label,
    )


def booking_cancelled_template(
    recipient_name: str,
    cancelled_by_name: str,
    service_title: str,
    scheduled_date: str,
    start_time: str,
    booking_code: str,
    reason: Optional[str] = None,
    fee: float = 0,
    currency: str = "USD",
) -> str:
    """Booking cancellation notification for the other participant"""
    reason_section = ""
    if reason:
        reason_section = f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Reason: {escape(reason)}
    </mj-text>
    """

    fee_section = ""
    if fee:
        fee_section = f"""
    <mj-text font-size="14px" color="{THEME['warning']}">
      A late cancellation fee of {fee:.2f} {currency} applies.
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {escape(recipient_name)},
    </mj-text>

    <mj-text>
      This booking was cancelled by <strong>{escape(cancelled_by_name)}</strong>.
    </mj-text>

    {_booking_details(service_title, scheduled_date, start_time, booking_code)}
    {reason_section}
    {fee_section}
    """

    return get_base_template(
        title="Booking Cancelled",
        preview_text=f"Booking {booking_code} was cancelled",
        content_sections=content,
    )


def booking_reminder_template(
    recipient_name: str,
    other_party_name: str,
    service_title: str,
    scheduled_date: str,
    start_time: str,
    booking_code: str,
) -> str:
    """Reminder sent the day before a booking"""
    content = f"""
    <mj-text>
      Hi {escape(recipient_name)},
    </mj-text>

    <mj-text>
      Just a reminder: you have a booking with <strong>{escape(other_party_name)}</strong> tomorrow.
    </mj-text>

    {_booking_details(service_title, scheduled_date, start_time, booking_code)}
    """

    return get_base_template(
        title="Booking Reminder",
        preview_text=f"Reminder: {escape(service_title)} tomorrow at {start_time}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="View Booking",
    )
