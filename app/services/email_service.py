import logging
import smtplib
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import settings

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html_body: str) -> None:
    """Send email via SMTP (blocking). Use from background task."""
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping send to %s", to_email)
        return
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
    except Exception as e:
        # Delivery failures never undo a booking
        logger.exception("Failed to send email to %s: %s", to_email, e)


def _html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _detail_row(label: str, value: str) -> str:
    return f"""
                    <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;letter-spacing:0.5px;color:#6b7280;">{label}</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{_html_escape(value)}</p>"""


def _layout(title: str, heading: str, intro: str, rows: list[tuple[str, str]], extra_html: str = "") -> str:
    logo_html = ""
    if settings.email_logo_url:
        logo_html = f'<img src="{settings.email_logo_url}" alt="{settings.site_name}" width="120" style="display:block;margin-bottom:24px;" />'
    details = "".join(_detail_row(label, value) for label, value in rows)
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Oxygen,Ubuntu,sans-serif;background-color:#f3f4f6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#f3f4f6;">
    <tr>
      <td align="center" style="padding:40px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:560px;background:#ffffff;border-radius:12px;overflow:hidden;">
          <tr>
            <td style="padding:32px 32px 24px 32px;">
              {logo_html}
              <h1 style="margin:0 0 8px 0;font-size:22px;font-weight:600;color:#111827;">{heading}</h1>
              <p style="margin:0 0 24px 0;font-size:15px;color:#6b7280;">{intro}</p>
              <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background:#f9fafb;border-radius:8px;margin-bottom:24px;">
                <tr>
                  <td style="padding:8px 24px 20px 24px;">{details}
                  </td>
                </tr>
              </table>
              {extra_html}
            </td>
          </tr>
          <tr>
            <td style="padding:24px 32px 32px 32px;background:#f9fafb;border-top:1px solid #e5e7eb;">
              <p style="margin:0 0 4px 0;font-size:13px;font-weight:600;color:#111827;">{settings.site_name}</p>
              <p style="margin:0;font-size:13px;color:#6b7280;">
                {settings.contact_email} &nbsp;·&nbsp; {settings.contact_phone}<br>
                {settings.contact_address}
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def build_appointment_confirmation_html(
    recipient_name: str,
    appointment_date: date,
    appointment_time: str,
    duration_minutes: int,
    property_address: str,
    confirmation_number: str,
    cost_range: str | None = None,
    special_requests: str | None = None,
) -> str:
    """Customer-facing confirmation for a newly booked roof inspection."""
    rows = [
        ("Confirmation number", confirmation_number),
        ("Date", appointment_date.strftime("%A, %B %d, %Y")),
        (f"Time ({duration_minutes} minutes)", appointment_time),
        ("Address", property_address),
    ]
    if cost_range:
        rows.append(("Estimated project cost", cost_range))
    extra = ""
    if special_requests:
        extra += f"""
              <p style="margin:0 0 16px 0;color:#374151;"><strong>Your notes:</strong></p>
              <p style="margin:0 0 24px 0;color:#6b7280;font-size:14px;">{_html_escape(special_requests)}</p>"""
    extra += f"""
              <p style="margin:0 0 8px 0;font-size:14px;color:#374151;">Please make sure our truck can reach the driveway. We only need exterior access to the roof.</p>
              <p style="margin:0 0 8px 0;font-size:14px;color:#374151;">Need to reschedule? Call us at {settings.contact_phone} or reply to this email.</p>"""
    return _layout(
        title="Appointment Confirmation",
        heading="Your Roof Inspection Is Booked",
        intro=f"Hi {_html_escape(recipient_name) or 'there'}, your appointment is confirmed.",
        rows=rows,
        extra_html=extra,
    )


def build_ops_alert_html(
    customer_name: str,
    customer_email: str,
    customer_phone: str,
    appointment_date: date,
    appointment_time: str,
    duration_minutes: int,
    property_address: str,
    confirmation_number: str,
    roof_area_sqft: float | None = None,
    cost_range: str | None = None,
    special_requests: str | None = None,
    report_url: str | None = None,
) -> str:
    """Internal alert sent to the operations inbox for every new booking."""
    rows = [
        ("Customer", customer_name),
        ("Email", customer_email),
        ("Phone", customer_phone),
        ("Date", appointment_date.strftime("%A, %B %d, %Y")),
        (f"Time ({duration_minutes} minutes)", appointment_time),
        ("Address", property_address),
        ("Confirmation number", confirmation_number),
    ]
    if roof_area_sqft:
        rows.append(("Roof area", f"{roof_area_sqft:,.0f} sq ft"))
    if cost_range:
        rows.append(("Estimated cost", cost_range))
    rows.append(("Special notes", special_requests or "None"))
    extra = ""
    if report_url:
        extra = f'<p style="margin:0 0 8px 0;font-size:14px;"><a href="{report_url}">View measurement report</a></p>'
    return _layout(
        title="New Appointment",
        heading="New Roof Inspection Appointment",
        intro="A customer booked an inspection through the website.",
        rows=rows,
        extra_html=extra,
    )
