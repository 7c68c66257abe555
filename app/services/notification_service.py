import logging
from dataclasses import dataclass
from typing import Protocol

from fastapi import BackgroundTasks

from app.core.config import settings
from app.models.appointment import Appointment
from app.services.booking_transaction import BookingSummary
from app.services.email_service import (
    build_appointment_confirmation_html,
    build_ops_alert_html,
    send_email,
)

logger = logging.getLogger(__name__)

CUSTOMER_CONFIRMATION = "customer_confirmation"
INTERNAL_ALERT = "internal_alert"


@dataclass(frozen=True)
class NotificationMessage:
    kind: str
    to_email: str
    subject: str
    html_body: str


class Notifier(Protocol):
    async def send(self, message: NotificationMessage) -> None: ...


class BackgroundEmailNotifier:
    """Queues SMTP sends to run after the HTTP response (SMTP is blocking)."""

    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    async def send(self, message: NotificationMessage) -> None:
        logger.info("Queueing %s email to %s", message.kind, message.to_email)
        self._background_tasks.add_task(send_email, message.to_email, message.subject, message.html_body)


def customer_confirmation(appointment: Appointment, summary: BookingSummary) -> NotificationMessage:
    html = build_appointment_confirmation_html(
        recipient_name=appointment.customer_name,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time,
        duration_minutes=appointment.duration_minutes,
        property_address=appointment.property_address,
        confirmation_number=appointment.confirmation_number,
        cost_range=summary.estimate.display if summary.estimate else None,
        special_requests=appointment.special_requests,
    )
    return NotificationMessage(
        kind=CUSTOMER_CONFIRMATION,
        to_email=appointment.customer_email,
        subject=f"Your {settings.site_name} Roof Inspection - {appointment.appointment_date.strftime('%B %d, %Y')}",
        html_body=html,
    )


def internal_alert(appointment: Appointment, summary: BookingSummary) -> NotificationMessage:
    report_url = None
    if appointment.measurement_id:
        report_url = f"{settings.public_site_url.rstrip('/')}/Results?measurementid={appointment.measurement_id}"
    html = build_ops_alert_html(
        customer_name=appointment.customer_name,
        customer_email=appointment.customer_email,
        customer_phone=appointment.customer_phone,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time,
        duration_minutes=appointment.duration_minutes,
        property_address=appointment.property_address,
        confirmation_number=appointment.confirmation_number,
        roof_area_sqft=appointment.roof_area_sqft,
        cost_range=summary.estimate.display if summary.estimate else None,
        special_requests=appointment.special_requests,
        report_url=report_url,
    )
    return NotificationMessage(
        kind=INTERNAL_ALERT,
        to_email=settings.ops_email,
        subject=f"NEW APPOINTMENT: {appointment.customer_name} - {appointment.appointment_date.strftime('%m/%d/%Y')}",
        html_body=html,
    )
