"""
Notification Service - emails and real-time push for application events.

Handles:
- application_submitted: push to the owning organization's room
- application_status_changed: email + push to the applicant
- alert_digest: email of matching opportunities for a saved alert
- application_status_message: an organization's own note to one applicant
- contact_message: contact form mail to support, plus a confirmation

Delivery is best-effort. Every public method catches and logs its own
failures so a broken mail relay never fails an API request. The methods
that return a bool report whether the mail reached the relay.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import List, Optional

import requests
from fastapi import Request
from fastapi.encoders import jsonable_encoder

from internhub.core.config import Settings
from internhub.services.mongo_service import serialize_doc

logger = logging.getLogger(__name__)


class Notifier:
    """Interface the routes talk to. The base class delivers nothing."""

    def application_submitted(self, application: dict, opportunity: dict, student: dict) -> None:
        pass

    def application_status_changed(self, application: dict, opportunity: dict, student: dict) -> None:
        pass

    def alert_digest(self, student: dict, alert: dict, opportunities: List[dict]) -> bool:
        """Send one digest email. Returns True when it was handed to the relay."""
        return False

    def application_status_message(
        self, application: dict, opportunity: dict, organization: dict, student: dict,
        status: str, message: Optional[str],
    ) -> bool:
        """Email an applicant a status update written by the organization."""
        return False

    def contact_message(self, name: str, email: str, subject: str, message: str) -> bool:
        """Forward a contact form message to support and confirm it to the sender."""
        return False


class SmtpNotifier(Notifier):
    """Sends HTML email over SMTP and posts push events to a pub/sub relay."""

    def __init__(self, settings: Settings):
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.email_from = settings.email_from
        self.contact_email = settings.contact_email or settings.email_from
        self.push_relay_url = settings.push_relay_url.rstrip("/")
        self.frontend_url = settings.frontend_url.rstrip("/")
        self.timeout = settings.notification_timeout_seconds

    # ------------------------------------------------------------
    # transports
    # ------------------------------------------------------------

    def _send_email(self, to_email: str, subject: str, html_body: str, reply_to: Optional[str] = None) -> bool:
        """Send an email using SMTP"""
        if not self.smtp_host:
            logger.info("Email delivery disabled, skipped '%s' to %s", subject, to_email)
            return False
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"InternHub <{self.email_from}>"
            msg["To"] = to_email
            if reply_to:
                msg["Reply-To"] = reply_to
            msg.attach(MIMEText(html_body, "html"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.email_from, to_email, msg.as_string())
            return True
        except Exception as e:
            logger.warning("Email to %s failed: %s", to_email, e)
            return False

    def _push(self, room: str, event: str, data: dict) -> bool:
        """Publish an event to a room on the push relay."""
        if not self.push_relay_url:
            logger.debug("Push relay disabled, skipped %s to %s", event, room)
            return False
        try:
            response = requests.post(
                f"{self.push_relay_url}/emit",
                json=jsonable_encoder({"room": room, "event": event, "data": data}),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.warning("Push %s to %s failed: %s", event, room, e)
            return False

    # ------------------------------------------------------------
    # events
    # ------------------------------------------------------------

    def application_submitted(self, application: dict, opportunity: dict, student: dict) -> None:
        try:
            self._push(
                f"organization-{application['organization']}",
                "application-created",
                {
                    "applicationId": str(application["_id"]),
                    "opportunityId": str(opportunity["_id"]),
                    "opportunityTitle": opportunity.get("title"),
                    "studentName": f"{student.get('firstName', '')} {student.get('lastName', '')}".strip(),
                },
            )
        except Exception:
            logger.exception("application_submitted notification failed")

    def application_status_changed(self, application: dict, opportunity: dict, student: dict) -> None:
        try:
            self._push(
                f"user-{application['student']}",
                "application-updated",
                {"application": serialize_doc(application), "opportunityTitle": opportunity.get("title")},
            )
            if not student.get("emailNotifications", True):
                logger.info("Student %s opted out of email, status email skipped", student.get("_id"))
                return
            subject = f"Application Status Update - {opportunity.get('title')}"
            self._send_email(student["email"], subject, self._status_email(application, opportunity, student))
        except Exception:
            logger.exception("application_status_changed notification failed")

    def alert_digest(self, student: dict, alert: dict, opportunities: List[dict]) -> bool:
        try:
            frequency = alert.get("frequency", "weekly")
            subject = f"New Internship Opportunities - {frequency.capitalize()} Alert"
            return self._send_email(student["email"], subject, self._digest_email(student, alert, opportunities))
        except Exception:
            logger.exception("alert digest for %s failed", student.get("email"))
            return False

    def application_status_message(
        self, application: dict, opportunity: dict, organization: dict, student: dict,
        status: str, message: Optional[str],
    ) -> bool:
        try:
            subject = f"Application Status Update - {opportunity.get('title')}"
            body = self._status_message_email(application, opportunity, organization, student, status, message)
            return self._send_email(student["email"], subject, body)
        except Exception:
            logger.exception("status message for application %s failed", application.get("_id"))
            return False

    def contact_message(self, name: str, email: str, subject: str, message: str) -> bool:
        try:
            sent = self._send_email(
                self.contact_email,
                f"Contact Form: {subject}",
                self._contact_email(name, email, subject, message),
                reply_to=email,
            )
            if not sent:
                return False
            # the result reflects the support copy only
            self._send_email(email, "We Received Your Message", self._contact_confirmation(name, subject, message))
            return True
        except Exception:
            logger.exception("contact message from %s failed", email)
            return False

    # ------------------------------------------------------------
    # templates
    # ------------------------------------------------------------

    def _status_message_email(
        self, application: dict, opportunity: dict, organization: dict, student: dict,
        status: str, message: Optional[str],
    ) -> str:
        note = f'<p style="color: #666;">{escape(message)}</p>' if message else ""
        if status == "accepted":
            note += "<p><strong>Congratulations!</strong> Please check your dashboard for next steps.</p>"
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Application Status Update</h2>
            <p>Hello {escape(student.get('firstName', ''))},</p>
            <p>We have an update regarding your application for the
               <strong>{escape(opportunity.get('title', ''))}</strong> position at
               <strong>{escape(organization.get('name', ''))}</strong>.</p>
            <h3>Status: {escape(status.capitalize())}</h3>
            {note}
            <p><a href="{self.frontend_url}/applications/{application['_id']}">View Application</a></p>
        </div>
        """

    def _contact_email(self, name: str, email: str, subject: str, message: str) -> str:
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>New Contact Form Submission</h2>
            <p><strong>Name:</strong> {escape(name)}</p>
            <p><strong>Email:</strong> {escape(email)}</p>
            <p><strong>Subject:</strong> {escape(subject)}</p>
            <p style="white-space: pre-wrap;">{escape(message)}</p>
        </div>
        """

    def _contact_confirmation(self, name: str, subject: str, message: str) -> str:
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Thank You for Contacting Us!</h2>
            <p>Hello {escape(name)},</p>
            <p>We've received your message and will get back to you as soon as possible.</p>
            <p><strong>Subject:</strong> {escape(subject)}</p>
            <p style="white-space: pre-wrap;">{escape(message)}</p>
            <p>Best regards,<br>The InternHub Team</p>
        </div>
        """

    def _status_email(self, application: dict, opportunity: dict, student: dict) -> str:
        status = application.get("status", "")
        extra = ""
        if application.get("notes"):
            extra += f"<p><strong>Notes:</strong> {escape(application['notes'])}</p>"
        if application.get("feedback"):
            extra += f"<p><strong>Feedback:</strong> {escape(application['feedback'])}</p>"
        if status == "accepted":
            extra += "<p><strong>Congratulations!</strong> Please check your dashboard for next steps.</p>"
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Hello {escape(student.get('firstName', ''))},</h2>
            <p>We have an update regarding your application for
               <strong>{escape(opportunity.get('title', ''))}</strong>.</p>
            <h3>Status: {escape(status.capitalize())}</h3>
            {extra}
            <p><a href="{self.frontend_url}/dashboard">View Dashboard</a></p>
        </div>
        """

    def _digest_email(self, student: dict, alert: dict, opportunities: List[dict]) -> str:
        criteria = ""
        for label, key in (("Keywords", "keywords"), ("Locations", "locations"),
                           ("Industries", "industries"), ("Types", "types")):
            if alert.get(key):
                criteria += f"<li><strong>{label}:</strong> {escape(', '.join(alert[key]))}</li>"

        items = ""
        for opp in opportunities:
            org = opp.get("organization") if isinstance(opp.get("organization"), dict) else {}
            items += f"""
            <div style="border: 1px solid #ddd; padding: 15px; margin: 10px 0;">
                <h4>{escape(opp.get('title', ''))}</h4>
                <p><strong>Company:</strong> {escape((org or {}).get('name', ''))}</p>
                <p><strong>Location:</strong> {escape(opp.get('location', ''))}</p>
                <p><strong>Type:</strong> {escape(opp.get('type', ''))}</p>
                <a href="{self.frontend_url}/opportunities/{opp['_id']}">View Details</a>
            </div>
            """

        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Hello {escape(student.get('firstName', ''))}!</h2>
            <p>We found {len(opportunities)} new internship opportunities that match your criteria:</p>
            <ul>{criteria}</ul>
            {items}
        </div>
        """


def build_notifier(settings: Settings) -> Notifier:
    """Create the notifier for the configured relays."""
    if not settings.email_enabled and not settings.push_relay_url:
        logger.info("No mail or push relay configured, notifications are logged only")
    return SmtpNotifier(settings)


def get_notifier(request: Request) -> Notifier:
    """FastAPI dependency - the notifier built at startup."""
    return request.app.state.notifier
