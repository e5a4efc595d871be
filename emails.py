"""
Outbound email: the two enquiry templates and an SMTP sender.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from html import escape
from config import Settings
from schemas import INTEREST_LABELS

logger = logging.getLogger(__name__)

BRAND = "Education Times Abroad"


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str


def interest_label(interest: str) -> str:
    return INTEREST_LABELS.get(interest, interest)


def enquiry_notification(enquiry, to: str) -> EmailMessage:
    """Admin copy of a new enquiry."""
    label = interest_label(enquiry.interest)
    badge = "#007bff" if enquiry.interest == "study-abroad" else "#6f42c1"

    rows = [
        ("Name", escape(enquiry.name)),
        ("Email", escape(enquiry.email)),
        ("Phone", escape(enquiry.phone)),
        ("City", escape(enquiry.city)),
        ("Interest", f'<span style="background: {badge}; color: white; padding: 4px 8px; border-radius: 4px;">{label}</span>'),
    ]
    if enquiry.message:
        rows.append(("Message", escape(enquiry.message)))

    html_rows = "".join(
        f'<p style="background: white; padding: 12px; border-left: 4px solid #667eea;"><strong>{k}:</strong> {v}</p>'
        for k, v in rows
    )
    html_body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2>New Student Enquiry</h2>
      <p>{BRAND}</p>
      {html_rows}
      <p style="color: #666;">This enquiry was submitted through the {BRAND} website.
      Please respond to the student as soon as possible.</p>
    </div>
    """

    text_lines = [
        f"New Student Enquiry - {BRAND}",
        "",
        f"Name: {enquiry.name}",
        f"Email: {enquiry.email}",
        f"Phone: {enquiry.phone}",
        f"City: {enquiry.city}",
        f"Interest: {label}",
    ]
    if enquiry.message:
        text_lines.append(f"Message: {enquiry.message}")
    text_lines += ["", f"This enquiry was submitted through the {BRAND} website."]

    return EmailMessage(
        to=to,
        subject=f"New Enquiry from {enquiry.name}",
        html=html_body,
        text="\n".join(text_lines),
    )


def enquiry_confirmation(enquiry, support_email: str) -> EmailMessage:
    """Thank-you email sent to the student who submitted the enquiry."""
    label = interest_label(enquiry.interest)
    next_steps = [
        "Our team will review your enquiry within 24 hours",
        "You'll receive a personalized response based on your requirements",
        "We'll help you find the best educational opportunities",
        "Free consultation and guidance throughout the process",
    ]
    steps_html = "".join(f"<li>{s}</li>" for s in next_steps)

    html_body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2>Thank You!</h2>
      <p>Hello {escape(enquiry.name)},</p>
      <p>Thank you for your interest in <strong>{label}</strong> programs at {BRAND}.
      We have received your enquiry and our team will get back to you shortly.</p>
      <h3>What happens next?</h3>
      <ul>{steps_html}</ul>
      <p>Need immediate assistance? Contact us at {escape(support_email)}</p>
      <p>Best regards,<br/>The {BRAND} Team</p>
    </div>
    """

    text_body = "\n".join(
        [
            f"Hello {enquiry.name},",
            "",
            f"Thank you for your interest in {label} programs at {BRAND}.",
            "We have received your enquiry and our team will get back to you shortly.",
            "",
            "What happens next?",
            *(f"- {s}" for s in next_steps),
            "",
            f"Need immediate assistance? Contact us at {support_email}",
            "",
            f"Best regards,\nThe {BRAND} Team",
        ]
    )

    return EmailMessage(
        to=enquiry.email,
        subject=f"Thank You for Your Enquiry - {BRAND}",
        html=html_body,
        text=text_body,
    )


class SmtpEmailSender:
    """Sends EmailMessage objects over SMTP. Safe no-op if SMTP is not configured."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def __call__(self, message: EmailMessage) -> bool:
        return self.send(message)

    def send(self, message: EmailMessage) -> bool:
        s = self.settings
        if not s.smtp_host:
            logger.warning("SMTP_HOST not set; skipping email to %s", message.to)
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = formataddr((s.from_name, s.from_email))
        msg["To"] = message.to
        msg.attach(MIMEText(message.text, "plain"))
        msg.attach(MIMEText(message.html, "html"))

        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=15) as server:
            try:
                server.starttls()
            except smtplib.SMTPNotSupportedError:
                logger.debug("Server %s does not support STARTTLS", s.smtp_host)
            if s.smtp_user and s.smtp_pass:
                server.login(s.smtp_user, s.smtp_pass)
            server.sendmail(s.from_email, [message.to], msg.as_string())
        return True

