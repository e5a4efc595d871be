import smtplib

import pytest

from config import Settings
from emails import EmailMessage, SmtpEmailSender, enquiry_confirmation, enquiry_notification
from schemas import Enquiry


@pytest.fixture
def enquiry():
    return Enquiry(
        name="Asha <b>Verma</b>",
        email="asha@example.com",
        phone="+91 98765 43210",
        city="Pune",
        interest="study-abroad",
        message="Interested in the UK",
    )


def test_admin_notification(enquiry):
    msg = enquiry_notification(enquiry, "ops@example.com")
    assert msg.to == "ops@example.com"
    assert msg.subject == "New Enquiry from Asha <b>Verma</b>"
    assert "Asha &lt;b&gt;Verma&lt;/b&gt;" in msg.html
    assert "<b>Verma</b>" not in msg.html
    assert "Interest: Study Abroad" in msg.text
    assert "Message: Interested in the UK" in msg.text


def test_admin_notification_without_message(enquiry):
    enquiry.message = ""
    assert "Message:" not in enquiry_notification(enquiry, "ops@example.com").text


def test_student_confirmation(enquiry):
    msg = enquiry_confirmation(enquiry, "help@example.com")
    assert msg.to == "asha@example.com"
    assert msg.subject == "Thank You for Your Enquiry - Education Times Abroad"
    assert "Study Abroad" in msg.html
    assert "help@example.com" in msg.text


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port
        self.logged_in = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        self.logged_in = (user, password)

    def sendmail(self, from_addr, to_addrs, body):
        self.sent.append((from_addr, to_addrs, body))


def test_smtp_sender_skips_without_host(monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    FakeSMTP.instances = []
    sender = SmtpEmailSender(Settings())
    assert sender(EmailMessage(to="a@b.co", subject="s", html="<p>h</p>", text="t")) is False
    assert FakeSMTP.instances == []


def test_smtp_sender_sends(monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    FakeSMTP.instances = []
    settings = Settings(
        smtp_host="smtp.example.com",
        smtp_port=2525,
        smtp_user="mailer",
        smtp_pass="secret",
        from_email="no-reply@example.com",
    )
    assert SmtpEmailSender(settings)(EmailMessage(to="a@b.co", subject="Hi", html="<p>h</p>", text="t")) is True

    (server,) = FakeSMTP.instances
    assert (server.host, server.port) == ("smtp.example.com", 2525)
    assert server.logged_in == ("mailer", "secret")
    from_addr, to_addrs, body = server.sent[0]
    assert from_addr == "no-reply@example.com"
    assert to_addrs == ["a@b.co"]
    assert "Subject: Hi" in body
