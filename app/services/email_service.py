"""
Outbound email.

Services only see ``EmailSender.send``. Transports raise ``EmailDeliveryError``
on failure; whether that reaches the caller is the calling flow's decision.
"""
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib
import ssl

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when a transport could not hand the message over."""


class EmailSender:
    """Send an HTML message to a single address."""

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        raise NotImplementedError


class ConsoleEmailSender(EmailSender):
    """Development transport: writes the message to the log instead of sending it."""

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        logger.info("Email to %s | %s\n%s", to_email, subject, html_body)


class SmtpEmailSender(EmailSender):
    """SMTP transport. Port 465 uses implicit TLS, anything else STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, to_email: str, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to_email
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        msg = self._build_message(to_email, subject, html_body)
        context = ssl.create_default_context()
        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                    self._deliver(server, to_email, msg)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.ehlo()
                    if self.use_tls:
                        server.starttls(context=context)
                    self._deliver(server, to_email, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(f"SMTP send to {to_email} failed: {exc}") from exc

    def _deliver(self, server: smtplib.SMTP, to_email: str, msg: MIMEMultipart) -> None:
        if self.username and self.password:
            server.login(self.username, self.password)
        server.sendmail(self.from_address, [to_email], msg.as_string())


class MailgunEmailSender(EmailSender):
    """Mailgun HTTP API transport."""

    def __init__(
        self,
        domain: str,
        api_key: str,
        from_address: str,
        base_url: str = "https://api.mailgun.net",
        timeout: float = 10.0,
    ):
        self.domain = domain
        self.api_key = api_key
        self.from_address = from_address
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        url = f"{self.base_url}/v3/{self.domain}/messages"
        data = {
            "from": self.from_address,
            "to": to_email,
            "subject": subject,
            "html": html_body,
        }
        try:
            response = httpx.post(
                url, auth=("api", self.api_key), data=data, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise EmailDeliveryError(
                f"Mailgun send failed: {exc.response.status_code} {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Mailgun send failed: {exc}") from exc


def get_email_sender() -> EmailSender:
    """FastAPI dependency returning the transport selected by EMAIL_BACKEND."""
    backend = settings.EMAIL_BACKEND.lower()
    if backend == "smtp":
        return SmtpEmailSender(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_address=settings.EMAIL_FROM,
            use_tls=settings.SMTP_USE_TLS,
        )
    if backend == "mailgun":
        return MailgunEmailSender(
            domain=settings.MAILGUN_DOMAIN,
            api_key=settings.MAILGUN_API_KEY,
            from_address=settings.EMAIL_FROM,
            base_url=settings.MAILGUN_BASE_URL,
        )
    return ConsoleEmailSender()
