import logging
import smtplib
import ssl
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict, Optional

from passlib.context import CryptContext

from ...application.ports.otp_provider import OTPProvider
from ...utils import generate_numeric_code, generate_session_id, normalize_email, redact_email

logger = logging.getLogger(__name__)
code_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class SmtpOTPProvider(OTPProvider):
    """Generates the code locally and mails it.

    Only a hash of the latest code per address is kept, so sending a new code
    invalidates the previous one. Without an SMTP host the message is logged
    instead of sent (development mode).
    """

    def __init__(
        self,
        *,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        smtp_use_tls: bool = True,
        from_email: Optional[str] = None,
        from_name: str = "Customer Portal",
        code_length: int = 6,
        ttl_minutes: int = 10,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.code_length = code_length
        self.ttl_minutes = ttl_minutes
        self._hashes: Dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def send(self, email: str) -> str:
        email = normalize_email(email)
        code = generate_numeric_code(self.code_length)
        subject = "Your sign-in code"
        text_body = (
            f"Your customer portal sign-in code is {code}.\n\n"
            f"It expires in {self.ttl_minutes} minutes. If you did not ask for it, ignore this email."
        )
        html_body = (
            f"<p>Your customer portal sign-in code is <strong>{code}</strong>.</p>"
            f"<p>It expires in {self.ttl_minutes} minutes. If you did not ask for it, ignore this email.</p>"
        )
        self._send_email(email, subject, html_body, text_body)
        with self._lock:
            self._hashes[email] = code_context.hash(code)
        return f"smtp-{generate_session_id()}"

    def verify(self, email: str, code: str) -> bool:
        email = normalize_email(email)
        with self._lock:
            stored = self._hashes.get(email)
        if stored is None or not code_context.verify(code, stored):
            return False
        # a matched code is spent; a newer send may have replaced it meanwhile
        with self._lock:
            if self._hashes.get(email) == stored:
                del self._hashes[email]
        return True

    def cancel(self, email: str, delivery_ref: Optional[str]) -> None:
        with self._lock:
            self._hashes.pop(normalize_email(email), None)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        if not self.is_configured:
            logger.info(f"SMTP not configured, email to {redact_email(to_email)} not sent: {text_body}")
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        context = ssl.create_default_context()
        if self.smtp_use_tls:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls(context=context)
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())
        else:
            with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context, timeout=30) as server:
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())
        logger.info(f"Sign-in code sent to {redact_email(to_email)}")
