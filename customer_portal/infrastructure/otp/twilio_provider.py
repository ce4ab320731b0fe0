from twilio.rest import Client
from twilio.http.http_client import TwilioHttpClient
from typing import Optional
from ...core.config import settings
from ...application.ports.otp_provider import OTPProvider


class TwilioEmailOTPProvider(OTPProvider):
    """Twilio Verify over the email channel; Twilio generates, mails and checks the code."""

    def __init__(self, client: Optional[Client] = None, verify_sid: Optional[str] = None):
        self.client = client or Client(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            http_client=TwilioHttpClient(timeout=15, max_retries=3),
        )
        self.verify_sid = verify_sid or settings.TWILIO_VERIFY_SERVICE_SID

    def send(self, email: str) -> str:
        if not self.verify_sid:
            raise RuntimeError("Twilio Verify Service SID not configured")
        verification = self.client.verify.v2.services(self.verify_sid).verifications.create(to=email, channel="email")
        return verification.sid

    def verify(self, email: str, code: str) -> bool:
        if not self.verify_sid:
            raise RuntimeError("Twilio Verify Service SID not configured")
        check = self.client.verify.v2.services(self.verify_sid).verification_checks.create(to=email, code=code)
        return check.status == "approved"

    def cancel(self, email: str, delivery_ref: Optional[str]) -> None:
        # a pending Twilio verification is re-sent with the same code until it is canceled
        if not delivery_ref or not self.verify_sid:
            return
        self.client.verify.v2.services(self.verify_sid).verifications(delivery_ref).update(status="canceled")
