from types import SimpleNamespace

from customer_portal.infrastructure.otp import smtp_provider
from customer_portal.infrastructure.otp.smtp_provider import SmtpOTPProvider
from customer_portal.infrastructure.otp.twilio_provider import TwilioEmailOTPProvider


def test_smtp_provider_without_host_logs_and_verifies(monkeypatch):
    monkeypatch.setattr(smtp_provider, "generate_numeric_code", lambda length: "424242")
    provider = SmtpOTPProvider(code_length=6)
    ref = provider.send("Alice@Example.com")
    assert ref.startswith("smtp-")
    assert provider.verify("alice@example.com", "424242") is True
    assert provider.verify("alice@example.com", "000000") is False
    assert provider.verify("bob@example.com", "424242") is False


def test_smtp_provider_new_code_replaces_old(monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(smtp_provider, "generate_numeric_code", lambda length: next(codes))
    provider = SmtpOTPProvider()
    provider.send("alice@example.com")
    provider.send("alice@example.com")
    assert provider.verify("alice@example.com", "111111") is False
    assert provider.verify("alice@example.com", "222222") is True


def test_smtp_provider_code_is_spent_after_a_match(monkeypatch):
    monkeypatch.setattr(smtp_provider, "generate_numeric_code", lambda length: "424242")
    provider = SmtpOTPProvider()
    provider.send("alice@example.com")
    assert provider.verify("alice@example.com", "424242") is True
    assert provider.verify("alice@example.com", "424242") is False
    assert provider._hashes == {}


def test_smtp_provider_cancel_drops_the_pending_code(monkeypatch):
    monkeypatch.setattr(smtp_provider, "generate_numeric_code", lambda length: "424242")
    provider = SmtpOTPProvider()
    ref = provider.send("alice@example.com")
    provider.cancel("Alice@Example.com", ref)
    assert provider.verify("alice@example.com", "424242") is False


def test_smtp_provider_sends_over_starttls(monkeypatch):
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            sent.append(("connect", host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self, context=None):
            sent.append(("starttls",))

        def login(self, user, password):
            sent.append(("login", user))

        def sendmail(self, from_addr, to_addr, message):
            sent.append(("sendmail", from_addr, to_addr))

    monkeypatch.setattr(smtp_provider.smtplib, "SMTP", FakeSMTP)
    provider = SmtpOTPProvider(smtp_host="smtp.example.com", smtp_user="portal@example.com", smtp_password="pw")
    provider.send("alice@example.com")
    assert sent == [
        ("connect", "smtp.example.com", 587),
        ("starttls",),
        ("login", "portal@example.com"),
        ("sendmail", "portal@example.com", "alice@example.com"),
    ]


class FakeVerifications:
    """Stands in for the Twilio list resource, which is both callable (by sid) and has create()."""

    def __init__(self, create):
        self.create = create
        self.updates = []

    def __call__(self, sid):
        return SimpleNamespace(update=lambda **kwargs: self.updates.append((sid, kwargs)))


class FakeVerifyService:
    def __init__(self):
        self.created = []
        self.checked = []
        self.verifications = FakeVerifications(self._create)
        self.verification_checks = SimpleNamespace(create=self._check)

    def _create(self, to, channel):
        self.created.append((to, channel))
        return SimpleNamespace(sid="VE123")

    def _check(self, to, code):
        self.checked.append((to, code))
        return SimpleNamespace(status="approved" if code == "123456" else "pending")


def test_twilio_provider_uses_email_channel():
    service = FakeVerifyService()
    client = SimpleNamespace(verify=SimpleNamespace(v2=SimpleNamespace(services=lambda sid: service)))
    provider = TwilioEmailOTPProvider(client=client, verify_sid="VA123")
    assert provider.send("alice@example.com") == "VE123"
    assert service.created == [("alice@example.com", "email")]
    assert provider.verify("alice@example.com", "123456") is True
    assert provider.verify("alice@example.com", "654321") is False


def test_twilio_provider_cancels_superseded_verification():
    service = FakeVerifyService()
    client = SimpleNamespace(verify=SimpleNamespace(v2=SimpleNamespace(services=lambda sid: service)))
    provider = TwilioEmailOTPProvider(client=client, verify_sid="VA123")
    provider.cancel("alice@example.com", "VE123")
    provider.cancel("alice@example.com", None)
    assert service.verifications.updates == [("VE123", {"status": "canceled"})]
