import pytest

from customer_portal.application.services.otp_challenge_service import OTPChallengeService
from customer_portal.exceptions import (
    ChallengeExpired,
    ChallengeMismatch,
    ChallengeNotFound,
    DeliveryFailed,
    InvalidInput,
    TooManyRequests,
)
from customer_portal.infrastructure.persistence.memory.challenge_repository_memory import InMemoryChallengeRepository
from customer_portal.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from customer_portal.infrastructure.tokens.jwt_issuer import JwtTokenIssuer


class FakeOTP:
    """Hands out codes 100001, 100002, ... and only accepts the latest per email."""

    def __init__(self):
        self.sent = []
        self.latest = {}
        self.fail_send = False
        self.fail_verify = False
        self.fail_cancel = False
        self.calls = []

    def send(self, email: str) -> str:
        if self.fail_send:
            raise RuntimeError("smtp down")
        code = str(100001 + len(self.sent))
        self.sent.append((email, code))
        self.calls.append(("send", email))
        self.latest[email] = code
        return f"ref-{len(self.sent)}"

    def verify(self, email: str, code: str) -> bool:
        if self.fail_verify:
            raise RuntimeError("verify down")
        return self.latest.get(email) == code

    def cancel(self, email: str, delivery_ref) -> None:
        self.calls.append(("cancel", delivery_ref))
        if self.fail_cancel:
            raise RuntimeError("cancel refused")


class FakeAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, email, identity_id=None, session_id=None, success=True, details=None):
        self.entries.append((action, success, details or {}))


def make_service(clock, otp=None, rate_limiter=None, audit=None, **kwargs):
    issuer = JwtTokenIssuer("test-secret", clock=clock)
    return OTPChallengeService(
        challenge_repo=InMemoryChallengeRepository(),
        otp_provider=otp or FakeOTP(),
        token_issuer=issuer,
        rate_limiter=rate_limiter,
        audit=audit,
        clock=clock,
        **kwargs,
    )


def test_request_challenge_sends_code_and_sets_expiry(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    ticket = svc.request_challenge("  Alice@Example.com ")
    assert ticket.challenge_issued is True
    assert otp.sent[0][0] == "alice@example.com"
    assert (ticket.expires_at - clock()).total_seconds() == 600


def test_verify_returns_exchange_token_and_session_hint(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    ticket = svc.request_challenge("alice@example.com")
    result = svc.verify_challenge("alice@example.com", otp.latest["alice@example.com"])
    assert result.challenge_id == ticket.challenge_id
    assert result.exchange_token
    assert result.session_hint
    claims = svc.token_issuer.read_exchange_token(result.exchange_token)
    assert claims.email == "alice@example.com"
    assert claims.challenge_id == ticket.challenge_id
    assert claims.session_hint == result.session_hint


def test_reissue_supersedes_previous_code(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    svc.request_challenge("alice@example.com")
    first_code = otp.latest["alice@example.com"]
    clock.advance(seconds=30)
    svc.request_challenge("alice@example.com")
    second_code = otp.latest["alice@example.com"]

    with pytest.raises(ChallengeMismatch):
        svc.verify_challenge("alice@example.com", first_code)
    assert svc.verify_challenge("alice@example.com", second_code).exchange_token


def test_reissue_cancels_the_superseded_code_before_sending(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    svc.request_challenge("alice@example.com")
    svc.request_challenge("alice@example.com")
    assert otp.calls == [
        ("send", "alice@example.com"),
        ("cancel", "ref-1"),
        ("send", "alice@example.com"),
    ]


def test_cancel_failure_does_not_block_the_new_code(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    svc.request_challenge("alice@example.com")
    otp.fail_cancel = True
    ticket = svc.request_challenge("alice@example.com")
    assert svc.challenge_repo.latest_active("alice@example.com").id == ticket.challenge_id


def test_code_is_consumed_once(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    svc.request_challenge("alice@example.com")
    code = otp.latest["alice@example.com"]
    svc.verify_challenge("alice@example.com", code)
    with pytest.raises(ChallengeNotFound):
        svc.verify_challenge("alice@example.com", code)


def test_code_verified_after_eleven_minutes_is_expired_every_time(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    svc.request_challenge("alice@example.com")
    code = otp.latest["alice@example.com"]
    clock.advance(minutes=11)
    with pytest.raises(ChallengeExpired):
        svc.verify_challenge("alice@example.com", code)
    with pytest.raises(ChallengeExpired):
        svc.verify_challenge("alice@example.com", code)


def test_code_at_exact_ttl_is_still_accepted(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    svc.request_challenge("alice@example.com")
    clock.advance(minutes=10)
    assert svc.verify_challenge("alice@example.com", otp.latest["alice@example.com"])


def test_verify_without_challenge_is_not_found(clock):
    svc = make_service(clock)
    with pytest.raises(ChallengeNotFound):
        svc.verify_challenge("nobody@example.com", "123456")


@pytest.mark.parametrize("email,code", [
    ("not-an-email", "123456"),
    ("", "123456"),
    ("alice@example.com", "12345"),
    ("alice@example.com", "12a456"),
    ("alice@example.com", "１２３４５６"),
])
def test_malformed_input_is_rejected(clock, email, code):
    svc = make_service(clock)
    with pytest.raises(InvalidInput):
        svc.verify_challenge(email, code)


def test_request_with_invalid_email_sends_nothing(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    with pytest.raises(InvalidInput):
        svc.request_challenge("alice at example")
    assert otp.sent == []


def test_too_many_wrong_codes_burn_the_challenge(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp, max_attempts=3)
    svc.request_challenge("alice@example.com")
    good = otp.latest["alice@example.com"]
    for _ in range(2):
        with pytest.raises(ChallengeMismatch):
            svc.verify_challenge("alice@example.com", "000000")
    with pytest.raises(ChallengeMismatch, match="Too many"):
        svc.verify_challenge("alice@example.com", "000000")
    with pytest.raises(ChallengeNotFound):
        svc.verify_challenge("alice@example.com", good)


def test_verify_channel_failure_counts_as_mismatch(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    svc.request_challenge("alice@example.com")
    otp.fail_verify = True
    with pytest.raises(ChallengeMismatch):
        svc.verify_challenge("alice@example.com", otp.latest["alice@example.com"])


def test_request_is_rate_limited_per_email(clock):
    audit = FakeAudit()
    svc = make_service(clock, rate_limiter=InMemoryRateLimiter(), audit=audit, max_requests=2)
    svc.request_challenge("alice@example.com")
    svc.request_challenge("alice@example.com")
    with pytest.raises(TooManyRequests):
        svc.request_challenge("alice@example.com")
    # other addresses are unaffected
    svc.request_challenge("bob@example.com")
    assert ("otp_request", False, {"reason": "rate_limited"}) in audit.entries


def test_delivery_failure_leaves_no_pending_challenge(clock):
    otp = FakeOTP()
    svc = make_service(clock, otp)
    otp.fail_send = True
    with pytest.raises(DeliveryFailed):
        svc.request_challenge("alice@example.com")
    assert svc.challenge_repo.latest_active("alice@example.com") is None
