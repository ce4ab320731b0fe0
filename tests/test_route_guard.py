import pytest

from customer_portal.application.services.route_guard import (
    GuardState,
    OtpSignal,
    PrimarySignal,
    ReconciledKind,
    SOURCE_OTP,
    SOURCE_PRIMARY,
    decide,
    reconcile,
)

CUSTOMER = PrimarySignal(resolved=True, identity_id="uid-1", role="customer")
STAFF = PrimarySignal(resolved=True, identity_id="uid-2", role="field_tech")
ANON = PrimarySignal.anonymous()
PENDING = PrimarySignal.pending()


def test_loading_while_primary_identity_unresolved():
    for otp in OtpSignal:
        assert decide(otp, PENDING, "/billing").state == GuardState.LOADING


def test_loading_while_otp_unresolved_and_primary_not_customer():
    assert decide(OtpSignal.UNRESOLVED, ANON).state == GuardState.LOADING
    assert decide(OtpSignal.UNRESOLVED, STAFF).state == GuardState.LOADING


def test_primary_customer_authorizes_without_otp_session():
    for otp in OtpSignal:
        decision = decide(otp, CUSTOMER)
        assert decision.state == GuardState.AUTHORIZED
        assert decision.source == SOURCE_PRIMARY
        assert decision.identity_id == "uid-1"


def test_valid_otp_session_authorizes():
    decision = decide(OtpSignal.VALID, ANON, otp_identity_id="cust-1")
    assert decision.state == GuardState.AUTHORIZED
    assert decision.source == SOURCE_OTP
    assert decision.identity_id == "cust-1"


def test_stale_session_never_authorizes():
    decision = decide(OtpSignal.INVALID, ANON, "/billing")
    assert decision.state == GuardState.UNAUTHORIZED
    assert decision.return_to == "/billing"
    assert "expired" in decision.reason


def test_staff_without_session_is_unauthorized_with_reason():
    decision = decide(OtpSignal.ABSENT, STAFF, "/jobs")
    assert decision.state == GuardState.UNAUTHORIZED
    assert decision.return_to == "/jobs"
    assert decision.reason == "This account is not a customer account."


def test_anonymous_visitor_is_sent_to_sign_in():
    decision = decide(OtpSignal.ABSENT, ANON, "/invoices/42")
    assert decision.state == GuardState.UNAUTHORIZED
    assert decision.return_to == "/invoices/42"
    assert decision.reason


def test_role_comparison_uses_configured_role():
    client = PrimarySignal(resolved=True, identity_id="uid-3", role="client")
    assert decide(OtpSignal.ABSENT, client, customer_role="client").state == GuardState.AUTHORIZED
    assert decide(OtpSignal.ABSENT, client).state == GuardState.UNAUTHORIZED


@pytest.mark.parametrize("otp,primary", [
    (OtpSignal.VALID, ANON),
    (OtpSignal.ABSENT, CUSTOMER),
    (OtpSignal.VALID, CUSTOMER),
])
def test_repeated_evaluation_is_stable(otp, primary):
    decisions = {decide(otp, primary, "/home", otp_identity_id="cust-1") for _ in range(10)}
    assert len(decisions) == 1
    assert decisions.pop().state == GuardState.AUTHORIZED


def test_reconcile_is_a_tagged_union():
    assert reconcile(OtpSignal.VALID, ANON, "cust-1").kind == ReconciledKind.CUSTOMER
    assert reconcile(OtpSignal.ABSENT, ANON).kind == ReconciledKind.NONE
    assert reconcile(OtpSignal.VALID, PENDING).kind == ReconciledKind.NOT_RESOLVED
