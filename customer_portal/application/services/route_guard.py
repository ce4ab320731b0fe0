"""Reconciles the two identity sources into one decision for a protected view.

A visitor reaches the portal either through the OTP session or as a primary
(Firebase) identity whose role is ``customer``. Either one is enough; neither
can authorize until it has settled at least once.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OtpSignal(str, Enum):
    UNRESOLVED = "unresolved"
    ABSENT = "absent"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class PrimarySignal:
    resolved: bool
    identity_id: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def pending(cls) -> "PrimarySignal":
        return cls(resolved=False)

    @classmethod
    def anonymous(cls) -> "PrimarySignal":
        return cls(resolved=True)


class ReconciledKind(str, Enum):
    NOT_RESOLVED = "not_resolved"
    CUSTOMER = "customer"
    NONE = "none"


@dataclass(frozen=True)
class ReconciledIdentity:
    kind: ReconciledKind
    source: Optional[str] = None
    identity_id: Optional[str] = None
    reason: Optional[str] = None


class GuardState(str, Enum):
    LOADING = "loading"
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    source: Optional[str] = None
    identity_id: Optional[str] = None
    return_to: Optional[str] = None
    reason: Optional[str] = None


SOURCE_PRIMARY = "primary_identity"
SOURCE_OTP = "otp_session"


def reconcile(otp: OtpSignal, primary: PrimarySignal, otp_identity_id: Optional[str] = None,
              customer_role: str = "customer") -> ReconciledIdentity:
    if not primary.resolved:
        return ReconciledIdentity(ReconciledKind.NOT_RESOLVED)

    if primary.identity_id and primary.role == customer_role:
        return ReconciledIdentity(ReconciledKind.CUSTOMER, SOURCE_PRIMARY, primary.identity_id)

    if otp == OtpSignal.UNRESOLVED:
        return ReconciledIdentity(ReconciledKind.NOT_RESOLVED)
    if otp == OtpSignal.VALID:
        return ReconciledIdentity(ReconciledKind.CUSTOMER, SOURCE_OTP, otp_identity_id)

    # a session object that failed validation does not count
    if otp == OtpSignal.INVALID:
        return ReconciledIdentity(ReconciledKind.NONE, reason="Your session has expired. Please sign in again.")
    if primary.identity_id:
        return ReconciledIdentity(ReconciledKind.NONE, reason="This account is not a customer account.")
    return ReconciledIdentity(ReconciledKind.NONE, reason="Please sign in to continue.")


def decide(otp: OtpSignal, primary: PrimarySignal, requested_location: Optional[str] = None,
           otp_identity_id: Optional[str] = None, customer_role: str = "customer") -> GuardDecision:
    """Map both signals to LOADING, UNAUTHORIZED (with a return-to location) or AUTHORIZED."""
    identity = reconcile(otp, primary, otp_identity_id, customer_role)
    if identity.kind == ReconciledKind.NOT_RESOLVED:
        return GuardDecision(GuardState.LOADING)
    if identity.kind == ReconciledKind.CUSTOMER:
        return GuardDecision(GuardState.AUTHORIZED, source=identity.source, identity_id=identity.identity_id)
    return GuardDecision(GuardState.UNAUTHORIZED, return_to=requested_location, reason=identity.reason)
