import pytest

from customer_portal.application.ports.customer_repo import IdentityDto
from customer_portal.exceptions import InvalidInput
from customer_portal.application.services.session_manager import SessionManager, SessionState
from customer_portal.infrastructure.persistence.memory.session_store_memory import InMemorySessionStore

ALICE = IdentityDto(id="cust-1", email="alice@example.com")
MALLORY = IdentityDto(id="cust-2", email="mallory@example.com")


class InterleavingStore(InMemorySessionStore):
    """Lets another request change the active company right after each load."""

    def __init__(self):
        super().__init__()
        self.on_load = None

    def load(self, session_id):
        record = super().load(session_id)
        if self.on_load is not None:
            hook, self.on_load = self.on_load, None
            hook()
        return record


class BrokenStore:
    def load(self, session_id):
        raise ConnectionError("store offline")

    def save(self, record):
        raise ConnectionError("store offline")

    def delete(self, session_id):
        raise ConnectionError("store offline")


@pytest.fixture
def manager(clock):
    return SessionManager(InMemorySessionStore(), "sess-1", ttl_minutes=30, clock=clock)


def test_no_record_means_no_session(manager):
    status = manager.validate()
    assert status.state == SessionState.NO_SESSION
    assert not status.valid


def test_open_session_is_valid(manager):
    manager.open(ALICE)
    status = manager.validate()
    assert status.valid
    assert status.record.identity_id == "cust-1"


def test_extend_at_29_keeps_session_valid_until_59(manager, clock):
    manager.open(ALICE)
    clock.advance(minutes=29)
    manager.extend()
    clock.advance(minutes=29)  # t=58
    assert manager.validate().state == SessionState.VALID
    clock.advance(minutes=2)  # t=60
    assert manager.validate().state == SessionState.EXPIRED


def test_expiry_is_deterministic_across_calls(manager, clock):
    manager.open(ALICE)
    clock.advance(minutes=31)
    states = {manager.validate().state for _ in range(5)}
    assert states == {SessionState.EXPIRED}


def test_session_at_exact_ttl_is_still_valid(manager, clock):
    manager.open(ALICE)
    clock.advance(minutes=30)
    assert manager.validate().valid


def test_extend_moves_last_activity_forward(manager, clock):
    opened = manager.open(ALICE)
    clock.advance(minutes=5)
    extended = manager.extend()
    assert extended.last_activity_at > opened.last_activity_at
    assert extended.issued_at == opened.issued_at


def test_extend_does_not_resurrect_expired_session(manager, clock):
    manager.open(ALICE)
    clock.advance(minutes=45)
    assert manager.extend() is None
    assert manager.validate().state == SessionState.EXPIRED


def test_extend_without_session_is_noop(manager):
    assert manager.extend() is None
    assert manager.validate().state == SessionState.NO_SESSION


def test_reopen_replaces_expired_record(manager, clock):
    manager.open(ALICE)
    clock.advance(minutes=45)
    manager.open(ALICE)
    assert manager.validate().valid


def test_revoke_clears_session(manager):
    manager.open(ALICE)
    manager.revoke()
    assert manager.validate().state == SessionState.NO_SESSION


def test_revoked_flag_is_reported(manager):
    record = manager.open(ALICE)
    record.revoked = True
    manager.store.save(record)
    assert manager.validate().state == SessionState.REVOKED


def test_store_failure_fails_closed(clock):
    manager = SessionManager(BrokenStore(), "sess-1", clock=clock)
    status = manager.validate()
    assert status.state == SessionState.EXPIRED
    assert not status.valid
    # revoke must not raise even when the store is down
    manager.revoke()


def test_active_company_is_kept_on_the_record(manager):
    manager.open(ALICE)
    manager.set_active_company("C2")
    assert manager.validate().record.active_company_id == "C2"


def test_open_refuses_to_take_over_a_live_session(manager):
    manager.open(ALICE)
    with pytest.raises(InvalidInput):
        manager.open(MALLORY)
    assert manager.validate().record.identity_id == "cust-1"


def test_extend_keeps_company_chosen_by_a_concurrent_request(clock):
    store = InterleavingStore()
    manager = SessionManager(store, "sess-1", ttl_minutes=30, clock=clock)
    manager.open(ALICE)
    manager.set_active_company("C1")

    clock.advance(minutes=5)
    store.on_load = lambda: store.set_active_company("sess-1", "C2")
    extended = manager.extend()

    record = manager.validate().record
    assert record.active_company_id == "C2"
    assert record.last_activity_at == extended.last_activity_at == clock()
