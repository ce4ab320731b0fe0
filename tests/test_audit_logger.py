import json
import logging

from customer_portal.infrastructure.audit.std_logger import StdAuditLogger
from customer_portal.utils import hash_email


def test_audit_entry_hashes_email(caplog):
    audit = StdAuditLogger()
    with caplog.at_level(logging.INFO):
        audit.log("otp_request", "Alice@Example.com", details={"challenge_id": "ch-1"})
    line = next(r.getMessage() for r in caplog.records if r.getMessage().startswith("AUDIT: "))
    entry = json.loads(line[len("AUDIT: "):])
    assert entry["action"] == "otp_request"
    assert entry["email_hash"] == hash_email("alice@example.com")
    assert "alice" not in line.lower()
    assert entry["details"] == {"challenge_id": "ch-1"}
