import pytest

from customer_portal.application.ports.customer_repo import IdentityDto
from customer_portal.application.ports.membership_repo import CompanyDto
from customer_portal.application.services.membership_resolver import TenantMembershipResolver
from customer_portal.exceptions import NotAMember

ALICE = IdentityDto(id="cust-1", email="alice@example.com")


class FakeMemberships:
    def __init__(self, memberships):
        self.memberships = memberships
        self.companies = {
            "C1": CompanyDto(id="C1", name="Acme Plumbing"),
            "C2": CompanyDto(id="C2", name="Bright Electric", code="BE"),
        }

    def list_company_ids(self, customer_id):
        return list(self.memberships.get(customer_id, []))

    def get_companies(self, company_ids):
        return [self.companies[c] for c in company_ids if c in self.companies]


def test_first_membership_is_default_and_non_member_is_rejected():
    resolver = TenantMembershipResolver(FakeMemberships({"cust-1": ["C1", "C2"]}))
    view = resolver.load(ALICE)
    assert view.companies == ["C1", "C2"]
    assert view.active == "C1"
    with pytest.raises(NotAMember):
        resolver.select_company("C3")
    assert resolver.view.active == "C1"


def test_select_member_company():
    resolver = TenantMembershipResolver(FakeMemberships({"cust-1": ["C1", "C2"]}))
    resolver.load(ALICE)
    resolver.select_company("C2")
    assert resolver.view.active == "C2"


def test_preferred_company_is_kept_when_still_a_member():
    resolver = TenantMembershipResolver(FakeMemberships({"cust-1": ["C1", "C2"]}))
    assert resolver.load(ALICE, preferred="C2").active == "C2"
    assert resolver.load(ALICE, preferred="C9").active == "C1"


def test_no_memberships_is_valid():
    resolver = TenantMembershipResolver(FakeMemberships({}))
    view = resolver.load(ALICE)
    assert view.companies == []
    assert view.active is None
    assert resolver.companies_detail() == []


def test_duplicate_memberships_are_collapsed_in_order():
    resolver = TenantMembershipResolver(FakeMemberships({"cust-1": ["C2", "C1", "C2"]}))
    assert resolver.load(ALICE).companies == ["C2", "C1"]


def test_companies_detail_follows_membership_order():
    resolver = TenantMembershipResolver(FakeMemberships({"cust-1": ["C2", "C1"]}))
    resolver.load(ALICE)
    assert [c.name for c in resolver.companies_detail()] == ["Bright Electric", "Acme Plumbing"]
