import pytest

from conftest import add_member, make_company, make_user
from rfp_portal.core.errors import AlreadyResolved, Conflict, NotFound, PermissionDenied
from rfp_portal.models import CompanyRole, Membership, VerificationStatus
from rfp_portal.schemas.company import CompanyCreate
from rfp_portal.services import company_service


def test_create_company_makes_founder_admin(session, bob):
    company = company_service.create_company(session, bob, CompanyCreate(name="  Initech  ", industry="Software"))

    assert company.name == "Initech"
    assert company.email_domain == "acme.com"
    membership = session.get(Membership, bob.id)
    assert membership.company_id == company.id
    assert membership.role == CompanyRole.ADMIN


def test_create_company_refused_while_in_another(session, alice, company):
    with pytest.raises(Conflict):
        company_service.create_company(session, alice, CompanyCreate(name="Second Co"))


def test_create_company_refused_with_pending_membership(session, bob, company):
    add_member(session, company, bob, CompanyRole.PENDING)
    with pytest.raises(Conflict):
        company_service.create_company(session, bob, CompanyCreate(name="Bob Co"))


def test_list_members_requires_active_membership(session, company, alice, bob, carol):
    add_member(session, company, bob)
    add_member(session, company, carol, CompanyRole.PENDING)

    roster = company_service.list_members(session, bob, company.id)
    assert {m.email: m.role for m in roster} == {
        "alice@acme.com": CompanyRole.ADMIN,
        "bob@acme.com": CompanyRole.MEMBER,
        "carol@gmail.com": CompanyRole.PENDING,
    }

    with pytest.raises(PermissionDenied):
        company_service.list_members(session, carol, company.id)


def test_platform_admin_can_view_any_roster(session, company, platform_admin):
    roster = company_service.list_members(session, platform_admin, company.id)
    assert [m.email for m in roster] == ["alice@acme.com"]


def test_search_ranks_prefix_matches_first(session):
    owners = [make_user(session, f"owner{i}@corp{i}.com") for i in range(4)]
    make_company(session, owners[0], name="Northwind Traders", email_domain="northwind.com")
    make_company(session, owners[1], name="The Wind Farm", email_domain="windfarm.io")
    make_company(session, owners[2], name="Windsor Ltd", email_domain="windsor.co.uk")
    breeze = make_company(session, owners[3], name="Breeze Energy", email_domain="breeze.com")
    breeze.industry = "Wind"
    session.commit()

    results = company_service.search_companies(session, "wind")
    assert [r.name for r in results] == [
        "Windsor Ltd", "The Wind Farm", "Northwind Traders", "Breeze Energy"
    ]

    assert len(company_service.search_companies(session, "wind", limit=2)) == 2


def test_search_is_case_insensitive_and_counts_active_members(session, company, bob, carol):
    add_member(session, company, bob)
    add_member(session, company, carol, CompanyRole.PENDING)

    results = company_service.search_companies(session, "ACME")
    assert len(results) == 1
    assert results[0].member_count == 2


def test_search_blank_term_returns_nothing(session, company):
    assert company_service.search_companies(session, "   ") == []


@pytest.mark.parametrize("email, stem", [
    ("jane@acme.com", "acme"),
    ("jane@mail.acme-corp.co.uk", "acme-corp"),
    ("jane@gmail.com", None),
    ("not-an-email", None),
])
def test_domain_stem(email, stem):
    assert company_service.domain_stem(email) == stem


def test_suggest_companies_by_email_domain(session, company, other_company):
    suggestions = company_service.suggest_companies(session, "newhire@acme.com")
    assert [s.name for s in suggestions] == ["Acme Corp"]
    assert "acme.com" in suggestions[0].suggested_reason


def test_no_suggestions_for_free_mail(session, company):
    assert company_service.suggest_companies(session, "someone@gmail.com") == []


def test_last_admin_cannot_leave(session, company, alice):
    with pytest.raises(Conflict):
        company_service.leave_company(session, alice)


def test_member_leaves(session, company, bob):
    add_member(session, company, bob)
    assert company_service.leave_company(session, bob) == company.id
    assert session.get(Membership, bob.id) is None


def test_leave_without_membership(session, carol):
    with pytest.raises(NotFound):
        company_service.leave_company(session, carol)


def test_remove_member(session, company, alice, bob):
    add_member(session, company, bob)
    company_service.remove_member(session, alice, company.id, bob.id)
    assert session.get(Membership, bob.id) is None


def test_member_cannot_remove_others(session, company, bob, carol):
    add_member(session, company, bob)
    add_member(session, company, carol)
    with pytest.raises(PermissionDenied):
        company_service.remove_member(session, bob, company.id, carol.id)


def test_remove_member_of_other_company_is_not_found(session, company, other_company, alice):
    olga_id = other_company.created_by
    with pytest.raises(NotFound):
        company_service.remove_member(session, alice, company.id, olga_id)


def test_verification_review(session, company, alice, platform_admin, reviewer):
    company_service.request_verification(session, alice, company.id)
    assert company.verification_status == VerificationStatus.PENDING

    with pytest.raises(PermissionDenied):
        company_service.review_verification(session, reviewer, company.id, approve=True)

    company_service.review_verification(session, platform_admin, company.id, approve=True)
    assert company.verification_status == VerificationStatus.VERIFIED

    with pytest.raises(AlreadyResolved):
        company_service.review_verification(session, platform_admin, company.id, approve=False)
