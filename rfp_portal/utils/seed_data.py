# rfp_portal/utils/seed_data.py
from uuid import uuid4

from sqlmodel import Session
from rfp_portal.core.database import engine, create_db_and_tables
from rfp_portal.core.security import create_access_token
from rfp_portal.models.users import User
from rfp_portal.models.company import Company, Membership
from rfp_portal.models.rfp import RFP, Document
from rfp_portal.models.types import CompanyRole, PlatformRole


def create_seed_data(bind=None):
    """Demo principals, two companies and one RFP with a document behind each gate."""
    create_db_and_tables()
    with Session(bind if bind is not None else engine) as session:
        admin = User(
            id=uuid4(), email="admin@rfp-portal.local",
            full_name="Platform Admin", platform_role=PlatformRole.ADMIN
        )
        reviewer = User(
            id=uuid4(), email="reviewer@client.example",
            full_name="Client Reviewer", platform_role=PlatformRole.CLIENT_REVIEWER
        )
        bidders = [
            User(
                id=uuid4(),
                email=f"bidder{i}@acme{i}.example",
                full_name=f"Bidder {i}",
                platform_role=PlatformRole.BIDDER
            ) for i in range(1, 5)
        ]

        companies = [
            Company(
                id=uuid4(),
                name=f"Acme {i}",
                industry="Construction",
                email_domain=f"acme{i}.example",
                created_by=bidders[i - 1].id
            ) for i in range(1, 3)
        ]

        rfp = RFP(id=uuid4(), title="Bridge Maintenance 2026")
        documents = [
            Document(rfp_id=rfp.id, title="Overview", file_path=f"{rfp.id}/overview.pdf"),
            Document(rfp_id=rfp.id, title="Technical Annex", file_path=f"{rfp.id}/annex.pdf",
                     requires_nda=True),
            Document(rfp_id=rfp.id, title="Pricing Schedule", file_path=f"{rfp.id}/pricing.pdf",
                     requires_approval=True),
            Document(rfp_id=rfp.id, title="Site Drawings", file_path=f"{rfp.id}/drawings.pdf",
                     requires_nda=True, requires_approval=True),
        ]

        for row in [admin, reviewer, *bidders, *companies, rfp]:
            session.add(row)
        session.commit()

        memberships = [
            Membership(user_id=bidders[0].id, company_id=companies[0].id, role=CompanyRole.ADMIN),
            Membership(user_id=bidders[1].id, company_id=companies[1].id, role=CompanyRole.ADMIN),
        ]
        for row in memberships + documents:
            session.add(row)
        session.commit()

        print("Seed data created:")
        for user in [admin, reviewer, *bidders]:
            print(f"{user.email} ({user.platform_role.value}): {create_access_token({'sub': str(user.id)}, 24 * 60)}")
        return rfp.id


if __name__ == "__main__":
    create_seed_data()
