import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402

from rfp_portal.models import (  # noqa: E402
    Company, CompanyRole, Document, Membership, PlatformRole, RFP, User
)
from rfp_portal.services.notification_service import notification_service  # noqa: E402


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def emit(self, event_type, user_id, reference_id, payload):
        self.events.append((event_type, user_id, reference_id, payload))

    def recipients(self, event_type):
        return {user_id for kind, user_id, _, _ in self.events if kind == event_type}


class FailingNotifier:
    def emit(self, event_type, user_id, reference_id, payload):
        raise RuntimeError("notification sink is down")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def default_notifier_bind(engine, monkeypatch):
    """Services called without a notifier write their rows to the test database."""
    monkeypatch.setattr(notification_service, "bind", engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, 0)


def make_user(session, email, full_name=None, role=PlatformRole.BIDDER):
    user = User(email=email, full_name=full_name or email.split("@")[0], platform_role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_company(session, admin, name="Acme Corp", email_domain="acme.com"):
    company = Company(name=name, email_domain=email_domain, created_by=admin.id)
    session.add(company)
    session.commit()
    session.add(Membership(user_id=admin.id, company_id=company.id, role=CompanyRole.ADMIN))
    session.commit()
    session.refresh(company)
    return company


def add_member(session, company, user, role=CompanyRole.MEMBER):
    membership = Membership(user_id=user.id, company_id=company.id, role=role)
    session.add(membership)
    session.commit()
    return membership


@pytest.fixture
def platform_admin(session):
    return make_user(session, "admin@portal.example", "Pat Admin", PlatformRole.ADMIN)


@pytest.fixture
def reviewer(session):
    return make_user(session, "reviewer@client.example", "Rita Reviewer", PlatformRole.CLIENT_REVIEWER)


@pytest.fixture
def alice(session):
    return make_user(session, "alice@acme.com", "Alice Admin")


@pytest.fixture
def bob(session):
    return make_user(session, "bob@acme.com", "Bob Bidder")


@pytest.fixture
def carol(session):
    return make_user(session, "carol@gmail.com", "Carol Consultant")


@pytest.fixture
def company(session, alice):
    return make_company(session, alice)


@pytest.fixture
def other_company(session):
    owner = make_user(session, "olga@globex.com", "Olga Owner")
    return make_company(session, owner, name="Globex", email_domain="globex.com")


@pytest.fixture
def rfp(session):
    rfp = RFP(title="Bridge Maintenance")
    session.add(rfp)
    session.commit()
    session.refresh(rfp)
    return rfp


@pytest.fixture
def documents(session, rfp):
    docs = {
        "public": Document(rfp_id=rfp.id, title="Overview", file_path="bridge/overview.pdf"),
        "nda": Document(rfp_id=rfp.id, title="Technical Annex", file_path="bridge/annex.pdf",
                        requires_nda=True),
        "approval": Document(rfp_id=rfp.id, title="Pricing", file_path="bridge/pricing.pdf",
                             requires_approval=True),
        "both": Document(rfp_id=rfp.id, title="Site Drawings", file_path="bridge/drawings.pdf",
                         requires_nda=True, requires_approval=True),
    }
    for doc in docs.values():
        session.add(doc)
    session.commit()
    for doc in docs.values():
        session.refresh(doc)
    return docs
