"""
Competitor Intel - Test Configuration and Fixtures

Every test runs against a throwaway SQLite file. Tables are dropped and
recreated (with the baseline competitor seeded) before each test.
"""
import os
import sys
import pytest
from typing import Generator

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment before any app module reads it
os.environ['DATABASE_URL'] = 'sqlite:///./test_competitor_intel.db'
os.environ['ACCESS_PASSWORD'] = 'test-password'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ.setdefault('SECRET_KEY', 'test-secret-key-for-pytest-do-not-use-in-prod')

from fastapi.testclient import TestClient  # noqa: E402

TEST_PASSWORD = 'test-password'


# ==============================================================================
# Database Fixtures
# ==============================================================================

@pytest.fixture(scope="session")
def engine():
    """The app engine, pointed at the test database by DATABASE_URL."""
    from database import Base, engine as app_engine
    yield app_engine
    Base.metadata.drop_all(bind=app_engine)
    app_engine.dispose()


@pytest.fixture(autouse=True)
def reset_database(engine):
    """Fresh schema plus the seeded baseline for every test."""
    from database import Base, SessionLocal, ensure_baseline

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        ensure_baseline(session)
    finally:
        session.close()
    yield


@pytest.fixture
def db_session(engine) -> Generator:
    """Create a new database session for each test."""
    from database import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def baseline(db_session):
    from database import get_baseline_competitor
    return get_baseline_competitor(db_session)


# ==============================================================================
# API Fixtures
# ==============================================================================

@pytest.fixture
def test_client(engine) -> Generator:
    """Unauthenticated client (no session cookie)."""
    from main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_client(engine) -> Generator:
    """Client holding a valid eh_session cookie."""
    from main import app

    with TestClient(app) as client:
        response = client.post("/api/auth", json={"password": TEST_PASSWORD})
        assert response.status_code == 200
        yield client


# ==============================================================================
# Data Fixtures
# ==============================================================================

@pytest.fixture
def make_competitor(db_session):
    """Factory creating non-baseline competitors through the catalog service."""
    from services import catalog_service

    def _make(name, tag="core", website=None):
        return catalog_service.create_competitor(db_session, name=name, tag=tag, website=website)

    return _make


@pytest.fixture
def make_claim(db_session):
    from services import catalog_service

    def _make(competitor, category, text, verified=False, claim_type="explicit"):
        claim = catalog_service.create_claim(
            db_session,
            competitor_id=competitor.id,
            category=category,
            claim_text=text,
            claim_type=claim_type,
        )
        if verified:
            claim = catalog_service.set_claim_verified(db_session, claim.id, True)
        return claim

    return _make


SAMPLE_CSV = (
    "competitor_name,competitor_website,competitor_tag,source_url,source_type,"
    "claim_category,claim_text,claim_type,citation,internal_note\n"
    "Ledn,https://ledn.io,core,https://ledn.io/loans,website,Custody model,"
    "Custodial via third-party partners,explicit,Loans page,\n"
    "Ledn,https://ledn.io,core,https://ledn.io/loans,website,Term length,12 month terms,explicit,,\n"
    "Ledn,https://ledn.io,core,https://ledn.io/blog,press,Loan currency,USD and USDC,implied,,check\n"
    "Firefish,,adjacent,https://firefish.io,website,Custody model,"
    "\"Multisig escrow, no rehypothecation\",explicit,,\n"
)


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV
