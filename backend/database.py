"""
Competitor Intel - Database Module (SQLAlchemy 2.0)

Three tables: competitors, sources, claims.

- Sources and claims are owned by their competitor (ON DELETE CASCADE).
- A claim's source_id is a non-owning reference (ON DELETE SET NULL).
- Exactly one competitor is flagged is_baseline; it is seeded by
  ensure_baseline() on startup and protected by the catalog service.

USAGE:
------
    from database import get_db, SessionLocal
    @app.get("/items")
    def get_items(db: Session = Depends(get_db)):
        return list_competitors(db)

Helper functions below are the storage interface used by the services and
the CSV importer. Lookups return None on absence; writes raise ConflictError
on unique-constraint violations and StorageError on any other failure.
"""

from sqlalchemy import (
    create_engine, Column, Integer, String, DateTime, Text, Boolean, ForeignKey,
    Index, event, select, update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, relationship, declarative_base, Session
from datetime import datetime
from typing import List, Optional
import os
import logging

from constants import BASELINE_NAME, DEFAULT_TIER
from errors import ConflictError, StorageError

logger = logging.getLogger(__name__)

# =============================================================================
# DATABASE URL CONFIGURATION
# =============================================================================

def _get_database_url() -> str:
    """Get sync database URL, normalising async driver prefixes."""
    url = os.getenv("DATABASE_URL")
    if url:
        if url.startswith("postgresql+asyncpg://"):
            return url.replace("postgresql+asyncpg://", "postgresql://")
        return url

    # Default for development (SQLite)
    return "sqlite:///./competitor_intel.db"


DATABASE_URL = _get_database_url()

if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        pool_pre_ping=True,
        echo=os.getenv("DB_ECHO", "false").lower() == "true"
    )
else:
    # PostgreSQL settings
    engine = create_engine(
        DATABASE_URL,
        pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "20")),
        pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
        pool_pre_ping=True,
        echo=os.getenv("DB_ECHO", "false").lower() == "true"
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


if DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Enable foreign key enforcement so cascades and SET NULL fire."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# =============================================================================
# SESSION DEPENDENCY
# =============================================================================

def get_db():
    """
    Sync database session dependency (FastAPI).

    Usage:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ============== Database Models ==============

class Competitor(Base):
    __tablename__ = "competitors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    slug = Column(String, index=True, nullable=False)
    website = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    tag = Column(String, nullable=False, default=DEFAULT_TIER)  # core, adjacent, contrast
    is_baseline = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sources = relationship(
        "Source", back_populates="competitor",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    claims = relationship(
        "Claim", back_populates="competitor",
        cascade="all, delete-orphan", passive_deletes=True,
    )


class Source(Base):
    """A web page, whitepaper, press item or post documenting a competitor."""
    __tablename__ = "sources"

    id = Column(Integer, primary_key=True, index=True)
    competitor_id = Column(
        Integer, ForeignKey("competitors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url = Column(String, nullable=False)
    source_type = Column(String, nullable=False)  # website, whitepaper, press, social, other
    captured_at = Column(DateTime, default=datetime.utcnow)

    competitor = relationship("Competitor", back_populates="sources")
    claims = relationship("Claim", back_populates="source", passive_deletes=True)


class Claim(Base):
    """A single categorised fact about a competitor."""
    __tablename__ = "claims"

    id = Column(Integer, primary_key=True, index=True)
    competitor_id = Column(
        Integer, ForeignKey("competitors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source_id = Column(
        Integer, ForeignKey("sources.id", ondelete="SET NULL"), nullable=True, index=True
    )
    category = Column(String, nullable=False)
    claim_text = Column(Text, nullable=False)  # Short summary shown in the matrix
    claim_type = Column(String, nullable=False)  # explicit, implied

    # Denormalized verification state, written only by apply_claim_status()
    status = Column(String, nullable=False, default="pending")  # pending, verified, rejected
    verified = Column(Boolean, nullable=False, default=False)
    verified_by = Column(String, nullable=True)

    citation = Column(Text, nullable=True)
    internal_note = Column(Text, nullable=True)
    # Free-standing evidence, independent of the linked Source row
    source_url = Column(String, nullable=True)
    verbatim_quote = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    competitor = relationship("Competitor", back_populates="claims")
    source = relationship("Source", back_populates="claims")


# Composite indexes for the natural-key lookups used by the CSV importer
Index('ix_source_competitor_url', Source.competitor_id, Source.url)
Index('ix_claim_competitor_category', Claim.competitor_id, Claim.category)


# =============================================================================
# TABLE CREATION & BASELINE SEEDING
# =============================================================================

def init_db():
    """Create all tables (schema changes are applied by hand-run scripts)."""
    Base.metadata.create_all(bind=engine)


def ensure_baseline(session: Session, name: str = BASELINE_NAME) -> Competitor:
    """Return the baseline competitor, creating it if the table has none."""
    from utils.text_utils import generate_slug

    baseline = session.execute(
        select(Competitor).where(Competitor.is_baseline.is_(True))
    ).scalars().first()
    if baseline:
        return baseline

    logger.info(f"Seeding baseline competitor: {name}")
    return insert_row(session, Competitor(
        name=name,
        slug=generate_slug(name),
        tag=DEFAULT_TIER,
        is_baseline=True,
    ))


# =============================================================================
# STORAGE HELPERS - point lookups (None on absence)
# =============================================================================

def get_competitor_by_id(session: Session, competitor_id: int) -> Optional[Competitor]:
    return session.get(Competitor, competitor_id)


def get_competitor_by_name(session: Session, name: str) -> Optional[Competitor]:
    """Exact, case-sensitive name match."""
    return session.execute(
        select(Competitor).where(Competitor.name == name)
    ).scalars().first()


def get_baseline_competitor(session: Session) -> Optional[Competitor]:
    return session.execute(
        select(Competitor).where(Competitor.is_baseline.is_(True))
    ).scalars().first()


def get_source_by_id(session: Session, source_id: int) -> Optional[Source]:
    return session.get(Source, source_id)


def get_source_by_url(session: Session, competitor_id: int, url: str) -> Optional[Source]:
    return session.execute(
        select(Source).where(Source.competitor_id == competitor_id, Source.url == url)
    ).scalars().first()


def get_claim_by_id(session: Session, claim_id: int) -> Optional[Claim]:
    return session.get(Claim, claim_id)


def find_claim(session: Session, competitor_id: int, category: str, claim_text: str) -> Optional[Claim]:
    """Look up a claim by its (competitor_id, category, claim_text) natural key."""
    return session.execute(
        select(Claim).where(
            Claim.competitor_id == competitor_id,
            Claim.category == category,
            Claim.claim_text == claim_text,
        )
    ).scalars().first()


# =============================================================================
# STORAGE HELPERS - lists
# =============================================================================

def list_competitors(session: Session, include_baseline: bool = True) -> List[Competitor]:
    query = select(Competitor).order_by(Competitor.name)
    if not include_baseline:
        query = query.where(Competitor.is_baseline.is_(False))
    return list(session.execute(query).scalars().all())


def list_sources_for_competitor(session: Session, competitor_id: int) -> List[Source]:
    """Sources for a competitor, most recently captured first."""
    return list(session.execute(
        select(Source)
        .where(Source.competitor_id == competitor_id)
        .order_by(Source.captured_at.desc(), Source.id.desc())
    ).scalars().all())


def list_claims_for_competitor(session: Session, competitor_id: int) -> List[Claim]:
    """Claims for a competitor, by category then newest first."""
    return list(session.execute(
        select(Claim)
        .where(Claim.competitor_id == competitor_id)
        .order_by(Claim.category, Claim.created_at.desc(), Claim.id.desc())
    ).scalars().all())


def list_claims_for_source(session: Session, source_id: int) -> List[Claim]:
    return list(session.execute(
        select(Claim).where(Claim.source_id == source_id)
    ).scalars().all())


def list_claims(session: Session, competitor_ids: Optional[List[int]] = None) -> List[Claim]:
    query = select(Claim).order_by(Claim.id)
    if competitor_ids is not None:
        query = query.where(Claim.competitor_id.in_(competitor_ids))
    return list(session.execute(query).scalars().all())


# =============================================================================
# STORAGE HELPERS - writes
# =============================================================================

def _commit(session: Session, action: str):
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Constraint violation during {action}: {e.orig}")
        raise ConflictError(f"Conflict during {action}") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Storage failure during {action}: {e}")
        raise StorageError(f"Storage failure during {action}") from e


def insert_row(session: Session, row):
    """Insert one row and return it refreshed."""
    session.add(row)
    _commit(session, f"insert into {row.__tablename__}")
    session.refresh(row)
    return row


def update_row(session: Session, row, **values):
    """Apply values to a loaded row and persist them."""
    for key, value in values.items():
        setattr(row, key, value)
    _commit(session, f"update of {row.__tablename__} {row.id}")
    session.refresh(row)
    return row


def delete_row(session: Session, row):
    table, row_id = row.__tablename__, row.id
    session.delete(row)
    _commit(session, f"delete from {table} {row_id}")


def detach_claims_from_source(session: Session, source_id: int) -> int:
    """Null out source_id on every claim citing the source. Returns rows touched."""
    result = session.execute(
        update(Claim).where(Claim.source_id == source_id).values(source_id=None)
    )
    _commit(session, f"detach claims from source {source_id}")
    return result.rowcount or 0
