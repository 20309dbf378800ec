"""
Database schema and connection management.

Uses SQLAlchemy for the analysis job records (SQLite by default).
"""

from datetime import datetime
from pathlib import Path

from sqlalchemy import create_engine, Column, String, Text, DateTime, JSON
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


class AnalysisJob(Base):
    """One requested analysis run for an employer."""

    __tablename__ = "live_analysis_jobs"

    id = Column(String, primary_key=True)
    employer_id = Column(String, nullable=True)
    status = Column(String, nullable=False, default=STATUS_PENDING)
    result_data = Column(JSON, nullable=True)  # {"vacancies": [...]}
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)
    completed_at = Column(DateTime, nullable=True)


def init_database(database_url: str) -> Engine:
    """
    Initialize database and create tables.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///data/jobrank.db``

    Returns:
        Engine bound to the database
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(database_url)
    Base.metadata.create_all(engine)
    return engine


def get_session(engine: Engine):
    """
    Get database session.

    Args:
        engine: Engine returned by ``init_database``

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=engine)
    return Session()
