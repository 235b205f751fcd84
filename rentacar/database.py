"""
SQLAlchemy setup for the rental/payment store
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def create_session_factory(database_url: str) -> sessionmaker:
    """Create engine and session factory, creating tables if missing"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    engine = create_engine(database_url, connect_args=connect_args)
    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine):
    """Create all tables"""
    # Import models so they register on Base.metadata
    from rentacar import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
