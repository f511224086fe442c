from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from fantasy_league.core.config import settings

connect_args = {}
if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
    # SQLite connections are shared with the scheduler thread
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    pool_pre_ping=True, # Checks the connection is alive before using it
    echo=False, # Set to True to see the SQL statements in the terminal
    connect_args=connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def transaction(db: Session):
    """
    One atomic unit of work: commits when the block finishes, rolls back
    everything written inside it when it raises.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
