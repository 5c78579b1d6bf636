# primavera/utils/db.py

from contextlib import contextmanager

from sqlmodel import SQLModel, Session, create_engine

from primavera.config import get_settings

database_url = get_settings().database_url

# check_same_thread=False is only needed for SQLite. It's not needed for other databases.
connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
engine = create_engine(database_url, connect_args=connect_args)


def init_db(bind=None):
    # Importing the models registers the tables on SQLModel.metadata
    from primavera import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    # Dependency to yield a database session
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session):
    """
    One unit of work: everything flushed inside the block commits together,
    or nothing does. The session is rolled back before the error propagates.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
