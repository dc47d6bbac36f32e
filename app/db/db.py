import os
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Register tables on SQLModel.metadata
from app.models import item, notification, organization, profile, verification_request  # noqa: F401


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./lostfound.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
    # One shared connection, otherwise every session sees an empty database
    engine = create_engine(DATABASE_URL, connect_args=connect_args, poolclass=StaticPool)
else:
    engine = create_engine(DATABASE_URL, connect_args=connect_args)


def enable_sqlite_foreign_keys(engine):
    # SQLite ignores ON DELETE CASCADE unless asked
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)


def init_db(bind=None):
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
