from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from .config import settings


def make_engine(url: str, **kwargs):
    """Create an engine; SQLite connections get FK enforcement."""
    connect_args = {}
    if url.startswith("sqlite"):
        # check_same_thread=False is required for SQLite across FastAPI threads
        connect_args["check_same_thread"] = False

    engine = create_engine(url, connect_args=connect_args, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = make_engine(settings.resolved_database_url)

# SessionLocal is the main way to talk to the database
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db(bind=None) -> None:
    """Create all tables (development / tests)."""
    from .models.generated import Base
    Base.metadata.create_all(bind=bind or engine)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
