from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


# --- Conversation persistence (ORM) ---
Base = declarative_base()


def _is_memory_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite") and (
        db_url.rstrip("/") in ("sqlite:", "sqlite://") or ":memory:" in db_url
    )


# --- Session maker ---
def _make_session_maker(db_url: str) -> sessionmaker:
    """
    Creates a new SQLAlchemy session maker and the conversation tables.

    In-memory SQLite URLs share a single connection so worker threads see
    the same database.

    Args:
        db_url (str): The database URL.

    Returns:
        sessionmaker: The SQLAlchemy session maker.
    """
    if _is_memory_sqlite(db_url):
        engine = create_engine(
            db_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(db_url, future=True)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
