from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base class for models
Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    """Create the engine; SQLite needs cross-thread access under the ASGI threadpool."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    # Import for side effect: registers the tables on Base.metadata
    import store.tables  # noqa: F401

    Base.metadata.create_all(bind=engine)
