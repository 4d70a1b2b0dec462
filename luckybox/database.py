from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def make_session_factory(database_url: str):
    """Engine and session factory for the local ledger database."""
    connect_args = {}
    engine_kwargs = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" in database_url or database_url == "sqlite://":
            # one shared connection, otherwise each session sees an empty database
            engine_kwargs["poolclass"] = StaticPool
    engine = create_engine(
        database_url, echo=False, future=True, connect_args=connect_args, **engine_kwargs
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
