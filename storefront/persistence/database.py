"""Engine and unit-of-work plumbing.

Every checkout, status change and sweep step runs inside one
``unit_of_work()``: the block commits when it exits cleanly and rolls back on
any exception, so domain code never commits on its own.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.config import get_settings
from storefront.persistence.models import Base


def engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"future": True, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Request handlers and the sweep thread share the same database file.
        options["connect_args"] = {"check_same_thread": False, "timeout": 15}
    return options


class Database:
    def __init__(self, url: str):
        self.bind(url)

    def bind(self, url: str) -> None:
        self.url = url
        self.engine: Engine = create_engine(url, **engine_options(url))
        self.sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        session = self.sessions()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


database = Database(get_settings().database_url)


def unit_of_work():
    return database.unit_of_work()


def init_db() -> None:
    database.create_schema()


def get_session() -> Iterator[Session]:
    with unit_of_work() as session:
        yield session
