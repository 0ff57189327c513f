import os

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from repairshop.app.db.base import Base
from repairshop.app.db.models import models_v1  # noqa: F401  (tables)
from repairshop.app.db.models.models_v1 import StockItem

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")


def _make_engine():
    if not TEST_DATABASE_URL.startswith("sqlite"):
        return create_engine(TEST_DATABASE_URL, pool_pre_ping=True)

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite gère mal BEGIN/SAVEPOINT : on émet BEGIN nous-mêmes
    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture(scope="session")
def engine():
    engine = _make_engine()
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    """
    Session DB isolée par test.

    Utilise une transaction englobante + SAVEPOINT.
    commit()/rollback() du code testé n'agissent que sur le SAVEPOINT ;
    TOUT est rollback à la fin du test.
    """
    connection = engine.connect()
    transaction = connection.begin()

    session = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )

    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def add_stock(db_session):
    def _add(part_name: str, north: int = 0, south: int = 0) -> StockItem:
        item = StockItem(part_name=part_name, stock_north=north, stock_south=south)
        db_session.add(item)
        db_session.flush()
        return item

    return _add
