"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database; StaticPool keeps the
single connection alive so separate sessions see the same data, and the
database goes away with it when the engine is disposed.
"""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from ordership.application.order_service import OrderService
from ordership.application.shipment_service import ShipmentService
from ordership.infrastructure.db import init_models, make_session_factory


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_models(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def shipment_service(db):
    return ShipmentService(db)


@pytest.fixture
def order_service(db):
    return OrderService(db)
