import os

# Required ATAMS settings must exist before app.core.config is imported
os.environ["DATABASE_URL"] = "sqlite:///./.pytest_attendance.db"
os.environ["ATLAS_APP_CODE"] = "HRIS_TEST"
os.environ["ENCRYPTION_ENABLED"] = "false"
os.environ["TIMEZONE"] = "Europe/Tirane"

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from atams.db import Base
from app.core.rules import AttendancePolicy
from app.models import Employee
from app.services.rules_service import RulesService

DAY = date(2025, 3, 10)


def at(hour: int, minute: int = 0, second: int = 0, day: date = DAY) -> datetime:
    """Wall-clock time on the test day"""
    return datetime(day.year, day.month, day.day, hour, minute, second)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN until the first DML statement, which breaks
    # SAVEPOINT nesting; let SQLAlchemy emit BEGIN itself
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def employee(db):
    row = Employee(em_id=1, em_full_name="Arta Hoxha", em_email="arta@example.com")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def flex_employee(db):
    row = Employee(em_id=2, em_full_name="Besnik Krasniqi", em_email="besnik@example.com", em_flex_mode=True)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def policy():
    return AttendancePolicy()


@pytest.fixture
def rules(policy):
    return RulesService(policy)


@pytest.fixture
def current_user():
    return {"user_id": 1, "role_level": 1}


@pytest.fixture
def client(db, current_user):
    from fastapi.testclient import TestClient

    from app.main import app
    from app.db.session import get_db
    from app.api.deps import get_current_user

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: current_user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
