import os

# gamiapi.config 가 처음 import 되기 전에 설정해야 함
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gamiapi.config import Settings
from gamiapi.database.connection import enable_sqlite_savepoints
from gamiapi.models import (
    Achievement,
    AttendanceRecord,
    AttendanceStatus,
    Base,
    BreakSession,
    Employee,
    ProductivityRecord,
    Reward,
    WorkLogSubmission,
)

TODAY = date(2024, 3, 15)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings():
    return Settings(DATABASE_URL="sqlite://")


@pytest.fixture
def make_employee(db):
    def _make(name: str = "Asha", code: str = None) -> Employee:
        employee = Employee(name=name, employee_code=code)
        db.add(employee)
        db.commit()
        return employee

    return _make


@pytest.fixture
def employee(make_employee):
    return make_employee("Asha", "EMP001")


@pytest.fixture
def make_achievement(db):
    def _make(
        name: str,
        criteria,
        points: int = 0,
        coins: int = 0,
        category: str = "MILESTONE",
        is_active: bool = True,
    ) -> Achievement:
        achievement = Achievement(
            name=name,
            description=f"{name} description",
            points=points,
            coins=coins,
            category=category,
            is_active=is_active,
            criteria=criteria,
        )
        db.add(achievement)
        db.commit()
        return achievement

    return _make


@pytest.fixture
def make_reward(db):
    def _make(
        name: str = "Coffee Voucher",
        points_cost: int = None,
        coins_cost: int = None,
        stock: int = None,
        is_active: bool = True,
        is_cash_conversion: bool = False,
        category: str = "VOUCHER",
    ) -> Reward:
        reward = Reward(
            name=name,
            category=category,
            points_cost=points_cost,
            coins_cost=coins_cost,
            stock=stock,
            is_active=is_active,
            is_cash_conversion=is_cash_conversion,
        )
        db.add(reward)
        db.commit()
        return reward

    return _make


@pytest.fixture
def add_attendance(db):
    def _add(employee_id: int, days, status: str = AttendanceStatus.PRESENT.value):
        for day in days:
            db.add(AttendanceRecord(employee_id=employee_id, date=day, status=status))
        db.commit()

    return _add


@pytest.fixture
def add_productivity(db):
    def _add(employee_id: int, day_percentages):
        for day, percentage in day_percentages:
            db.add(
                ProductivityRecord(
                    employee_id=employee_id,
                    date=day,
                    productivity_percentage=percentage,
                )
            )
        db.commit()

    return _add


@pytest.fixture
def add_break(db):
    def _add(employee_id: int, minutes: int, ended_at: datetime = None, active=False):
        ended_at = ended_at or datetime(2024, 3, 14, 12, 0, tzinfo=timezone.utc)
        db.add(
            BreakSession(
                employee_id=employee_id,
                break_date=ended_at.date(),
                started_at=ended_at - timedelta(minutes=minutes),
                ended_at=None if active else ended_at,
                is_active=active,
            )
        )
        db.commit()

    return _add


@pytest.fixture
def add_submissions(db):
    def _add(employee_id: int, count: int, locked: bool = True):
        for offset in range(count):
            db.add(
                WorkLogSubmission(
                    employee_id=employee_id,
                    submission_date=TODAY - timedelta(days=offset),
                    is_locked=locked,
                )
            )
        db.commit()

    return _add
