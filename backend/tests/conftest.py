import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_MODE"] = "demo"

import pytest
from fastapi.testclient import TestClient

from fieldops.database import Base, SessionLocal, engine, get_db
from fieldops.models import app_setting, audit_log, timesheet, user, work_order  # noqa: F401
from fieldops.models.user import Branch, User
from fieldops.models.work_order import Department, WorkOrder
from fieldops.services import geocoding


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from main import app

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _clear_geocode_cache():
    geocoding.clear_cache()
    yield
    geocoding.clear_cache()


@pytest.fixture
def branch(db):
    b = Branch(name="Test Co", code="test")
    db.add(b)
    db.commit()
    return b


def _make_user(db, branch, email, role="user", is_team_leader=False):
    u = User(
        email=email,
        full_name=email.split("@")[0].title(),
        role=role,
        is_team_leader=is_team_leader,
        branch_id=branch.id,
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def worker(db, branch):
    return _make_user(db, branch, "worker@test.local")


@pytest.fixture
def other_worker(db, branch):
    return _make_user(db, branch, "other@test.local")


@pytest.fixture
def team_leader(db, branch):
    return _make_user(db, branch, "leader@test.local", is_team_leader=True)


@pytest.fixture
def admin(db, branch):
    return _make_user(db, branch, "admin@test.local", role="admin")


@pytest.fixture
def department(db, branch):
    d = Department(name="Workshop", branch_id=branch.id)
    db.add(d)
    db.commit()
    return d


@pytest.fixture
def work_orders(db, branch):
    rows = [
        WorkOrder(branch_id=branch.id, work_order_number="WO-1", title="Pump repair",
                  project_name="Plant", customer_name="Acme", start_address="1 Main St"),
        WorkOrder(branch_id=branch.id, work_order_number="WO-2", title="Valve check",
                  project_name="Plant", customer_name="Acme"),
        WorkOrder(branch_id=branch.id, work_order_number="WO-3", title="Inspection"),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def headers():
    def _headers(u):
        return {"X-User-Id": str(u.id)}
    return _headers
