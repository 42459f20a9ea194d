import os

# Must be set before the application modules read their settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient

from hms.main import app
from hms.core.database import Base, SessionLocal, engine
from hms.core.redis import get_redis
from hms.core.security import CallerIdentity, UserRole, create_access_token
from hms.models.doctor import Doctor
from hms.models.patient import Patient
from hms.models.user import User


class FakeRedis:
    """In-memory stand-in for the few redis commands the rate limiter uses."""

    def __init__(self):
        self.data = {}

    def setex(self, key, time, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, "0")) + 1)
        return int(self.data[key])


@pytest.fixture(autouse=True)
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def fake_redis():
    redis_client = FakeRedis()
    app.dependency_overrides[get_redis] = lambda: redis_client
    yield redis_client
    app.dependency_overrides.pop(get_redis, None)

@pytest.fixture
def client(fake_redis):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_doctor(db, email="house@hospital.org", first_name="Gregory",
                last_name="House", specialty="Diagnostics"):
    user = User(email=email, password_hash="not-a-real-hash", role=UserRole.DOCTOR)
    user.doctor = Doctor(first_name=first_name, last_name=last_name, specialty=specialty)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def make_patient(db, email="john.doe@hospital.org", first_name="John", last_name="Doe"):
    user = User(email=email, role=UserRole.PATIENT)
    user.patient = Patient(first_name=first_name, last_name=last_name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def auth_headers(user_or_id, role=UserRole.DOCTOR):
    user_id = getattr(user_or_id, "id", user_or_id)
    role = getattr(user_or_id, "role", role)
    token = create_access_token(CallerIdentity(id=user_id, role=role))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def doctor(db):
    return make_doctor(db)

@pytest.fixture
def patient(db):
    return make_patient(db)
