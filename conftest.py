import pytest
import os
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# --- Alembic Imports ---
from alembic.config import Config
from alembic import command
# --- End Alembic Imports ---

# Import app and DB dependency function first
from main import app, get_db

# Import database components needed for setup
from database import Base, build_engine

import models
from auth import create_access_token, hash_password
from settings import Settings, get_settings

TEST_DATABASE_URL = "sqlite:///./job-board-test.db"

test_engine = build_engine(TEST_DATABASE_URL)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_PASSWORD = "secret123"


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create the test database from models and stamp with Alembic head."""
    db_path = TEST_DATABASE_URL.split("///")[-1]
    if os.path.exists(db_path):
        os.unlink(db_path)

    # --- Create schema directly from models --- #
    Base.metadata.create_all(bind=test_engine)

    # --- Stamp the database with the latest Alembic revision --- #
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", TEST_DATABASE_URL)
    command.stamp(alembic_cfg, "head")

    yield  # Tests run here

    test_engine.dispose()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def clean_tables(setup_test_database):
    """Every test starts from empty tables."""
    yield
    with test_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def db_session(setup_test_database):
    """Yields a SQLAlchemy session directly from the test factory."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# Override the get_db dependency for tests
@pytest.fixture(scope="function")
def override_get_db():
    """Point the app at the test database, one session per request."""

    def _override_get_db():
        db = TestSessionLocal()
        try:
            yield db
        finally:
            db.close()

    original = app.dependency_overrides.get(get_db)
    app.dependency_overrides[get_db] = _override_get_db

    yield

    if original:
        app.dependency_overrides[get_db] = original
    else:
        del app.dependency_overrides[get_db]


@pytest.fixture(scope="function")
def test_settings(tmp_path):
    """Settings with uploads redirected to a per-test directory."""
    settings = Settings(upload_dir=str(tmp_path / "uploads"), openai_api_key="sk-test")
    app.dependency_overrides[get_settings] = lambda: settings
    yield settings
    app.dependency_overrides.pop(get_settings, None)


@pytest.fixture(scope="function")
def test_client(override_get_db, test_settings):
    """Provides a test client configured with our test database session."""
    return TestClient(app)


# --- Data helpers --- #


def create_test_user(db, email="seeker@example.com", role=models.UserRole.job_seeker, **fields):
    user = models.User(
        email=email,
        password=hash_password(TEST_PASSWORD),
        first_name=fields.pop("first_name", "Test"),
        last_name=fields.pop("last_name", "User"),
        role=role,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_test_company(db, name="Acme Pvt Ltd", owner=None, **fields):
    company = models.Company(name=name, owner_id=owner.id if owner else None, **fields)
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


def create_test_job(db, company, title="Python Developer", minutes_ago=0, **fields):
    values = {
        "description": "Build backend services with FastAPI.",
        "location": "Lahore",
        "job_type": models.JobType.full_time,
        "experience_level": models.ExperienceLevel.mid,
        "is_active": True,
    }
    values.update(fields)
    job = models.Job(
        title=title,
        company_id=company.id,
        created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        **values,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
