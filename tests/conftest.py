import os
import tempfile

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_fleet_ledger.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["FIRST_ADMIN_EMAIL"] = "admin@test.example.com"
os.environ["FIRST_ADMIN_PASSWORD"] = "AdminTest123!"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["FLEET_MANAGER_EMAIL"] = "fleet@test.example.com"
os.environ["REMINDER_MAX_ATTEMPTS"] = "3"
os.environ["REMINDER_RETRY_BACKOFF_SECONDS"] = "0"
# Email transports stay unconfigured; tests patch the sender
os.environ["RESEND_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""

from datetime import date

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from app.main import app
from app.core.security import create_access_token, hash_password
from app.db.models.user import User as UserModel
from app.db.models.role import Role as RoleModel


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    # Use a temporary file for SQLite database
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    # Create test engine and session with proper SQLite settings
    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
    )

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema and seed data
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Dispose the engine to close all connections
        test_engine.dispose()

        # Clean up - remove test database file and directory
        try:
            if os.path.exists(test_db_path):
                os.remove(test_db_path)
            # Also remove WAL files
            for suffix in ["-wal", "-shm"]:
                wal_path = f"{test_db_path}{suffix}"
                if os.path.exists(wal_path):
                    os.remove(wal_path)
            if os.path.exists(temp_db_dir):
                os.rmdir(temp_db_dir)
        except OSError as e:
            print(f"Cleanup failed: {e}")


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    from app.api.deps import get_db

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


@pytest.fixture(scope="function")
def admin_user(db: Session) -> dict:
    """The admin user seeded by migration 002."""
    from app.repositories.user import get_user_by_email
    from app.core.config import settings

    user = get_user_by_email(db, settings.first_admin_email)
    if not user:
        raise RuntimeError("Admin user not found. Check migration 002.")

    return {
        "id": user.id,
        "email": user.email,
        "password": settings.first_admin_password,  # Plaintext password from env
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_token(admin_user: dict) -> str:
    """Get JWT token for admin user."""
    return create_access_token(admin_user["id"], role="admin")


@pytest.fixture(scope="function")
def admin_headers(admin_token: str) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture(scope="function")
def accountant_user(db: Session) -> dict:
    """Create an accountant (read-only) user for testing."""
    email = "accountant@example.com"
    name = "Test Accountant"
    password = "AccountantPass123!"

    accountant_role = db.query(RoleModel).filter(RoleModel.name == "accountant").first()
    if not accountant_role:
        raise RuntimeError("Accountant role not found")

    user = UserModel(
        email=email,
        name=name,
        password_hash=hash_password(password),
        role_id=accountant_role.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return {
        "id": user.id,
        "email": user.email,
        "name": name,
        "password": password,
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def accountant_token(accountant_user: dict) -> str:
    """Get JWT token for accountant user."""
    return create_access_token(accountant_user["id"], role="accountant")


@pytest.fixture(scope="function")
def accountant_headers(accountant_token: str) -> dict:
    return {"Authorization": f"Bearer {accountant_token}"}


# ============================================================================
# FLEET RECORDS
# ============================================================================


@pytest.fixture(scope="function")
def make_customer(db: Session):
    """Factory creating customers directly through the repository."""
    from app.repositories.customer import create_customer

    counter = {"n": 0}

    def _make(name: str | None = None, customer_type: str = "Individual", email: str | None = None):
        counter["n"] += 1
        n = counter["n"]
        return create_customer(
            db,
            name=name or f"Customer {n}",
            customer_type=customer_type,
            email=email or f"customer{n}@example.com",
        )

    return _make


@pytest.fixture(scope="function")
def make_vehicle(db: Session):
    """Factory creating vehicles directly through the repository."""
    from app.repositories.vehicle import create_vehicle

    counter = {"n": 0}

    def _make(reg: str | None = None, **fields):
        counter["n"] += 1
        return create_vehicle(db, reg=reg or f"AB{counter['n']:02d}CDE", **fields)

    return _make


@pytest.fixture(scope="function")
def customer(make_customer):
    return make_customer(name="Jane Driver", email="jane@example.com")


@pytest.fixture(scope="function")
def vehicle(make_vehicle):
    return make_vehicle(reg="AB12CDE", make="Ford", model="Transit")


@pytest.fixture(scope="function")
def make_rental(db: Session):
    """Factory creating rentals through the rental service (initial charge included)."""
    from app.services.rental import create_rental

    def _make(
        customer,
        vehicle,
        start_date: date = date(2024, 1, 1),
        cadence: str = "Monthly",
        periodic_amount: int = 10000,
        as_of: date | None = None,
        end_date: date | None = None,
        initial_fee: int | None = None,
    ):
        return create_rental(
            db,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            start_date=start_date,
            cadence=cadence,
            periodic_amount=periodic_amount,
            as_of=as_of or start_date,
            end_date=end_date,
            initial_fee=initial_fee,
        )

    return _make
