import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from propertyhub.config import Base  # noqa: E402
import propertyhub.config as app_config  # noqa: E402
from propertyhub.auth.jwt import get_password_hash  # noqa: E402
from propertyhub.constants import ROLE_LANDLORD, STATUS_ACTIVE  # noqa: E402
from propertyhub.core.rate_limit import limiter  # noqa: E402
# Import the full models module so every table registers with Base metadata.
from propertyhub.models import models as _all_models  # noqa: E402,F401
from propertyhub.models.models import Property, Unit, User, UserPropertyRole  # noqa: E402

DEFAULT_PASSWORD = "changeme"


def _sqlite_engine(path: Path):
    return create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})


@pytest.fixture(scope="session", autouse=True)
def _configure_global_test_db(tmp_path_factory):
    """Point the app-wide SessionLocal/engine at a throwaway DB with all tables."""
    db_dir = tmp_path_factory.mktemp("globaldb")
    engine = _sqlite_engine(db_dir / "app.db")
    Base.metadata.create_all(engine)
    app_config.SessionLocal = sessionmaker(bind=engine)
    app_config.engine = engine
    yield
    engine.dispose()


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Provide a fresh SQLite database for each test."""
    engine = _sqlite_engine(tmp_path / "test.db")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def create_user(db_session: Session) -> Callable[..., User]:
    def _create(
        email: str = "user@example.com",
        account_role: str = "tenant",
        full_name: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        user = User(
            email=email,
            full_name=full_name or email.split("@")[0].title(),
            phone="5550001111",
            hashed_password=get_password_hash(DEFAULT_PASSWORD),
            account_role=account_role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _create


@pytest.fixture
def assign_role(db_session: Session) -> Callable[..., UserPropertyRole]:
    def _assign(
        user: User,
        prop: Property,
        role: str,
        status: str = STATUS_ACTIVE,
        unit: Optional[Unit] = None,
    ) -> UserPropertyRole:
        assignment = UserPropertyRole(
            user_id=user.id,
            property_id=prop.id,
            unit_id=unit.id if unit else None,
            role=role,
            status=status,
        )
        db_session.add(assignment)
        db_session.commit()
        return assignment

    return _assign


@pytest.fixture
def create_property(db_session: Session, assign_role) -> Callable[..., Property]:
    counter = {"value": 0}

    def _create(owner: User, name: Optional[str] = None) -> Property:
        counter["value"] += 1
        prop = Property(
            owner_id=owner.id,
            property_code=f"PROP-{counter['value']:03d}",
            name=name or f"Property {counter['value']}",
            address=f"{counter['value']} Main Street",
            type="apartment",
            receipt_serial_counter=0,
        )
        db_session.add(prop)
        db_session.commit()
        assign_role(owner, prop, ROLE_LANDLORD)
        return prop

    return _create


@pytest.fixture
def create_unit(db_session: Session) -> Callable[..., Unit]:
    def _create(prop: Property, unit_name: str = "A1", tenant: Optional[User] = None) -> Unit:
        unit = Unit(
            property_id=prop.id,
            unit_name=unit_name,
            tenant_id=tenant.id if tenant else None,
            status="occupied" if tenant else "vacant",
        )
        db_session.add(unit)
        db_session.commit()
        return unit

    return _create
