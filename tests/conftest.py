# tests/conftest.py
import os
import tempfile

# Settings are read at import time, so the environment must be in place first
_TEST_DIR = tempfile.mkdtemp(prefix="agricoventas-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/import.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MEDIA_ROOT"] = os.path.join(_TEST_DIR, "media")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from agricoventas.core.enums import CertificationStatus, REQUIRED_CERTIFICATIONS, UserType
from agricoventas.core.security import create_access_token, hash_password
from agricoventas.database import Base
from agricoventas.dependencies import get_db
from agricoventas.main import app
from agricoventas.models.category import Category
from agricoventas.models.certification import UserCertification
from agricoventas.models.location import Location
from agricoventas.models.product import Product
from agricoventas.models.user import User

DEFAULT_PASSWORD = "Secret123"


@pytest.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a fresh SQLite database for each test function."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Provide a database session for tests"""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """HTTP client bound to the app, with get_db pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def _auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.user_type.value)
    return {"Authorization": f"Bearer {token}"}


async def _make_user(db_session, username: str, user_type: UserType = UserType.BUYER, **kwargs) -> User:
    user = User(
        username=username,
        email=kwargs.pop("email", f"{username}@example.com"),
        password_hash=hash_password(kwargs.pop("password", DEFAULT_PASSWORD)),
        first_name=kwargs.pop("first_name", username.capitalize()),
        user_type=user_type,
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    db_session.add(user)
    await db_session.commit()
    return user


async def _certify(db_session, user: User) -> None:
    for code in REQUIRED_CERTIFICATIONS:
        db_session.add(UserCertification(
            user_id=user.id,
            certification_type=code,
            certification_name=code,
            image_url=f"/media/certifications/{code.lower()}.pdf",
            status=CertificationStatus.VERIFIED,
        ))
    await db_session.commit()


async def _make_product(db_session, seller: User, **kwargs) -> Product:
    product = Product(
        name=kwargs.pop("name", "Café de Huila"),
        description=kwargs.pop("description", "Café especial tostado"),
        base_price=kwargs.pop("base_price", 100.0),
        stock_quantity=kwargs.pop("stock_quantity", 5),
        unit_measure=kwargs.pop("unit_measure", "kg"),
        seller_id=seller.id,
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest.fixture
async def buyer(db_session):
    return await _make_user(db_session, "comprador", UserType.BUYER)


@pytest.fixture
async def seller(db_session):
    return await _make_user(db_session, "productor", UserType.SELLER)


@pytest.fixture
async def certified_seller(db_session, seller):
    await _certify(db_session, seller)
    return seller


@pytest.fixture
async def admin(db_session):
    return await _make_user(db_session, "admin", UserType.ADMIN)


@pytest.fixture
async def category(db_session):
    category = Category(name="Granos y cereales")
    db_session.add(category)
    await db_session.commit()
    return category


@pytest.fixture
async def location(db_session, seller):
    location = Location(
        user_id=seller.id,
        address_line1="Vereda El Carmen",
        city="Pitalito",
        department="Huila",
    )
    db_session.add(location)
    await db_session.commit()
    return location


@pytest.fixture
async def product(db_session, seller):
    return await _make_product(db_session, seller)


@pytest.fixture
def auth_headers():
    """Bearer headers for a user: ``auth_headers(user)``."""
    return _auth_headers


@pytest.fixture
def create_user(db_session):
    """Factory: ``await create_user("name", UserType.SELLER, **fields)``."""

    async def _create(username, user_type=UserType.BUYER, **kwargs):
        return await _make_user(db_session, username, user_type, **kwargs)

    return _create


@pytest.fixture
def create_product(db_session):
    """Factory: ``await create_product(seller, base_price=..., stock_quantity=...)``."""

    async def _create(seller, **kwargs):
        return await _make_product(db_session, seller, **kwargs)

    return _create


@pytest.fixture
def certify_user(db_session):
    async def _certify_user(user):
        await _certify(db_session, user)

    return _certify_user
