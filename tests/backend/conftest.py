import os
import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from procureflow.core import db as db_module
from procureflow.core.security import hash_password
from procureflow.main import app
from procureflow.models.item import Item, ItemStatus
from procureflow.models.user import User


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """
    Fresh database for service-level tests that don't need the HTTP client.
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(db):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def create_user(db):
    """
    Factory fixture to create regular users directly via ORM.
    """

    async def _create_user(password: str = "UserPass!23", name: str = "Test User") -> tuple[User, str]:
        user = await User.create(
            email=f"user_{uuid.uuid4().hex[:6]}@example.com",
            name=name,
            password_hash=hash_password(password),
            role="user",
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_item(db):
    """
    Factory fixture to insert catalog items directly via ORM (skips duplicate checks).
    """

    async def _create_item(
        name: str = "Ballpoint Pens",
        category: str = "Office Supplies",
        description: str = "Blue ink ballpoint pens, box of 12",
        price: float = 4.5,
        status: ItemStatus = ItemStatus.ACTIVE,
        **extra,
    ) -> Item:
        return await Item.create(
            name=name,
            category=category,
            description=description,
            price=price,
            status=status,
            **extra,
        )

    return _create_item


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        # Login also sets the accessToken cookie on the shared client; drop it so
        # requests without these headers stay anonymous.
        client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _get_headers


@pytest_asyncio.fixture
async def user_headers(create_user, auth_header_factory):
    """
    A signed-in regular user: returns (user, headers).
    """
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)
    return user, headers
