"""Shared fixtures for the VideoTube backend tests.

Each test gets its own in-memory SQLite database, a real password hasher
and token codec with test secrets, and a fake asset store that never talks
to Cloudinary.
"""

import os

# NOTE: must run before application modules read the environment.
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.security import PasswordHasher, TokenCodec, TokenSettings
from db.session import initialize_database
from services.asset_store import UploadResult
from services.session_manager import SessionManager
from services.user_store import UserStore

ACCESS_SECRET = "test-access-token-secret-0123456789abcdef"
REFRESH_SECRET = "test-refresh-token-secret-0123456789abcdef"


class FakeAssetStore:
    """Asset store double: returns a predictable URL per file name.

    Paths listed in ``failing`` (by file name) upload as failures.
    """

    def __init__(self) -> None:
        self.uploaded: list[Path] = []
        self.failing: set[str] = set()

    async def upload(self, local_path):
        if not local_path:
            return None
        path = Path(local_path)
        self.uploaded.append(path)
        if path.name in self.failing:
            return None
        return UploadResult(url=f"https://res.cloudinary.com/demo/image/upload/{path.name}")


@pytest.fixture
def token_settings() -> TokenSettings:
    return TokenSettings(
        access_token_secret=ACCESS_SECRET,
        access_token_expires=timedelta(minutes=15),
        refresh_token_secret=REFRESH_SECRET,
        refresh_token_expires=timedelta(days=10),
    )


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await initialize_database(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def user_store(db_engine) -> UserStore:
    return UserStore(async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False))


@pytest.fixture
def asset_store() -> FakeAssetStore:
    return FakeAssetStore()


@pytest.fixture
def token_codec() -> TokenCodec:
    return TokenCodec()


@pytest.fixture
def manager(user_store, asset_store, token_codec, token_settings) -> SessionManager:
    return SessionManager(
        users=user_store,
        hasher=PasswordHasher(),
        tokens=token_codec,
        assets=asset_store,
        config=token_settings,
    )


@pytest.fixture
def avatar_file(tmp_path) -> Path:
    path = tmp_path / "avatar.png"
    path.write_bytes(b"\x89PNG avatar")
    return path


@pytest.fixture
def cover_file(tmp_path) -> Path:
    path = tmp_path / "cover.png"
    path.write_bytes(b"\x89PNG cover")
    return path


@pytest_asyncio.fixture
async def alice(manager, avatar_file):
    """A registered user ``alice`` with password ``p1``."""
    return await manager.register(
        username="Alice",
        email="a@x.com",
        full_name="Alice A",
        password="p1",
        avatar_path=avatar_file,
    )
