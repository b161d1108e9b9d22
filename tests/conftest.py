"""Pytest configuration and fixtures."""
import hashlib
import hmac
import json
import time
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth.security import hash_password, create_access_token
from app.database import Base, get_db
from app.exceptions import NotFound
from app.limiter import limiter
from app.models.creator_profile import CreatorProfile
from app.models.product import Product, ProductStatus
from app.models.user import User, UserRole
from app.models.video_asset import VideoAsset
from app.services.payments import PaymentGateway, get_payment_gateway
from app.services.storage import StorageGateway, get_storage_gateway
from main import app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_WEBHOOK_SECRET = "whsec_test_secret"
TEST_PASSWORD = "TestPass123"


class FakeStorage(StorageGateway):
    """Real URL signing with dummy credentials; stored objects live in a dict."""

    def __init__(self):
        super().__init__(
            bucket="test-bucket",
            region="us-east-1",
            access_key_id="AKIATESTKEY",
            secret_access_key="test-secret",
        )
        self.objects: dict[str, tuple[int, Optional[str]]] = {}
        self.deleted: list[str] = []

    def put(self, key: str, size: int, content_type: Optional[str] = None):
        self.objects[key] = (size, content_type)

    def head(self, key: str):
        if key not in self.objects:
            raise NotFound(f"Object not found: {key}")
        return self.objects[key]

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.deleted.append(key)


def sign_payload(payload: str, secret: str = TEST_WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a ``stripe-signature`` header the way Stripe does."""
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(event_type: str, obj: dict, event_id: str = "evt_test_1") -> str:
    return json.dumps({"id": event_id, "object": "event", "type": event_type, "data": {"object": obj}})


def auth_headers(user: User) -> dict:
    token = create_access_token(data={"sub": user.uuid, "email": user.email, "role": user.user_role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def disable_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
async def test_db():
    """Create test database."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    AsyncSessionLocal = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with AsyncSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def payments():
    return PaymentGateway(secret_key="sk_test_123", webhook_secret=TEST_WEBHOOK_SECRET)


@pytest.fixture
async def client(test_db, storage, payments):
    """HTTP client bound to the app, with the database and gateways overridden."""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_gateway] = lambda: storage
    app.dependency_overrides[get_payment_gateway] = lambda: payments

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(db, email: str, role: str = UserRole.USER.value, name: str = "Test User") -> User:
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        status="active",
        user_role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_creator_profile(db, user: User, stripe_account_id: Optional[str] = None) -> CreatorProfile:
    profile = CreatorProfile(user_id=user.uuid, display_name=user.name, stripe_account_id=stripe_account_id)
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


async def create_video_asset(db, user: User, key: Optional[str] = None, duration: int = 600) -> VideoAsset:
    video_asset = VideoAsset(
        storage_key=key or f"videos/{user.uuid}/1700000000000-lesson.mp4",
        file_name="lesson.mp4",
        file_size=50_000_000,
        mime_type="video/mp4",
        duration=duration,
        is_processed=True,
        uploaded_by=user.uuid,
    )
    db.add(video_asset)
    await db.commit()
    await db.refresh(video_asset)
    return video_asset


async def create_product(
    db,
    creator: CreatorProfile,
    title: str = "Beatmatching 101",
    price: int = 4999,
    status: str = ProductStatus.PUBLISHED.value,
    video_asset: Optional[VideoAsset] = None,
    **fields,
) -> Product:
    slug = fields.pop("slug", None) or title.lower().replace(" ", "-")
    product = Product(
        title=title,
        slug=slug,
        description=fields.pop("description", "A complete walkthrough of beatmatching by ear, with drills. " * 2),
        price=price,
        status=status,
        creator_id=creator.uuid,
        video_asset_id=video_asset.uuid if video_asset else None,
        **fields,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return product


@pytest.fixture
async def buyer(test_db):
    return await create_user(test_db, "buyer@example.com", name="Buyer")


@pytest.fixture
async def creator_user(test_db):
    return await create_user(test_db, "creator@example.com", role=UserRole.CREATOR.value, name="DJ Creator")


@pytest.fixture
async def admin_user(test_db):
    return await create_user(test_db, "admin@example.com", role=UserRole.ADMIN.value, name="Admin")


@pytest.fixture
async def creator(test_db, creator_user):
    return await create_creator_profile(test_db, creator_user)


@pytest.fixture
async def video_asset(test_db, creator_user):
    return await create_video_asset(test_db, creator_user)


@pytest.fixture
async def product(test_db, creator, video_asset):
    """Published product priced at $49.99 with a video attached."""
    return await create_product(test_db, creator, video_asset=video_asset)
