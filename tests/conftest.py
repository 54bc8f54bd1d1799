"""
Shared pytest fixtures and configuration for all tests
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta  # noqa: E402
from typing import AsyncGenerator, Iterable, Optional, Tuple  # noqa: E402

import bcrypt  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from marketplace_api.core.database import create_tables, get_db  # noqa: E402
from marketplace_api.database.models import (  # noqa: E402
    Brand,
    Category,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    Review,
    ReviewStatus,
    User,
    UserRole,
    VendorType,
)
from marketplace_api.engines.recommendation import RecommendationEngine  # noqa: E402
from marketplace_api.engines.search import SearchEngine  # noqa: E402
from marketplace_api.main import app  # noqa: E402
from marketplace_api.routers.recommendations import get_recommendation_engine  # noqa: E402
from marketplace_api.routers.search import get_search_engine  # noqa: E402
from marketplace_api.services.auth_service import auth_service  # noqa: E402
from marketplace_api.services.product_service import compute_prices  # noqa: E402

TEST_PASSWORD = "password123"
# Low work factor keeps fixtures fast; checkpw reads the cost from the hash
TEST_PASSWORD_HASH = bcrypt.hashpw(TEST_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")

BASE_TIME = datetime(2024, 1, 15, 12, 0, 0)


@pytest.fixture
async def test_engine(tmp_path):
    """File-backed SQLite so concurrent sessions share one database"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool, echo=False)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with session_factory() as session:
        yield session


class Seeder:
    """Inserts fixture rows and commits each one"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _save(self, instance):
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def user(
        self,
        role: UserRole = UserRole.CUSTOMER,
        vendor_type: Optional[VendorType] = None,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        n = self._next()
        return await self._save(
            User(
                name=name or f"User {n}",
                email=email or f"user{n}@example.com",
                hashed_password=TEST_PASSWORD_HASH,
                role=role,
                vendor_type=vendor_type,
                is_approved=True,
            )
        )

    async def brand(self, name: Optional[str] = None, is_active: bool = True) -> Brand:
        return await self._save(Brand(name=name or f"Brand {self._next()}", is_active=is_active))

    async def category(
        self, name: Optional[str] = None, parent: Optional[Category] = None, is_active: bool = True
    ) -> Category:
        return await self._save(
            Category(
                name=name or f"Category {self._next()}",
                parent_category_id=parent.id if parent else None,
                is_active=is_active,
            )
        )

    async def product(
        self,
        category: Category,
        brand: Brand,
        name: Optional[str] = None,
        description: Optional[str] = None,
        mrp: float = 1000,
        selling_percentage: float = 100,
        is_prime: bool = False,
        prime_vendor: Optional[User] = None,
        images: Optional[list] = None,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
    ) -> Product:
        n = self._next()
        return await self._save(
            Product(
                name=name or f"Product {n}",
                description=description,
                category_id=category.id,
                brand_id=brand.id,
                mrp=mrp,
                selling_percentage=selling_percentage,
                purchase_percentage=60,
                is_prime=is_prime,
                prime_vendor_id=prime_vendor.id if prime_vendor else None,
                images=images or [],
                is_active=is_active,
                created_at=created_at or BASE_TIME + timedelta(minutes=n),
                **compute_prices(mrp, selling_percentage, 60),
            )
        )

    async def order(
        self,
        customer_id: str,
        items: Iterable[Tuple[Product, int]],
        status: OrderStatus = OrderStatus.DELIVERED,
        payment_status: PaymentStatus = PaymentStatus.PAID,
        created_at: Optional[datetime] = None,
        total: Optional[float] = None,
        total_profit: Optional[float] = None,
    ) -> Order:
        lines = []
        for position, (product, quantity) in enumerate(items):
            subtotal = product.selling_price * quantity
            purchase_subtotal = product.purchase_price * quantity
            lines.append(
                OrderItem(
                    product_id=product.id,
                    position=position,
                    quantity=quantity,
                    selling_price=product.selling_price,
                    purchase_price=product.purchase_price,
                    subtotal=subtotal,
                    purchase_subtotal=purchase_subtotal,
                    profit=subtotal - purchase_subtotal,
                )
            )
        revenue = sum(line.subtotal for line in lines) if total is None else total
        profit = sum(line.profit for line in lines) if total_profit is None else total_profit
        return await self._save(
            Order(
                customer_id=customer_id,
                items=lines,
                total=revenue,
                total_purchase_price=revenue - profit,
                total_profit=profit,
                status=status,
                payment_status=payment_status,
                created_at=created_at or datetime.utcnow(),
            )
        )

    async def review(
        self,
        product: Product,
        customer: User,
        order: Order,
        rating: int,
        status: ReviewStatus = ReviewStatus.APPROVED,
        created_at: Optional[datetime] = None,
    ) -> Review:
        return await self._save(
            Review(
                product_id=product.id,
                customer_id=customer.id,
                order_id=order.id,
                rating=rating,
                status=status,
                created_at=created_at or BASE_TIME + timedelta(minutes=self._next()),
            )
        )


@pytest.fixture
def seed(db_session) -> Seeder:
    return Seeder(db_session)


@pytest.fixture
def recommendation_engine(session_factory) -> RecommendationEngine:
    return RecommendationEngine(session_factory, fail_soft=False)


@pytest.fixture
def search_engine() -> SearchEngine:
    return SearchEngine(fail_soft=False)


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test database wired in"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_recommendation_engine] = lambda: RecommendationEngine(session_factory)
    app.dependency_overrides[get_search_engine] = lambda: SearchEngine()

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer header builder for a seeded user"""

    def build(user: User) -> dict:
        token = auth_service.create_access_token({"sub": user.id, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return build
