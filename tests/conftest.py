"""Shared test fixtures for all test modules."""

import contextlib
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import jwt
import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import course_checkout.models  # noqa: F401
from course_checkout.core import database as db_module
from course_checkout.core.auth import CurrentUser
from course_checkout.core.config import settings
from course_checkout.core.database import Base
from course_checkout.models.bank_account import BankAccount
from course_checkout.models.course import Course, CourseStatus
from course_checkout.models.order import Order, OrderStatus, PaymentMethod
from course_checkout.repositories.coupon_repository import CouponRepository
from course_checkout.repositories.order_repository import OrderRepository
from course_checkout.schemas.coupon import CouponCreate

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

STUDENT = CurrentUser(
    id=uuid.UUID("00000000-0000-0000-0000-00000000a001"),
    email="ana@example.com",
    name="Ana Pereira",
)
OTHER_STUDENT = CurrentUser(
    id=uuid.UUID("00000000-0000-0000-0000-00000000a002"),
    email="bruno@example.com",
    name="Bruno Silva",
)
ADMIN = CurrentUser(
    id=uuid.UUID("00000000-0000-0000-0000-00000000ad01"),
    email="admin@example.com",
    name="Admin",
    role="superadmin",
)


def truncate_tables() -> None:
    """Delete every row, then turn foreign key enforcement back on.

    SQLite ignores the foreign_keys pragma inside a transaction, so the deletes
    are committed before it is re-enabled.
    """
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.commit()
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    truncate_tables()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def notification_dispatch():
    """Keep API tests away from Redis; yields the mocked dispatch request."""
    with patch(
        "course_checkout.tasks.request_notification_dispatch", new_callable=AsyncMock
    ) as mock_dispatch:
        yield mock_dispatch


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = db_module.get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def issue_session_token(user: CurrentUser, expires_in: timedelta = timedelta(hours=12)) -> str:
    """Sign a session JWT the way the auth service does."""
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "exp": datetime.now(UTC) + expires_in,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user: CurrentUser) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_session_token(user)}"}


def make_course(
    db: Session,
    *,
    slug: str | None = None,
    price_usd: str = "100.00",
    price_uyu: str | None = "4000",
    max_capacity: int | None = 10,
    enrolled_count: int = 0,
    status: CourseStatus = CourseStatus.ENROLLING,
    enrollment_deadline=None,
) -> Course:
    course = Course(
        slug=slug or f"course-{uuid.uuid4().hex[:8]}",
        title="Introducción al vino",
        price_usd=Decimal(price_usd),
        price_uyu=Decimal(price_uyu) if price_uyu is not None else None,
        max_capacity=max_capacity,
        enrolled_count=enrolled_count,
        enrollment_deadline=enrollment_deadline,
        status=status.value,
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def make_bank_account(
    db: Session,
    *,
    currency: str = "USD",
    bank_name: str = "BROU",
    account_number: str = "001-234567-00001",
    display_order: int = 0,
    is_active: bool = True,
) -> BankAccount:
    account = BankAccount(
        bank_name=bank_name,
        account_holder="Escuela de Vinos SRL",
        account_type="Caja de ahorro",
        account_number=account_number,
        currency=currency,
        swift_code="BROUUYMM",
        display_order=display_order,
        is_active=is_active,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def make_coupon(db: Session, code: str = "WELCOME20", **kwargs):
    data = CouponCreate(code=code, discount_percent=kwargs.pop("discount_percent", 20), **kwargs)
    return CouponRepository(db).create(data, created_by=ADMIN.email)


def make_order(
    db: Session,
    course: Course,
    *,
    user: CurrentUser = STUDENT,
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER,
    status: OrderStatus = OrderStatus.PENDING_PAYMENT,
    coupon=None,
    final_amount: str | None = None,
    bank_account: BankAccount | None = None,
) -> Order:
    """Insert an order directly in the given status."""
    order = OrderRepository(db).create(
        user_id=user.id,
        user_email=user.email,
        user_name=user.name,
        course_id=course.id,
        payment_method=payment_method,
        currency="USD",
        original_price_usd=course.price_usd,
        original_price_uyu=course.price_uyu,
        original_amount=course.price_usd,
        discount_percent=coupon.discount_percent if coupon else 0,
        discount_amount=Decimal("0"),
        final_amount=Decimal(final_amount) if final_amount is not None else course.price_usd,
        coupon_id=coupon.id if coupon else None,
        coupon_code=coupon.code if coupon else None,
        coupon_discount_percent=coupon.discount_percent if coupon else None,
    )
    if bank_account is not None:
        order.bank_account_id = bank_account.id
    if status is not OrderStatus.CREATED:
        order.status = status.value
    db.commit()
    db.refresh(order)
    return order
