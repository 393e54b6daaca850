import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./schoolfees-test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from schoolfees.auth.security import create_access_token
from schoolfees.core.models import FeeStructure, FeeType, StudentAcademicRecord
from schoolfees.db.session import Base, get_db
from schoolfees.main import app


ACADEMIC_YEAR = "2024-25"


@pytest.fixture()
async def engine(tmp_path):
    """File-backed SQLite DB per test so concurrent sessions get their own connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fees.db'}", echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding and direct service calls; requests get their own sessions."""
    async with session_factory() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            async with session_factory() as request_session:
                yield request_session

        app.dependency_overrides[get_db] = override_get_db
        yield session
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def auth_headers() -> Callable[..., Dict[str, str]]:
    def _headers(role: str = "ADMIN", user_id: Optional[UUID] = None) -> Dict[str, str]:
        token = create_access_token(subject={"sub": str(user_id or uuid4()), "role": role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def make_fee_type(db_session: AsyncSession) -> Callable[..., Awaitable[FeeType]]:
    async def _make(code: str = "TUITION", is_recurring: bool = True, category: str = "ACADEMIC") -> FeeType:
        ft = FeeType(
            name=code.title(),
            code=code,
            category=category,
            is_recurring=is_recurring,
            is_active=True,
        )
        db_session.add(ft)
        await db_session.commit()
        return ft

    return _make


@pytest.fixture()
def make_structure(db_session: AsyncSession) -> Callable[..., Awaitable[FeeStructure]]:
    async def _make(
        fee_type: FeeType,
        amount: str = "1000",
        frequency: str = "MONTHLY",
        class_id: Optional[UUID] = None,
        academic_year: str = ACADEMIC_YEAR,
    ) -> FeeStructure:
        fs = FeeStructure(
            class_id=class_id or uuid4(),
            fee_type_id=fee_type.id,
            academic_year=academic_year,
            amount=Decimal(amount),
            frequency=frequency,
            is_active=True,
        )
        db_session.add(fs)
        await db_session.commit()
        return fs

    return _make


@pytest.fixture()
def enroll(db_session: AsyncSession) -> Callable[..., Awaitable[UUID]]:
    """Add a student to the directory's enrollment table and return the student id."""

    async def _enroll(
        class_id: UUID,
        student_id: Optional[UUID] = None,
        academic_year: str = ACADEMIC_YEAR,
        status: str = "ACTIVE",
    ) -> UUID:
        student_id = student_id or uuid4()
        db_session.add(
            StudentAcademicRecord(
                student_id=student_id,
                class_id=class_id,
                academic_year=academic_year,
                status=status,
            )
        )
        await db_session.commit()
        return student_id

    return _enroll
