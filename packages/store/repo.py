"""Repository layer for the learning store.

Provides async engine/session setup and the narrow gateway the services use:
quiz and question reads, certificate lookup/insert, and the two derived
procedures the store computes (`check_course_completion`,
`calculate_course_progress`).
"""

from functools import lru_cache
from typing import AsyncIterator, Protocol, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from packages.common.config import get_settings
from .models import Base, Certificate, Question, Quiz


class StoreError(Exception):
    """A store read or write failed."""


class DuplicateCertificate(StoreError):
    """An insert violated a certificate uniqueness constraint."""


class DataStoreGateway(Protocol):
    async def get_quiz(self, quiz_id: str) -> Quiz | None: ...
    async def list_questions(self, quiz_id: str) -> Sequence[Question]: ...
    async def find_certificate(self, user_id: str, course_id: str) -> Certificate | None: ...
    async def insert_certificate(self, certificate: Certificate) -> Certificate: ...
    async def check_course_completion(self, user_id: str, course_id: str) -> bool: ...
    async def calculate_course_progress(self, user_id: str, course_id: str) -> int: ...


@lru_cache()
def get_engine() -> AsyncEngine:
    """Return the process-wide engine built from `DATABASE_DSN`."""
    return create_async_engine(get_settings().DATABASE_DSN, echo=False, pool_pre_ping=True)


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), expire_on_commit=False)


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create database schema if it doesn't exist."""
    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class SqlGateway:
    """`DataStoreGateway` over one SQLAlchemy `AsyncSession`.

    Every SQLAlchemy failure is re-raised as `StoreError`, so callers never
    depend on driver exceptions.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_quiz(self, quiz_id: str) -> Quiz | None:
        try:
            res = await self.session.execute(select(Quiz).where(Quiz.id == quiz_id))
            return res.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError(f"quiz lookup failed: {exc}") from exc

    async def list_questions(self, quiz_id: str) -> list[Question]:
        """Return the quiz's questions in ascending `order`."""
        try:
            res = await self.session.execute(
                select(Question).where(Question.quiz_id == quiz_id).order_by(Question.position)
            )
            return list(res.scalars())
        except SQLAlchemyError as exc:
            raise StoreError(f"question lookup failed: {exc}") from exc

    async def find_certificate(self, user_id: str, course_id: str) -> Certificate | None:
        try:
            res = await self.session.execute(
                select(Certificate).where(
                    Certificate.user_id == user_id,
                    Certificate.course_id == course_id,
                )
            )
            return res.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError(f"certificate lookup failed: {exc}") from exc

    async def insert_certificate(self, certificate: Certificate) -> Certificate:
        """Persist `certificate` and return the stored row.

        Raises:
            DuplicateCertificate: a unique constraint rejected the row; the
                session is rolled back and usable again.
            StoreError: any other failure.
        """
        self.session.add(certificate)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateCertificate(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StoreError(f"certificate insert failed: {exc}") from exc
        await self.session.refresh(certificate)
        return certificate

    async def check_course_completion(self, user_id: str, course_id: str) -> bool:
        try:
            res = await self.session.execute(select(func.check_course_completion(user_id, course_id)))
            return bool(res.scalar())
        except SQLAlchemyError as exc:
            raise StoreError(f"course completion check failed: {exc}") from exc

    async def calculate_course_progress(self, user_id: str, course_id: str) -> int:
        try:
            res = await self.session.execute(select(func.calculate_course_progress(user_id, course_id)))
            value = res.scalar()
        except SQLAlchemyError as exc:
            raise StoreError(f"course progress calculation failed: {exc}") from exc
        return int(value or 0)


async def get_gateway() -> AsyncIterator[DataStoreGateway]:
    """FastAPI dependency yielding a `SqlGateway` bound to a fresh session."""
    async with get_sessionmaker()() as session:
        yield SqlGateway(session)
