"""Tests for the SQL gateway against an in-memory SQLite database.

The two store procedures are registered as SQLite user-defined functions.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from packages.common.auth import Identity
from packages.store.models import Certificate, Question, Quiz
from packages.store.repo import DuplicateCertificate, SqlGateway, StoreError, init_db
from services.certificates.issuer import issue_certificate

COMPLETED = {("alice", "course-1")}
PROGRESS = {("alice", "course-1"): 100, ("alice", "course-2"): 35}


def _memory_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _register_procedures(dbapi_connection, connection_record):
        dbapi_connection.create_function(
            "check_course_completion", 2, lambda u, c: int((u, c) in COMPLETED))
        dbapi_connection.create_function(
            "calculate_course_progress", 2, lambda u, c: PROGRESS.get((u, c), 0))

    return engine


@pytest_asyncio.fixture
async def sessions():
    engine = _memory_engine()
    await init_db(engine)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


def _certificate(user_id: str, course_id: str, code: str) -> Certificate:
    now = datetime.now(timezone.utc)
    return Certificate(user_id=user_id, course_id=course_id, certificate_id=code, issue_date=now, created_at=now)


@pytest.mark.asyncio
async def test_questions_come_back_in_order(sessions) -> None:
    async with sessions() as session:
        session.add(Quiz(id="quiz-1", title="Intro", pass_score_percent=60))
        session.add_all([
            Question(id="b", quiz_id="quiz-1", correct_index=1, points=2, position=1),
            Question(id="c", quiz_id="quiz-1", correct_index=0, points=1, position=2),
            Question(id="a", quiz_id="quiz-1", correct_index=3, points=1, position=0),
        ])
        await session.commit()

    async with sessions() as session:
        gateway = SqlGateway(session)
        quiz = await gateway.get_quiz("quiz-1")
        questions = await gateway.list_questions("quiz-1")

    assert quiz.pass_score_percent == 60
    assert [q.id for q in questions] == ["a", "b", "c"]
    assert questions[0].choices == []


@pytest.mark.asyncio
async def test_unknown_quiz_is_none(sessions) -> None:
    async with sessions() as session:
        assert await SqlGateway(session).get_quiz("missing") is None


@pytest.mark.asyncio
async def test_second_certificate_for_same_pair_is_rejected(sessions) -> None:
    async with sessions() as session:
        gateway = SqlGateway(session)
        await gateway.insert_certificate(_certificate("alice", "course-1", "SOFTAI-AAAA0001"))
        with pytest.raises(DuplicateCertificate):
            await gateway.insert_certificate(_certificate("alice", "course-1", "SOFTAI-AAAA0002"))

        found = await gateway.find_certificate("alice", "course-1")
        assert found.certificate_id == "SOFTAI-AAAA0001"
        other = await gateway.insert_certificate(_certificate("alice", "course-2", "SOFTAI-AAAA0003"))
        assert other.id


@pytest.mark.asyncio
async def test_store_procedures(sessions) -> None:
    async with sessions() as session:
        gateway = SqlGateway(session)
        assert await gateway.check_course_completion("alice", "course-1") is True
        assert await gateway.check_course_completion("alice", "course-2") is False
        assert await gateway.calculate_course_progress("alice", "course-2") == 35
        assert await gateway.calculate_course_progress("bob", "course-2") == 0


@pytest.mark.asyncio
async def test_issuance_against_sql_store(sessions) -> None:
    alice = Identity(user_id="alice")
    async with sessions() as session:
        first = await issue_certificate(SqlGateway(session), "alice", "course-1", alice)
    async with sessions() as session:
        second = await issue_certificate(SqlGateway(session), "alice", "course-1", alice)

    assert first.created is True
    assert second.created is False
    assert second.certificate_id == first.certificate_id


class _StaleReadGateway(SqlGateway):
    """Misses the first lookup, like a request that read before a concurrent insert committed."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self._stale = True

    async def find_certificate(self, user_id, course_id):
        if self._stale:
            self._stale = False
            return None
        return await super().find_certificate(user_id, course_id)


@pytest.mark.asyncio
async def test_unique_violation_resolves_to_existing_certificate(sessions) -> None:
    async with sessions() as session:
        await SqlGateway(session).insert_certificate(_certificate("alice", "course-1", "SOFTAI-WINNER01"))

    async with sessions() as session:
        result = await issue_certificate(_StaleReadGateway(session), "alice", "course-1", Identity(user_id="alice"))

    assert result.created is False
    assert result.certificate_id == "SOFTAI-WINNER01"


@pytest.mark.asyncio
async def test_driver_errors_become_store_errors() -> None:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    try:
        async with async_sessionmaker(engine)() as session:
            with pytest.raises(StoreError):
                await SqlGateway(session).get_quiz("quiz-1")
    finally:
        await engine.dispose()
