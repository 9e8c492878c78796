"""Shared pytest fixtures for the SoftAI services."""

import os
import time

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_DSN", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("JWT_ALGORITHMS", '["HS256"]')

import jwt
import pytest

from packages.common.config import get_settings
from packages.store.models import Certificate, Question, Quiz
from packages.store.repo import DuplicateCertificate, StoreError


class InMemoryGateway:
    """Gateway fake with the same uniqueness rules as the SQL schema."""

    def __init__(self) -> None:
        self.quizzes: dict[str, Quiz] = {}
        self.questions: dict[str, list[Question]] = {}
        self.certificates: list[Certificate] = []
        self.completed: set[tuple[str, str]] = set()
        self.progress: dict[tuple[str, str], int] = {}
        self.fail_questions = False
        self.fail_completion = False
        self.hidden_lookups = 0  # number of find_certificate calls that miss, to simulate a race
        self.inserts = 0

    def add_quiz(self, quiz_id: str, pass_score_percent: int, questions: list[dict]) -> Quiz:
        quiz = Quiz(id=quiz_id, title=quiz_id, pass_score_percent=pass_score_percent)
        self.quizzes[quiz_id] = quiz
        self.questions[quiz_id] = [
            Question(**{"id": f"{quiz_id}-q{i}", "position": i, "explanation": f"because {i}", **q},
                     quiz_id=quiz_id)
            for i, q in enumerate(questions)
        ]
        return quiz

    async def get_quiz(self, quiz_id):
        return self.quizzes.get(quiz_id)

    async def list_questions(self, quiz_id):
        if self.fail_questions:
            raise StoreError("questions unavailable")
        return sorted(self.questions.get(quiz_id, []), key=lambda q: q.position)

    async def find_certificate(self, user_id, course_id):
        if self.hidden_lookups:
            self.hidden_lookups -= 1
            return None
        return next(
            (c for c in self.certificates if c.user_id == user_id and c.course_id == course_id),
            None,
        )

    async def insert_certificate(self, certificate):
        self.inserts += 1
        for c in self.certificates:
            if (c.user_id, c.course_id) == (certificate.user_id, certificate.course_id):
                raise DuplicateCertificate("uq_certificates_user_course")
            if c.certificate_id == certificate.certificate_id:
                raise DuplicateCertificate("certificates_certificate_id_key")
        self.certificates.append(certificate)
        return certificate

    async def check_course_completion(self, user_id, course_id):
        if self.fail_completion:
            raise StoreError("rpc failed")
        return (user_id, course_id) in self.completed

    async def calculate_course_progress(self, user_id, course_id):
        return self.progress.get((user_id, course_id), 0)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def make_token():
    """Mint HS256 tokens signed with the test JWT key."""

    def _make(sub: str = "user-1", ttl: int = 3600, **claims) -> str:
        payload = {"sub": sub, "exp": int(time.time()) + ttl, **claims}
        return jwt.encode(payload, os.environ["JWT_KEY"], algorithm="HS256")

    return _make
