"""SQLAlchemy models for the learning store.

Defines the three tables the services read and write:
- Quiz: pass threshold and metadata of a course quiz.
- Question: multiple-choice questions, ordered within their quiz.
- Certificate: course-completion certificates, at most one per (user, course).
"""

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy import DateTime, Integer, String, Text, ForeignKey, UniqueConstraint

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Quiz(Base):
    """Quiz entity; immutable for scoring purposes once authored.

    Attributes:
        id: Primary key (UUID string).
        title: Human-readable quiz title.
        time_limit_minutes: Advisory time limit shown to learners.
        pass_score_percent: Minimum score percent (0-100) that passes.
        course_id: Owning course, if the quiz belongs to one.
        questions: Relationship to the quiz's Question rows.
    """

    __tablename__ = "quizzes"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), default="")
    time_limit_minutes: Mapped[int] = mapped_column(Integer, default=0)
    pass_score_percent: Mapped[int] = mapped_column(Integer, default=70)
    course_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)
    questions = relationship("Question", back_populates="quiz", order_by="Question.position")


class Question(Base):
    """Question entity that belongs to a Quiz.

    `position` is stored in the `order` column; within a quiz it is unique and
    its ascending order defines the index space submitted answers refer to.
    """

    __tablename__ = "questions"
    __table_args__ = (UniqueConstraint("quiz_id", "order", name="uq_questions_quiz_order"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    quiz_id: Mapped[str] = mapped_column(ForeignKey("quizzes.id"))
    prompt: Mapped[str] = mapped_column(Text, default="")
    choices_json: Mapped[str] = mapped_column("choices", Text, default="[]")  # JSON encoded list
    correct_index: Mapped[int] = mapped_column(Integer)
    explanation: Mapped[str] = mapped_column(Text, default="")
    points: Mapped[int] = mapped_column(Integer, default=1)
    position: Mapped[int] = mapped_column("order", Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    quiz = relationship("Quiz", back_populates="questions")

    @property
    def choices(self) -> list[str]:
        return json.loads(self.choices_json or "[]")


class Certificate(Base):
    """Course-completion certificate.

    Attributes:
        id: Primary key (UUID string).
        user_id: Owner of the certificate.
        course_id: Completed course.
        certificate_id: Human-facing code, e.g. "SOFTAI-1A2B3C4D".
        issue_date: When the certificate was issued.
        pdf_url: Rendered document location, filled in by other tooling.
    """

    __tablename__ = "certificates"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_certificates_user_course"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    course_id: Mapped[str] = mapped_column(String(36))
    certificate_id: Mapped[str] = mapped_column(String(64), unique=True)
    issue_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    pdf_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
