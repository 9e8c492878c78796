"""Assessment schemas for quiz submissions, answer sheets, and scoring results."""

from pydantic import BaseModel, BeforeValidator, Field
from typing import Annotated, Any, List, Mapping, NamedTuple

NO_SELECTION = -1


def _whole_number(value: Any) -> int:
    """Accept JSON integers, including integral floats such as 1.0; reject bools and strings."""
    if isinstance(value, bool):
        raise ValueError("choice index must be a number")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    raise ValueError("choice index must be a whole number")


ChoiceIndex = Annotated[int, BeforeValidator(_whole_number)]


class ScoreQuizRequest(BaseModel):
    """Body of `POST /score-quiz`: answers keyed by question position ("0", "1", ...)."""
    quiz_id: str = Field(min_length=1)
    user_answers: dict[str, ChoiceIndex]


class PositionalAnswer(NamedTuple):
    """A submitted choice for the question at zero-based `position` in quiz order."""
    position: int
    choice_index: int


class AnswerSheet:
    """Submitted answers indexed by question position.

    Built from the wire mapping whose keys are the decimal string form of the
    position. Keys that are not canonical non-negative integers ("01", "-1",
    "a") can never name a position and are dropped.
    """

    def __init__(self, answers: List[PositionalAnswer] | None = None) -> None:
        self._by_position = {a.position: a.choice_index for a in answers or []}

    @classmethod
    def from_mapping(cls, raw: Mapping[str, int]) -> "AnswerSheet":
        answers = []
        for key, choice in raw.items():
            if key.isascii() and key.isdigit() and str(int(key)) == key:
                answers.append(PositionalAnswer(int(key), choice))
        return cls(answers)

    def choice_for(self, position: int) -> int:
        """Return the submitted choice for `position`, or `NO_SELECTION`."""
        return self._by_position.get(position, NO_SELECTION)


class QuestionResult(BaseModel):
    """Per-question outcome reported back to the learner."""
    question_id: str
    correct: bool
    explanation: str
    points_earned: int
    correct_index: int
    user_answer: int


class ScoreResult(BaseModel):
    """Computed score for a quiz attempt."""
    score_percent: int
    passed: bool
    per_question_results: List[QuestionResult]
    total_points: int
    earned_points: int
