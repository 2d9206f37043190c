# advisor/questionnaire.py
"""
The guided sleep questionnaire: one question at a time, empty answers are
refused and do not advance.
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Question:
    id: str
    text: str


QUESTIONS: Tuple[Question, ...] = (
    Question("sex", "What is your sex? (Male / Female)"),
    Question("age", "What is your age?"),
    Question("sleep_duration", "How many hours of sleep do you get on average?"),
    Question("activity_level", "How many hours of exercise do you get in an average day?"),
    Question("stress_level", "Rate your level of stress from 1-10? (low stress: 1, high stress: 10)"),
    Question("sleep_disorder", "Do you have a sleep disorder? (N/A: 0, Sleep Apnea: 1, Insomnia: 2)"),
)


@dataclass(frozen=True)
class SubmitResult:
    ok: bool
    reason: Optional[str] = None


class Questionnaire:
    def __init__(self, questions: Tuple[Question, ...] = QUESTIONS, answers: Optional[Mapping[str, str]] = None):
        self.questions = questions
        known = {q.id for q in questions}
        self._answers: Dict[str, str] = {
            k: v for k, v in (answers or {}).items() if k in known and v and v.strip()
        }
        # resume at the first question without a stored answer
        self.index = next(
            (i for i, q in enumerate(questions) if q.id not in self._answers),
            len(questions),
        )

    def current_prompt(self) -> Optional[Question]:
        if self.index < len(self.questions):
            return self.questions[self.index]
        return None

    def submit_answer(self, text: str) -> SubmitResult:
        question = self.current_prompt()
        if question is None:
            return SubmitResult(ok=False, reason="complete")
        if text is None or not text.strip():
            return SubmitResult(ok=False, reason="empty")

        self._answers[question.id] = text.strip()
        self.index += 1
        return SubmitResult(ok=True)

    def is_complete(self) -> bool:
        return self.index >= len(self.questions)

    @property
    def answers(self) -> Dict[str, str]:
        return dict(self._answers)

    def reset(self) -> None:
        self._answers.clear()
        self.index = 0
