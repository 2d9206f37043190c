# advisor/answer_cache.py
"""
Questionnaire answers kept across restarts, as a flat question id -> text map.
"""

from typing import Dict

from sqlalchemy.orm import Session

from . import models


class AnswerCache:
    def __init__(self, db: Session):
        self.db = db

    def load(self) -> Dict[str, str]:
        return {a.question_id: a.value for a in self.db.query(models.Answer).all()}

    def save(self, question_id: str, value: str) -> None:
        answer = self.db.get(models.Answer, question_id)
        if answer is None:
            self.db.add(models.Answer(question_id=question_id, value=value))
        else:
            answer.value = value
        self.db.commit()

    def clear(self) -> None:
        self.db.query(models.Answer).delete()
        self.db.commit()
