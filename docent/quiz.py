"""Quiz mission played at the end of a tour."""

import logging

from docent.content.types import QuizQuestion

logger = logging.getLogger(__name__)


class QuizSession:
    """
    Walks the visitor through a list of questions, one answer each.

    After an answer the session shows feedback for the current question;
    further answers are ignored until next() moves on.
    """

    def __init__(self, questions: list[QuizQuestion]):
        self.questions = list(questions)
        self.index = 0
        self.score = 0
        self.selected: str | None = None
        self.showing_feedback = False
        self.finished = not self.questions

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> QuizQuestion | None:
        if self.finished:
            return None
        return self.questions[self.index]

    @property
    def percentage(self) -> int:
        if not self.total:
            return 0
        return round(self.score / self.total * 100)

    def answer(self, option: str) -> bool:
        """Record option for the current question. Returns True if it was correct."""
        question = self.current
        if question is None or self.showing_feedback:
            return False
        self.selected = option
        self.showing_feedback = True
        correct = option == question.correct_answer
        if correct:
            self.score += 1
        return correct

    def next(self) -> bool:
        """Move to the next question. Returns False once the quiz is finished."""
        if self.finished:
            return False
        if self.index < self.total - 1:
            self.index += 1
            self.selected = None
            self.showing_feedback = False
            return True
        self.finished = True
        logger.info("Quiz finished: %d/%d", self.score, self.total)
        return False
