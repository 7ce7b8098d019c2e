import random
import threading
import time
from datetime import datetime
from typing import Optional

from .models import Fact, QuestionView
from .quiz import generate


class Session:
    """In-memory practice state for one client token."""

    def __init__(self, token: str):
        self.token = token
        self.created_at = datetime.now()
        # Nanosecond clock seed keeps concurrently created sessions apart.
        self._rng = random.Random(time.time_ns())
        # Reentrant so a route can hold it across its check and the grader call.
        self.lock = threading.RLock()

        self.fact: Optional[Fact] = None
        # Armed from the start: the first wrong answer of a session is charged.
        self.pending_strike = True
        self.questions_answered = 0
        self.errors_charged = 0

    @property
    def has_current_problem(self) -> bool:
        return self.fact is not None

    def next_fact(self) -> Fact:
        self.fact = generate(self._rng)
        return self.fact

    def view(self) -> QuestionView:
        if self.fact is None:
            raise LookupError(f"Session {self.token} has no current problem")
        return QuestionView(
            x=self.fact.x,
            y=self.fact.y,
            operator=self.fact.operator.symbol,
            questions_answered=self.questions_answered,
            errors_charged=self.errors_charged,
        )

    def __repr__(self) -> str:
        return (
            f"Session(token={self.token!r}, fact={self.fact}, "
            f"answered={self.questions_answered}, errors={self.errors_charged}, "
            f"pending_strike={self.pending_strike})"
        )
