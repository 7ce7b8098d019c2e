import operator as op
from enum import Enum

from pydantic import BaseModel


# --- Domain ---
class Operator(str, Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"

    @property
    def symbol(self) -> str:
        return self.value

    def apply(self, x: int, y: int) -> int:
        return _ARITHMETIC[self](x, y)


_ARITHMETIC = {
    Operator.ADD: op.add,
    Operator.SUB: op.sub,
    Operator.MUL: op.mul,
}


class Fact(BaseModel, frozen=True):
    x: int
    y: int
    operator: Operator

    @property
    def answer(self) -> int:
        return self.operator.apply(self.x, self.y)

    def __str__(self) -> str:
        return f"{self.x} {self.operator.symbol} {self.y}"


# --- Views ---
class QuestionView(BaseModel):
    x: int
    y: int
    operator: str
    questions_answered: int
    errors_charged: int


class WelcomeView(BaseModel):
    num_facts: int


class AnswerResult(BaseModel):
    outcome: str
    question: QuestionView
