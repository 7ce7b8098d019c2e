import os

import pytest

# keep test runs from writing log/facts.log into the working directory
os.environ["FACTS_LOG_TO_FILE"] = "0"

from facts.models import Fact, Operator
from facts.session import Session


class ScriptedRandom:
    """Stand-in for ``random.Random`` that replays fixed ``randrange`` draws."""

    def __init__(self, *draws):
        self.draws = list(draws)
        self.calls = []

    def randrange(self, stop):
        self.calls.append(stop)
        value = self.draws.pop(0)
        assert 0 <= value < stop
        return value


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def make_session():
    def _make(x, y, operator=Operator.ADD, answered=0, errors=0, strike=False):
        session = Session("test:0")
        session.fact = Fact(x=x, y=y, operator=operator)
        session.questions_answered = answered
        session.errors_charged = errors
        session.pending_strike = strike
        return session

    return _make
